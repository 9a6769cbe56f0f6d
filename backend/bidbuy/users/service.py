# backend/bidbuy/users/service.py
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..articles import queries as article_queries
from ..articles.models import SortKey, TradeStatus
from ..auth.schema import OAuthProfile, Principal
from ..errors import BidBuyError, ErrorKind
from ..likes.service import count_likes_by_user
from ..models import PageResponse
from ..offers.service import count_offers_by_offerer, count_purchased
from ..reviews.service import count_reviews_by_party
from .models import User as UserModel, UserRole
from .schema import ProfileCounts

logger = logging.getLogger(__name__)


async def get_user_by_id(user_id: int, db: AsyncSession) -> Optional[UserModel]:
    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(email: str, db: AsyncSession) -> Optional[UserModel]:
    result = await db.execute(select(UserModel).where(UserModel.email == email))
    return result.scalar_one_or_none()


async def get_user_by_provider(provider: str, provider_id: str, db: AsyncSession) -> Optional[UserModel]:
    result = await db.execute(
        select(UserModel).where(UserModel.provider == provider, UserModel.provider_id == provider_id)
    )
    return result.scalar_one_or_none()


async def get_user_or_404(user_id: int, db: AsyncSession) -> UserModel:
    user = await get_user_by_id(user_id, db)
    if not user:
        raise BidBuyError(ErrorKind.NOT_FOUND, f"User {user_id} not found")
    return user


async def get_or_create_oauth_user(db: AsyncSession, profile: OAuthProfile) -> UserModel:
    """
    검증된 ID 토큰 클레임으로 만든 프로필로 사용자를 찾고, 없으면 생성합니다.
    이미 가입된 사용자는 표시 이름과 프로필 이미지를 최신 값으로 갱신합니다.
    """
    user = await get_user_by_provider(profile.provider, profile.provider_id, db)
    if user:
        user.username = profile.username
        if profile.profile_image_url:
            user.profile_image_url = profile.profile_image_url
        await db.commit()
        return user

    existing = await get_user_by_email(profile.email, db)
    if existing:
        raise BidBuyError(ErrorKind.CONFLICT, f"Email already registered with provider {existing.provider}")

    user = UserModel(
        email=profile.email,
        username=profile.username,
        provider=profile.provider,
        provider_id=profile.provider_id,
        profile_image_url=profile.profile_image_url,
        score=0,
        review_count=0,
        offer_level=1,
        role=UserRole.USER,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        # 같은 프로필로 동시에 최초 로그인한 경우
        await db.rollback()
        user = await get_user_by_provider(profile.provider, profile.provider_id, db)
        if user is None:
            raise BidBuyError(ErrorKind.CONFLICT, "Email already registered") from e
        return user
    logger.info(f"Created user id={user.id} via {profile.provider}")
    return user


async def get_profile_counts(db: AsyncSession, user_id: int) -> ProfileCounts:
    return ProfileCounts(
        count_sale=await article_queries.count_by_writer(db, user_id),
        count_like=await count_likes_by_user(db, user_id),
        count_offer=await count_offers_by_offerer(db, user_id),
        count_buy=await count_purchased(db, user_id),
        count_review=await count_reviews_by_party(db, user_id),
    )


async def list_sales(
    db: AsyncSession,
    principal: Principal,
    user_id: int,
    status: TradeStatus,
    sort: SortKey,
    page: int,
    size: Optional[int],
) -> PageResponse:
    await get_user_or_404(user_id, db)
    return await article_queries.list_by_writer_and_status(
        db, user_id, status, principal.user_id, sort=sort, page=page, size=size
    )


async def promote_to_admin(db: AsyncSession, email: str) -> UserModel:
    """(운영 CLI) 기존 사용자를 관리자로 승격합니다."""
    user = await get_user_by_email(email, db)
    if not user:
        raise BidBuyError(ErrorKind.NOT_FOUND, f"User with email {email} not found")
    if user.role != UserRole.ADMIN:
        user.role = UserRole.ADMIN
        await db.commit()
        logger.info(f"Promoted user id={user.id} to ADMIN")
    return user

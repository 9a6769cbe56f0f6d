# backend/bidbuy/reviews/service.py
import logging
from typing import Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..articles.models import TradeStatus
from ..articles.service import get_article_or_404, require_user_id
from ..auth.schema import Principal
from ..errors import BidBuyError, ErrorKind
from ..offers.service import get_selected_offers
from ..users.models import User
from .models import Review

logger = logging.getLogger(__name__)


async def find_review(db: AsyncSession, article_id: int, reviewer_id: int) -> Optional[Review]:
    result = await db.execute(
        select(Review).where(Review.article_id == article_id, Review.reviewer_id == reviewer_id)
    )
    return result.scalar_one_or_none()


async def count_reviews_by_party(db: AsyncSession, user_id: int) -> int:
    """사용자가 작성했거나 받은 리뷰 수"""
    result = await db.execute(
        select(func.count(Review.id)).where(
            or_(Review.reviewer_id == user_id, Review.reviewee_id == user_id)
        )
    )
    return result.scalar_one()


async def post_review(
    db: AsyncSession,
    principal: Principal,
    article_id: int,
    score: int,
    content: str = "",
) -> Review:
    """
    거래 완료된 게시글에 상대방 리뷰를 남깁니다.
    판매자 → 선택된 구매자, 선택된 구매자 → 판매자 방향만 허용됩니다.
    리뷰가 생기면 해당 게시글의 거래 상태는 더 이상 되돌릴 수 없습니다.
    """
    reviewer_id = require_user_id(principal)
    article = await get_article_or_404(db, article_id, for_update=True)
    if article.trade_status != TradeStatus.COMPLETE:
        raise BidBuyError(ErrorKind.CONFLICT, f"Article {article_id} is not complete")

    selected = await get_selected_offers(db, article_id)
    buyer_id = selected[0].offerer_id if selected else None
    if reviewer_id == article.writer_id and buyer_id is not None:
        reviewee_id = buyer_id
    elif buyer_id is not None and reviewer_id == buyer_id:
        reviewee_id = article.writer_id
    else:
        raise BidBuyError(ErrorKind.FORBIDDEN, "Only the trading parties can review this article")

    if await find_review(db, article_id, reviewer_id) is not None:
        raise BidBuyError(ErrorKind.CONFLICT, "You have already reviewed this article")

    review = Review(
        article_id=article_id,
        reviewer_id=reviewer_id,
        reviewee_id=reviewee_id,
        score=score,
        content=content or "",
    )
    try:
        db.add(review)
        # autoflush로 INSERT가 먼저 나가므로 유니크 충돌은 여기서도 발생할 수 있음
        await db.execute(
            update(User)
            .where(User.id == reviewee_id)
            .values(score=User.score + score, review_count=User.review_count + 1)
        )
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.info(f"Duplicate review on article {article_id} by user_id={reviewer_id}")
        raise BidBuyError(ErrorKind.CONFLICT, "You have already reviewed this article") from e

    logger.info(f"Review {review.id} posted on article {article_id}: {reviewer_id} -> {reviewee_id} score={score}")
    return review

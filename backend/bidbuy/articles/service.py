# backend/bidbuy/articles/service.py
import logging
from typing import List, Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth.schema import Principal
from ..config import settings
from ..database import utcnow
from ..errors import BidBuyError, ErrorKind
from ..likes.models import LikeArticle
from ..offers.models import Offer
from ..reviews.models import Review
from ..storage.blob_store import BlobStore, ImageUpload, EXTENSION_BY_CONTENT_TYPE, discard_blobs
from ..users.models import User
from .models import Article, ProductImage, TradeStatus
from .schemas import ArticleCreate, ArticleDetail, ArticleUpdate

logger = logging.getLogger(__name__)


def require_user_id(principal: Principal) -> int:
    if principal.is_anonymous:
        raise BidBuyError(ErrorKind.UNAUTHENTICATED, "Login required")
    return principal.user_id


def ensure_owner(article: Article, principal: Principal) -> None:
    if article.writer_id != principal.user_id:
        raise BidBuyError(ErrorKind.FORBIDDEN, "Only the writer can modify this article")


def validate_images(images: Sequence[ImageUpload]) -> None:
    if len(images) > settings.MAX_IMAGES_PER_ARTICLE:
        raise BidBuyError(
            ErrorKind.BAD_REQUEST,
            f"At most {settings.MAX_IMAGES_PER_ARTICLE} images can be attached",
        )
    for image in images:
        if image.content_type not in EXTENSION_BY_CONTENT_TYPE:
            raise BidBuyError(ErrorKind.BAD_REQUEST, f"Unsupported image type: {image.content_type}")
        if not image.data:
            raise BidBuyError(ErrorKind.BAD_REQUEST, f"Empty image file: {image.filename}")


async def get_article(db: AsyncSession, article_id: int, *, for_update: bool = False) -> Optional[Article]:
    stmt = select(Article).where(Article.id == article_id)
    if for_update:
        # 같은 게시글에 대한 상태 변경(찜, 거래 상태 전이)을 직렬화하기 위한 행 잠금
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_article_for_update(db: AsyncSession, article_id: int) -> Optional[Article]:
    return await get_article(db, article_id, for_update=True)


async def get_article_or_404(db: AsyncSession, article_id: int, *, for_update: bool = False) -> Article:
    article = await get_article(db, article_id, for_update=for_update)
    if article is None:
        raise BidBuyError(ErrorKind.NOT_FOUND, f"Article {article_id} not found")
    return article


async def list_images(db: AsyncSession, article_id: int) -> List[ProductImage]:
    result = await db.execute(
        select(ProductImage)
        .where(ProductImage.article_id == article_id)
        .order_by(ProductImage.id)
    )
    return list(result.scalars().all())


async def delete_images_by_article(db: AsyncSession, article_id: int) -> None:
    await db.execute(delete(ProductImage).where(ProductImage.article_id == article_id))


async def upload_images(blobs: BlobStore, images: Sequence[ImageUpload]) -> List[str]:
    """이미지를 순서대로 업로드합니다. 중간에 실패하면 이번 호출에서 올린 이미지를 지우고 예외를 다시 던집니다."""
    uploaded: List[str] = []
    try:
        for image in images:
            uploaded.append(await blobs.upload(image))
    except Exception:
        logger.warning(f"Image upload failed after {len(uploaded)} of {len(images)} images; compensating")
        await discard_blobs(blobs, uploaded)
        raise
    return uploaded


async def create_article(
    db: AsyncSession,
    blobs: BlobStore,
    principal: Principal,
    data: ArticleCreate,
    images: Sequence[ImageUpload] = (),
) -> ArticleDetail:
    writer_id = require_user_id(principal)
    validate_images(images)
    if await db.get(User, writer_id) is None:
        raise BidBuyError(ErrorKind.UNAUTHENTICATED, "User not found")

    now = utcnow()
    article = Article(
        **data.model_dump(),
        writer_id=writer_id,
        view_count=0,
        like_count=0,
        trade_status=TradeStatus.SALE,
        created_at=now,
        modified_at=now,
    )
    db.add(article)

    uploaded: List[str] = []
    product_images: List[ProductImage] = []
    try:
        await db.flush()
        uploaded = await upload_images(blobs, images)
        for url in uploaded:
            product_image = ProductImage(article_id=article.id, image_url=url, created_at=now)
            db.add(product_image)
            product_images.append(product_image)
        await db.commit()
    except Exception as e:
        # 게시글만 남거나 이미지만 남지 않도록 롤백 + 업로드한 파일 보상 삭제
        await db.rollback()
        await discard_blobs(blobs, uploaded)
        logger.exception(f"Failed to create article for writer_id={writer_id}: {e}")
        raise BidBuyError(ErrorKind.INTERNAL, "Failed to create article") from e

    logger.info(f"Article {article.id} created by user_id={writer_id} with {len(uploaded)} images")
    return ArticleDetail.of(article, product_images)


async def update_article(
    db: AsyncSession,
    blobs: BlobStore,
    principal: Principal,
    article_id: int,
    data: ArticleUpdate,
    images: Optional[Sequence[ImageUpload]] = None,
) -> ArticleDetail:
    """
    None이 아닌 필드만 덮어씁니다.
    images가 비어 있지 않으면 기존 이미지 전체를 교체하고, 비어 있거나 None이면 그대로 둡니다.
    """
    require_user_id(principal)
    article = await get_article_or_404(db, article_id, for_update=True)
    ensure_owner(article, principal)
    images = list(images or [])
    validate_images(images)

    changed = data.merge_into(article)
    article.modified_at = utcnow()

    old_urls: List[str] = []
    new_urls: List[str] = []
    try:
        if images:
            old_urls = [image.image_url for image in await list_images(db, article.id)]
            # 새 이미지를 먼저 올린 뒤 DB 행을 교체 (DB가 가리키는 파일은 항상 존재)
            new_urls = await upload_images(blobs, images)
            await delete_images_by_article(db, article.id)
            for url in new_urls:
                db.add(ProductImage(article_id=article.id, image_url=url))
        await db.commit()
    except Exception as e:
        await db.rollback()
        await discard_blobs(blobs, new_urls)
        logger.exception(f"Failed to update article {article_id}: {e}")
        raise BidBuyError(ErrorKind.INTERNAL, "Failed to update article") from e

    # 커밋 이후에 예전 이미지 파일 정리
    await discard_blobs(blobs, old_urls)
    logger.info(f"Article {article_id} updated fields={changed} images_replaced={bool(images)}")
    return ArticleDetail.of(article, await list_images(db, article.id))


async def delete_article(db: AsyncSession, blobs: BlobStore, principal: Principal, article_id: int) -> None:
    require_user_id(principal)
    article = await get_article_or_404(db, article_id, for_update=True)
    ensure_owner(article, principal)
    # 리뷰가 있는 게시글은 삭제 불가 (users.score/review_count는 리뷰 행과 일치해야 함)
    reviewed = await db.execute(select(Review.id).where(Review.article_id == article.id).limit(1))
    if reviewed.first() is not None:
        raise BidBuyError(ErrorKind.CONFLICT, f"Article {article_id} has reviews and cannot be deleted")

    urls = [image.image_url for image in await list_images(db, article.id)]
    await delete_images_by_article(db, article.id)
    await db.execute(delete(LikeArticle).where(LikeArticle.article_id == article.id))
    await db.execute(delete(Offer).where(Offer.article_id == article.id))
    await db.delete(article)
    await db.commit()

    # DB 삭제가 커밋된 뒤 파일은 best-effort로 삭제
    await discard_blobs(blobs, urls)
    logger.info(f"Article {article_id} deleted by user_id={principal.user_id} ({len(urls)} images)")


async def get_article_detail(db: AsyncSession, principal: Principal, article_id: int) -> ArticleDetail:
    """상세 조회. 조회수를 1 올리고, 로그인 사용자에게는 찜 여부를 함께 돌려줍니다."""
    result = await db.execute(
        update(Article)
        .where(Article.id == article_id)
        .values(view_count=Article.view_count + 1)
    )
    if not result.rowcount:
        raise BidBuyError(ErrorKind.NOT_FOUND, f"Article {article_id} not found")
    await db.commit()

    article = await get_article(db, article_id, for_update=False)
    if article is None:
        raise BidBuyError(ErrorKind.NOT_FOUND, f"Article {article_id} not found")
    await db.refresh(article)

    is_liked = None
    if not principal.is_anonymous:
        liked = await db.execute(
            select(LikeArticle.user_id).where(
                LikeArticle.article_id == article_id,
                LikeArticle.user_id == principal.user_id,
            )
        )
        is_liked = liked.first() is not None
    return ArticleDetail.of(article, await list_images(db, article_id), is_liked)

# backend/bidbuy/articles/queries.py
"""
게시글 목록 조회 (읽기 전용 projection).

모든 목록은 ArticleSummary 행으로 투영되고 PageResponse로 감싸집니다.
페이지 번호는 0부터 시작하며, size는 PAGE_SIZE_MAX를 넘을 수 없습니다.
"""
import logging
from typing import Any, List, Optional, Sequence, Type

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..likes.models import LikeArticle
from ..models import PageResponse
from ..offers.models import Offer
from ..reviews.models import Review
from .models import Article, ProductImage, SortKey, TradeStatus
from .schemas import ArticleSummary, PurchasedArticleSummary

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20

# 같은 정렬 값끼리는 최신 글(id 내림차순)이 먼저 오도록 보조 정렬
ORDER_BY = {
    SortKey.LATEST: (Article.created_at.desc(), Article.id.desc()),
    SortKey.HIGH_PRICE: (Article.price.desc(), Article.id.desc()),
    SortKey.LOW_PRICE: (Article.price.asc(), Article.id.desc()),
}


def clamp_size(size: Optional[int]) -> int:
    if not size or size < 1:
        return DEFAULT_PAGE_SIZE
    return min(size, settings.PAGE_SIZE_MAX)


def _thumbnail_column():
    return (
        select(ProductImage.image_url)
        .where(ProductImage.article_id == Article.id)
        .order_by(ProductImage.id)
        .limit(1)
        .correlate(Article)
        .scalar_subquery()
        .label("thumbnail_url")
    )


def _is_liked_column(viewer_id: int):
    return (
        select(LikeArticle.user_id)
        .where(LikeArticle.article_id == Article.id, LikeArticle.user_id == viewer_id)
        .exists()
        .label("is_liked")
    )


def _summary_columns(viewer_id: Optional[int]) -> List[Any]:
    columns = [
        Article.id,
        Article.title,
        Article.price,
        Article.addr1,
        Article.addr2,
        Article.trade_status,
        Article.like_count,
        Article.created_at,
        _thumbnail_column(),
    ]
    if viewer_id is not None:
        columns.append(_is_liked_column(viewer_id))
    return columns


async def _paginate(
    db: AsyncSession,
    filters: Sequence[Any],
    *,
    viewer_id: Optional[int],
    sort: SortKey,
    page: int,
    size: Optional[int],
    extra_columns: Sequence[Any] = (),
    row_model: Type[ArticleSummary] = ArticleSummary,
) -> PageResponse:
    page = max(page, 0)
    size = clamp_size(size)

    total = (
        await db.execute(select(func.count(Article.id)).where(*filters))
    ).scalar_one()

    stmt = (
        select(*_summary_columns(viewer_id), *extra_columns)
        .where(*filters)
        .order_by(*ORDER_BY[sort])
        .offset(page * size)
        .limit(size)
    )
    rows = (await db.execute(stmt)).mappings().all()
    content = [row_model.model_validate(dict(row)) for row in rows]
    return PageResponse[row_model].of(content, page=page, size=size, total=total)


async def list_sale_articles(
    db: AsyncSession,
    viewer_id: Optional[int],
    sort: SortKey = SortKey.LATEST,
    page: int = 0,
    size: Optional[int] = None,
) -> PageResponse:
    """판매중(SALE) 게시글 목록. 로그인 사용자에게는 isLiked를 채웁니다."""
    return await _paginate(
        db,
        [Article.trade_status == TradeStatus.SALE],
        viewer_id=viewer_id, sort=sort, page=page, size=size,
    )


async def list_by_writer_and_status(
    db: AsyncSession,
    writer_id: int,
    status: TradeStatus,
    viewer_id: Optional[int],
    sort: SortKey = SortKey.LATEST,
    page: int = 0,
    size: Optional[int] = None,
) -> PageResponse:
    return await _paginate(
        db,
        [Article.writer_id == writer_id, Article.trade_status == status],
        viewer_id=viewer_id, sort=sort, page=page, size=size,
    )


async def list_liked_by_user(
    db: AsyncSession,
    user_id: int,
    sort: SortKey = SortKey.LATEST,
    page: int = 0,
    size: Optional[int] = None,
) -> PageResponse:
    liked = (
        select(LikeArticle.user_id)
        .where(LikeArticle.article_id == Article.id, LikeArticle.user_id == user_id)
        .exists()
    )
    return await _paginate(db, [liked], viewer_id=user_id, sort=sort, page=page, size=size)


async def list_offered_by_user(
    db: AsyncSession,
    user_id: int,
    sort: SortKey = SortKey.LATEST,
    page: int = 0,
    size: Optional[int] = None,
) -> PageResponse:
    """사용자가 가격을 제안한 게시글 (제안이 여러 건이어도 게시글은 한 번만)"""
    offered = (
        select(Offer.id)
        .where(Offer.article_id == Article.id, Offer.offerer_id == user_id)
        .exists()
    )
    return await _paginate(db, [offered], viewer_id=user_id, sort=sort, page=page, size=size)


async def list_purchased_by_user(
    db: AsyncSession,
    user_id: int,
    sort: SortKey = SortKey.LATEST,
    page: int = 0,
    size: Optional[int] = None,
) -> PageResponse:
    """
    구매 내역: 사용자의 제안이 선택되었고 거래가 완료(COMPLETE)된 게시글.
    isReviewed는 사용자가 그 게시글에 리뷰를 남겼는지 여부입니다.
    """
    purchased = (
        select(Offer.id)
        .where(
            Offer.article_id == Article.id,
            Offer.offerer_id == user_id,
            Offer.is_selected.is_(True),
        )
        .exists()
    )
    is_reviewed = (
        select(Review.id)
        .where(Review.article_id == Article.id, Review.reviewer_id == user_id)
        .exists()
        .label("is_reviewed")
    )
    return await _paginate(
        db,
        [purchased, Article.trade_status == TradeStatus.COMPLETE],
        viewer_id=user_id, sort=sort, page=page, size=size,
        extra_columns=[is_reviewed],
        row_model=PurchasedArticleSummary,
    )


async def count_by_writer(db: AsyncSession, writer_id: int) -> int:
    result = await db.execute(select(func.count(Article.id)).where(Article.writer_id == writer_id))
    return result.scalar_one()

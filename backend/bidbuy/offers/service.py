# backend/bidbuy/offers/service.py
"""
가격 제안과 거래 상태 머신.

    SALE ──select──▶ RESERVED ──complete──▶ COMPLETE
    SALE ◀─unselect─ RESERVED ◀──reopen──── COMPLETE

되돌리는 전이(unselect, reopen)는 해당 게시글에 리뷰가 없을 때만 허용됩니다.
모든 전이는 게시글 행을 잠근 상태에서 한 트랜잭션으로 처리합니다.
"""
import logging
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..articles.models import Article, TradeStatus
from ..articles.service import get_article, get_article_or_404, require_user_id
from ..auth.schema import Principal
from ..errors import BidBuyError, ErrorKind
from ..reviews.models import Review
from .models import Offer
from .schemas import TradeStateResponse

logger = logging.getLogger(__name__)


async def get_offer(db: AsyncSession, offer_id: int) -> Optional[Offer]:
    result = await db.execute(select(Offer).where(Offer.id == offer_id))
    return result.scalar_one_or_none()


async def get_selected_offers(db: AsyncSession, article_id: int) -> List[Offer]:
    result = await db.execute(
        select(Offer)
        .where(Offer.article_id == article_id, Offer.is_selected.is_(True))
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_offers_by_article(db: AsyncSession, article_id: int) -> List[Offer]:
    result = await db.execute(
        select(Offer)
        .where(Offer.article_id == article_id)
        .order_by(Offer.created_at.desc(), Offer.id.desc())
    )
    return list(result.scalars().all())


async def list_offers(db: AsyncSession, article_id: int) -> List[Offer]:
    if await get_article(db, article_id) is None:
        raise BidBuyError(ErrorKind.NOT_FOUND, f"Article {article_id} not found")
    return await list_offers_by_article(db, article_id)


async def count_offers_by_offerer(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(select(func.count(Offer.id)).where(Offer.offerer_id == user_id))
    return result.scalar_one()


async def count_purchased(db: AsyncSession, user_id: int) -> int:
    """선택된 제안 중 거래가 완료된 게시글 수"""
    result = await db.execute(
        select(func.count(Offer.id))
        .join(Article, Article.id == Offer.article_id)
        .where(
            Offer.offerer_id == user_id,
            Offer.is_selected.is_(True),
            Article.trade_status == TradeStatus.COMPLETE,
        )
    )
    return result.scalar_one()


async def has_review(db: AsyncSession, article_id: int) -> bool:
    result = await db.execute(select(Review.id).where(Review.article_id == article_id).limit(1))
    return result.first() is not None


def _ensure_writer(article: Article, principal: Principal) -> None:
    if article.writer_id != principal.user_id:
        raise BidBuyError(ErrorKind.FORBIDDEN, "Only the writer can change the trade state")


def _state(article: Article, selected: Optional[Offer] = None) -> TradeStateResponse:
    return TradeStateResponse(
        article_id=article.id,
        trade_status=article.trade_status,
        selected_offer_id=selected.id if selected else None,
    )


async def place_offer(db: AsyncSession, principal: Principal, article_id: int, price: int) -> Offer:
    offerer_id = require_user_id(principal)
    article = await get_article_or_404(db, article_id, for_update=True)
    if article.trade_status != TradeStatus.SALE:
        raise BidBuyError(ErrorKind.CONFLICT, f"Article {article_id} is not on sale")
    if article.writer_id == offerer_id:
        raise BidBuyError(ErrorKind.FORBIDDEN, "You cannot make an offer on your own article")

    offer = Offer(article_id=article_id, offerer_id=offerer_id, price=price, is_selected=False)
    db.add(offer)
    await db.commit()
    logger.info(f"Offer {offer.id} placed on article {article_id} by user_id={offerer_id} price={price}")
    return offer


async def withdraw_offer(db: AsyncSession, principal: Principal, offer_id: int) -> None:
    user_id = require_user_id(principal)
    offer = await get_offer(db, offer_id)
    if offer is None:
        raise BidBuyError(ErrorKind.NOT_FOUND, f"Offer {offer_id} not found")
    if offer.offerer_id != user_id:
        raise BidBuyError(ErrorKind.FORBIDDEN, "Only the offerer can withdraw this offer")

    # select_offer와 직렬화: 게시글을 잠근 뒤 선택되지 않은 제안만 삭제
    await get_article_or_404(db, offer.article_id, for_update=True)
    result = await db.execute(
        delete(Offer)
        .where(Offer.id == offer_id, Offer.is_selected.is_(False))
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        await db.rollback()
        raise BidBuyError(ErrorKind.FORBIDDEN, "A selected offer cannot be withdrawn")
    await db.commit()
    logger.info(f"Offer {offer_id} withdrawn by user_id={user_id}")


async def select_offer(db: AsyncSession, principal: Principal, offer_id: int) -> TradeStateResponse:
    require_user_id(principal)
    offer = await get_offer(db, offer_id)
    if offer is None:
        raise BidBuyError(ErrorKind.NOT_FOUND, f"Offer {offer_id} not found")

    article = await get_article_or_404(db, offer.article_id, for_update=True)
    _ensure_writer(article, principal)
    if article.trade_status != TradeStatus.SALE:
        raise BidBuyError(ErrorKind.CONFLICT, f"Article {article.id} is not on sale")

    await db.execute(
        update(Offer)
        .where(Offer.article_id == article.id, Offer.id != offer.id)
        .values(is_selected=False)
    )
    offer.is_selected = True
    article.trade_status = TradeStatus.RESERVED
    await db.commit()
    logger.info(f"Article {article.id}: SALE -> RESERVED (offer {offer.id} selected)")
    return _state(article, offer)


async def complete_trade(db: AsyncSession, principal: Principal, article_id: int) -> TradeStateResponse:
    require_user_id(principal)
    article = await get_article_or_404(db, article_id, for_update=True)
    _ensure_writer(article, principal)
    if article.trade_status != TradeStatus.RESERVED:
        raise BidBuyError(ErrorKind.CONFLICT, f"Article {article_id} is not reserved")

    selected = await get_selected_offers(db, article_id)
    if len(selected) != 1:
        raise BidBuyError(ErrorKind.CONFLICT, f"Article {article_id} must have exactly one selected offer")

    article.trade_status = TradeStatus.COMPLETE
    await db.commit()
    logger.info(f"Article {article_id}: RESERVED -> COMPLETE (offer {selected[0].id})")
    return _state(article, selected[0])


async def unselect_offer(db: AsyncSession, principal: Principal, article_id: int) -> TradeStateResponse:
    require_user_id(principal)
    article = await get_article_or_404(db, article_id, for_update=True)
    _ensure_writer(article, principal)
    if article.trade_status != TradeStatus.RESERVED:
        raise BidBuyError(ErrorKind.CONFLICT, f"Article {article_id} is not reserved")
    if await has_review(db, article_id):
        raise BidBuyError(ErrorKind.CONFLICT, f"Article {article_id} already has a review")

    await db.execute(
        update(Offer)
        .where(Offer.article_id == article_id, Offer.is_selected.is_(True))
        .values(is_selected=False)
    )
    article.trade_status = TradeStatus.SALE
    await db.commit()
    logger.info(f"Article {article_id}: RESERVED -> SALE (selection cleared)")
    return _state(article)


async def reopen_trade(db: AsyncSession, principal: Principal, article_id: int) -> TradeStateResponse:
    require_user_id(principal)
    article = await get_article_or_404(db, article_id, for_update=True)
    _ensure_writer(article, principal)
    if article.trade_status != TradeStatus.COMPLETE:
        raise BidBuyError(ErrorKind.CONFLICT, f"Article {article_id} is not complete")
    if await has_review(db, article_id):
        raise BidBuyError(ErrorKind.CONFLICT, f"Article {article_id} already has a review")

    selected = await get_selected_offers(db, article_id)
    article.trade_status = TradeStatus.RESERVED
    await db.commit()
    logger.info(f"Article {article_id}: COMPLETE -> RESERVED")
    return _state(article, selected[0] if selected else None)

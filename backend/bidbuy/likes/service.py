# backend/bidbuy/likes/service.py
import logging
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..articles.service import get_article_or_404, require_user_id
from ..auth.schema import Principal
from ..errors import BidBuyError, ErrorKind
from .models import LikeArticle

logger = logging.getLogger(__name__)


class LikeState(str, PyEnum):
    ADDED = "ADDED"
    REMOVED = "REMOVED"


async def find_like(db: AsyncSession, user_id: int, article_id: int) -> Optional[LikeArticle]:
    result = await db.execute(
        select(LikeArticle).where(
            LikeArticle.user_id == user_id,
            LikeArticle.article_id == article_id,
        )
    )
    return result.scalar_one_or_none()


async def count_likes_by_user(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(select(func.count()).select_from(LikeArticle).where(LikeArticle.user_id == user_id))
    return result.scalar_one()


async def toggle_like(db: AsyncSession, principal: Principal, article_id: int) -> LikeState:
    """
    찜 토글. 게시글 행을 잠근 상태에서 찜 행과 like_count를 함께 변경하므로
    커밋 시점에 like_count는 항상 찜 행 수와 같습니다.
    """
    user_id = require_user_id(principal)
    article = await get_article_or_404(db, article_id, for_update=True)
    if article.writer_id == user_id:
        raise BidBuyError(ErrorKind.FORBIDDEN, "You cannot like your own article")

    existing = await find_like(db, user_id, article_id)
    if existing is not None:
        await db.execute(
            delete(LikeArticle).where(
                LikeArticle.user_id == user_id,
                LikeArticle.article_id == article_id,
            )
        )
        article.like_count = max(article.like_count - 1, 0)
        await db.commit()
        logger.info(f"User {user_id} removed like on article {article_id} (like_count={article.like_count})")
        return LikeState.REMOVED

    db.add(LikeArticle(user_id=user_id, article_id=article_id))
    article.like_count = article.like_count + 1
    try:
        await db.commit()
    except IntegrityError:
        # 동시에 들어온 같은 찜 요청이 먼저 반영됨: 카운터는 그쪽에서 이미 올렸음
        await db.rollback()
        logger.info(f"Duplicate like on article {article_id} by user {user_id} ignored")
        return LikeState.ADDED

    logger.info(f"User {user_id} liked article {article_id} (like_count={article.like_count})")
    return LikeState.ADDED

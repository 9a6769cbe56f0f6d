# backend/bidbuy/likes/router.py
from fastapi import APIRouter

from ..auth.dependencies import CurrentPrincipal
from ..auth.schema import Principal
from ..database import SessionDep
from .schemas import LikeResponse
from . import service

router = APIRouter(prefix="/api/articles", tags=["likes"])


@router.post("/{article_id}/like", response_model=LikeResponse)
async def toggle_like(article_id: int, db: SessionDep, principal: Principal = CurrentPrincipal):
    state = await service.toggle_like(db, principal, article_id)
    return LikeResponse(state=state)

# backend/bidbuy/reviews/router.py
from fastapi import APIRouter, status

from ..auth.dependencies import CurrentPrincipal
from ..auth.schema import Principal
from ..database import SessionDep
from .schemas import ReviewCreate, ReviewOut
from . import service

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


@router.post("", response_model=ReviewOut, status_code=status.HTTP_201_CREATED)
async def post_review(body: ReviewCreate, db: SessionDep, principal: Principal = CurrentPrincipal):
    return await service.post_review(db, principal, body.article_id, body.score, body.content)

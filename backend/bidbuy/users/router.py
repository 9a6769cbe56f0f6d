from typing import Optional

from fastapi import APIRouter, Query

from ..articles import queries as article_queries
from ..articles.models import SortKey, TradeStatus
from ..articles.schemas import ArticleSummary, PurchasedArticleSummary
from ..auth.dependencies import CurrentPrincipal, OptionalPrincipal
from ..auth.schema import Principal
from ..database import SessionDep
from ..models import PageResponse
from .schema import MyProfileResponse, UserMe, UserProfileResponse, UserPublic
from . import service as user_service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=MyProfileResponse)
async def read_my_profile(db: SessionDep, principal: Principal = CurrentPrincipal):
    user = await user_service.get_user_or_404(principal.user_id, db)
    counts = await user_service.get_profile_counts(db, user.id)
    return MyProfileResponse(user=UserMe.model_validate(user), counts=counts)


@router.get("/me/likes", response_model=PageResponse[ArticleSummary])
async def read_my_likes(
    db: SessionDep,
    principal: Principal = CurrentPrincipal,
    sort: Optional[str] = None,
    page: int = Query(0, ge=0),
    size: Optional[int] = Query(None, ge=1),
):
    return await article_queries.list_liked_by_user(db, principal.user_id, SortKey.parse(sort), page, size)


@router.get("/me/offers", response_model=PageResponse[ArticleSummary])
async def read_my_offers(
    db: SessionDep,
    principal: Principal = CurrentPrincipal,
    sort: Optional[str] = None,
    page: int = Query(0, ge=0),
    size: Optional[int] = Query(None, ge=1),
):
    return await article_queries.list_offered_by_user(db, principal.user_id, SortKey.parse(sort), page, size)


@router.get("/me/buys", response_model=PageResponse[PurchasedArticleSummary])
async def read_my_buys(
    db: SessionDep,
    principal: Principal = CurrentPrincipal,
    sort: Optional[str] = None,
    page: int = Query(0, ge=0),
    size: Optional[int] = Query(None, ge=1),
):
    return await article_queries.list_purchased_by_user(db, principal.user_id, SortKey.parse(sort), page, size)


@router.get("/{user_id}", response_model=UserProfileResponse)
async def read_user_profile(user_id: int, db: SessionDep):
    user = await user_service.get_user_or_404(user_id, db)
    counts = await user_service.get_profile_counts(db, user.id)
    return UserProfileResponse(user=UserPublic.model_validate(user), counts=counts)


@router.get("/{user_id}/sales", response_model=PageResponse[ArticleSummary])
async def read_user_sales(
    user_id: int,
    db: SessionDep,
    principal: Principal = OptionalPrincipal,
    status: TradeStatus = TradeStatus.SALE,
    sort: Optional[str] = None,
    page: int = Query(0, ge=0),
    size: Optional[int] = Query(None, ge=1),
):
    return await user_service.list_sales(db, principal, user_id, status, SortKey.parse(sort), page, size)

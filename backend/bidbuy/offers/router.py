# backend/bidbuy/offers/router.py
from typing import List

from fastapi import APIRouter, status

from ..auth.dependencies import CurrentPrincipal
from ..auth.schema import Principal
from ..database import SessionDep
from .schemas import OfferCreate, OfferOut, TradeStateResponse
from . import service

router = APIRouter(prefix="/api", tags=["offers"])


@router.get("/articles/{article_id}/offers", response_model=List[OfferOut])
async def list_offers(article_id: int, db: SessionDep):
    return await service.list_offers(db, article_id)


@router.post("/articles/{article_id}/offers", response_model=OfferOut, status_code=status.HTTP_201_CREATED)
async def place_offer(
    article_id: int,
    body: OfferCreate,
    db: SessionDep,
    principal: Principal = CurrentPrincipal,
):
    return await service.place_offer(db, principal, article_id, body.price)


@router.delete("/offers/{offer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def withdraw_offer(offer_id: int, db: SessionDep, principal: Principal = CurrentPrincipal):
    await service.withdraw_offer(db, principal, offer_id)
    return


@router.post("/offers/{offer_id}/select", response_model=TradeStateResponse)
async def select_offer(offer_id: int, db: SessionDep, principal: Principal = CurrentPrincipal):
    return await service.select_offer(db, principal, offer_id)


@router.post("/articles/{article_id}/unselect", response_model=TradeStateResponse)
async def unselect_offer(article_id: int, db: SessionDep, principal: Principal = CurrentPrincipal):
    return await service.unselect_offer(db, principal, article_id)


@router.post("/articles/{article_id}/complete", response_model=TradeStateResponse)
async def complete_trade(article_id: int, db: SessionDep, principal: Principal = CurrentPrincipal):
    return await service.complete_trade(db, principal, article_id)


@router.post("/articles/{article_id}/reopen", response_model=TradeStateResponse)
async def reopen_trade(article_id: int, db: SessionDep, principal: Principal = CurrentPrincipal):
    return await service.reopen_trade(db, principal, article_id)

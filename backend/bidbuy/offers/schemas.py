from datetime import datetime
from typing import Optional

from pydantic import Field

from ..articles.models import TradeStatus
from ..models import CustomModel


class OfferCreate(CustomModel):
    price: int = Field(..., ge=0, json_schema_extra={"example": 9000})


class OfferOut(CustomModel):
    id: int
    article_id: int
    offerer_id: int
    price: int
    is_selected: bool
    created_at: datetime


class TradeStateResponse(CustomModel):
    """거래 상태 전이 결과"""
    article_id: int
    trade_status: TradeStatus
    selected_offer_id: Optional[int] = None

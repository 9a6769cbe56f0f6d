from datetime import datetime

from pydantic import Field

from ..models import CustomModel
from .models import MAX_SCORE, MIN_SCORE


class ReviewCreate(CustomModel):
    article_id: int
    score: int = Field(..., ge=MIN_SCORE, le=MAX_SCORE, json_schema_extra={"example": 5})
    content: str = Field("", max_length=1000, json_schema_extra={"example": "친절하게 거래해주셨어요"})


class ReviewOut(CustomModel):
    id: int
    article_id: int
    reviewer_id: int
    reviewee_id: int
    score: int
    content: str
    created_at: datetime

# backend/bidbuy/articles/schemas.py
from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field

from ..models import CustomModel
from .models import Article, ProductImage, TradeMethod, TradeStatus


class ArticleCreate(CustomModel):
    title: str = Field(..., min_length=1, max_length=100, json_schema_extra={"example": "아이폰 15 프로 팝니다"})
    content: str = Field(..., min_length=1, json_schema_extra={"example": "생활기스 조금 있습니다."})
    price: int = Field(..., ge=0, json_schema_extra={"example": 10000})
    quantity: int = Field(1, ge=1)
    category: str = Field(..., min_length=1, max_length=50, json_schema_extra={"example": "DIGITAL"})
    trade_method: TradeMethod = TradeMethod.DIRECT
    addr1: Optional[str] = Field(None, max_length=255)
    addr2: Optional[str] = Field(None, max_length=255)


class ArticleUpdate(CustomModel):
    """
    부분 수정 요청. None인 필드는 "기존 값 유지"입니다.
    id, 작성자, 조회수/찜수, 생성일, 거래 상태는 이 요청으로 바꿀 수 없습니다.
    """
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    content: Optional[str] = Field(None, min_length=1)
    price: Optional[int] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=1)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    trade_method: Optional[TradeMethod] = None
    addr1: Optional[str] = Field(None, max_length=255)
    addr2: Optional[str] = Field(None, max_length=255)
    # 이미지는 multipart 파일 파트로만 받습니다. JSON 파트의 images 값은 무시합니다.
    images: Optional[List[Any]] = Field(None, exclude=True)

    def merge_into(self, article: Article) -> List[str]:
        """None이 아닌 필드만 article에 덮어쓰고, 바뀐 필드 이름을 반환합니다."""
        changed = []
        for field, value in self.model_dump(exclude_none=True).items():
            setattr(article, field, value)
            changed.append(field)
        return changed


class ProductImageOut(CustomModel):
    id: int
    image_url: str


class ArticleDetail(CustomModel):
    id: int
    writer_id: int
    title: str
    content: str
    price: int
    quantity: int
    category: str
    trade_method: TradeMethod
    addr1: Optional[str] = None
    addr2: Optional[str] = None
    view_count: int
    like_count: int
    trade_status: TradeStatus
    created_at: datetime
    modified_at: datetime
    images: List[ProductImageOut] = Field(default_factory=list)
    is_liked: Optional[bool] = None  # 비로그인 조회 시 None

    @classmethod
    def of(cls, article: Article, images: List[ProductImage], is_liked: Optional[bool] = None) -> "ArticleDetail":
        detail = cls.model_validate(article)
        return detail.model_copy(update={
            "images": [ProductImageOut.model_validate(image) for image in images],
            "is_liked": is_liked,
        })


class ArticleSummary(CustomModel):
    """목록 조회 한 행 (projection)"""
    id: int
    title: str
    price: int
    addr1: Optional[str] = None
    addr2: Optional[str] = None
    trade_status: TradeStatus
    like_count: int
    created_at: datetime
    thumbnail_url: Optional[str] = None
    is_liked: Optional[bool] = None


class PurchasedArticleSummary(ArticleSummary):
    is_reviewed: bool = False

# backend/bidbuy/articles/models.py
from enum import Enum as PyEnum
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey,
    Enum as SQLEnum, Index, CheckConstraint
)
from ..database import Base, utcnow


class TradeStatus(str, PyEnum):
    SALE = "SALE"            # 판매중
    RESERVED = "RESERVED"    # 구매자 선택됨 (예약중)
    COMPLETE = "COMPLETE"    # 거래 완료


class TradeMethod(str, PyEnum):
    DIRECT = "DIRECT"        # 직거래
    DELIVERY = "DELIVERY"    # 택배거래
    BOTH = "BOTH"


class SortKey(str, PyEnum):
    LATEST = "latest"
    HIGH_PRICE = "high-price"
    LOW_PRICE = "low-price"

    @classmethod
    def parse(cls, value: str | None) -> "SortKey":
        """알 수 없는 정렬 값은 기본값(latest)으로 처리합니다."""
        if value is None:
            return cls.LATEST
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.LATEST


class Article(Base):
    __tablename__ = "articles"
    __table_args__ = (
        Index("ix_articles_writer_id_trade_status", "writer_id", "trade_status"),
        CheckConstraint("price >= 0", name="ck_articles_price_non_negative"),
        CheckConstraint("quantity >= 1", name="ck_articles_quantity_positive"),
        CheckConstraint("like_count >= 0", name="ck_articles_like_count_non_negative"),
        CheckConstraint("view_count >= 0", name="ck_articles_view_count_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    writer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    content = Column(Text, nullable=False)
    price = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    category = Column(String(50), nullable=False)
    trade_method = Column(SQLEnum(TradeMethod, name="trade_method"), nullable=False, default=TradeMethod.DIRECT)
    addr1 = Column(String(255))
    addr2 = Column(String(255))
    # 아래 세 필드는 각각 조회 / 찜 / 거래 상태 머신에서만 변경됩니다.
    view_count = Column(Integer, nullable=False, default=0)
    like_count = Column(Integer, nullable=False, default=0)
    trade_status = Column(SQLEnum(TradeStatus, name="trade_status"), nullable=False, default=TradeStatus.SALE, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    modified_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"Article(id={self.id}, writer_id={self.writer_id}, title={self.title!r}, trade_status={self.trade_status!r})"
    def __str__(self) -> str:
        return f"{self.title} ({self.trade_status})"


class ProductImage(Base):
    __tablename__ = "product_images"

    id = Column(Integer, primary_key=True, index=True)
    article_id = Column(Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True)
    image_url = Column(String(500), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"ProductImage(id={self.id}, article_id={self.article_id}, image_url={self.image_url!r})"

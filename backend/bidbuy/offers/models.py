# backend/bidbuy/offers/models.py
from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, Index, CheckConstraint
from ..database import Base, utcnow


class Offer(Base):
    __tablename__ = "offers"
    __table_args__ = (
        Index("ix_offers_article_id_is_selected", "article_id", "is_selected"),
        CheckConstraint("price >= 0", name="ck_offers_price_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    article_id = Column(Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True)
    offerer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    price = Column(Integer, nullable=False)
    is_selected = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"Offer(id={self.id}, article_id={self.article_id}, offerer_id={self.offerer_id}, price={self.price}, is_selected={self.is_selected})"

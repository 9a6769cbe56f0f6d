# backend/bidbuy/reviews/models.py
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, UniqueConstraint, Index, CheckConstraint
from ..database import Base, utcnow

MIN_SCORE = 1
MAX_SCORE = 5


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        # 게시글당 작성자별 리뷰는 1건
        UniqueConstraint("article_id", "reviewer_id", name="uq_reviews_article_id_reviewer_id"),
        Index("ix_reviews_reviewee_id", "reviewee_id"),
        CheckConstraint(f"score BETWEEN {MIN_SCORE} AND {MAX_SCORE}", name="ck_reviews_score_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    article_id = Column(Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    reviewee_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    score = Column(Integer, nullable=False)
    content = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"Review(id={self.id}, article_id={self.article_id}, reviewer_id={self.reviewer_id}, reviewee_id={self.reviewee_id}, score={self.score})"

# backend/bidbuy/likes/models.py
from sqlalchemy import Column, Integer, DateTime, ForeignKey, Index
from ..database import Base, utcnow


class LikeArticle(Base):
    """(user_id, article_id) 복합 PK로 사용자당 게시글 찜은 최대 1건."""
    __tablename__ = "like_articles"
    __table_args__ = (
        Index("ix_like_articles_article_id_user_id", "article_id", "user_id"),
    )

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    article_id = Column(Integer, ForeignKey("articles.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"LikeArticle(user_id={self.user_id}, article_id={self.article_id})"

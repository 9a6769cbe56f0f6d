# backend/bidbuy/auth/models.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from ..database import Base, utcnow


class RefreshToken(Base):
    """
    발급된 refresh 토큰 저장소.
    레코드가 존재하는 동안만 토큰이 유효하며, 재발급(rotation)이나 로그아웃 시 삭제됩니다.
    """
    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    username = Column(String(100), nullable=False)
    token = Column(String(1024), nullable=False, unique=True, index=True)
    expiration = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        # 토큰 문자열은 노출하지 않음
        return f"RefreshToken(id={self.id}, user_id={self.user_id}, expiration={self.expiration})"

# backend/bidbuy/users/models.py
from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum, UniqueConstraint, CheckConstraint
from ..database import Base, utcnow


class UserRole(str, PyEnum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("provider", "provider_id", name="uq_users_provider_provider_id"),
        CheckConstraint("score >= 0", name="ck_users_score_non_negative"),
        CheckConstraint("offer_level >= 1", name="ck_users_offer_level_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(100), unique=True, index=True)
    username = Column(String(100), nullable=False)  # 화면 표시용 이름
    name = Column(String(50))
    addr1 = Column(String(255))
    addr2 = Column(String(255))
    provider = Column(String(30), nullable=False)     # google, naver, kakao ...
    provider_id = Column(String(255), nullable=False)
    profile_image_url = Column(String(500))
    score = Column(Integer, nullable=False, default=0)         # 받은 리뷰 점수 합계
    review_count = Column(Integer, nullable=False, default=0)  # 받은 리뷰 수
    offer_level = Column(Integer, nullable=False, default=1, server_default="1")
    role = Column(SQLEnum(UserRole, name="user_role"), nullable=False, default=UserRole.USER)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"User(id={self.id}, username={self.username!r}, email={self.email!r}, role={self.role!r})"
    def __str__(self) -> str:
        return f"{self.username} ({self.email})"

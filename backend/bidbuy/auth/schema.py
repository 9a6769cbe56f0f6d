from dataclasses import dataclass
from typing import Optional

from pydantic import EmailStr, Field

from ..models import CustomModel
from ..users.models import UserRole


@dataclass(frozen=True)
class Principal:
    """요청 호출자. 인증되지 않은 요청은 ANONYMOUS 입니다."""
    user_id: Optional[int]
    username: Optional[str]
    role: Optional[UserRole]

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None


ANONYMOUS = Principal(user_id=None, username=None, role=None)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class OAuthProfile(CustomModel):
    """IdP ID 토큰의 검증된 클레임에서 만든 사용자 프로필"""
    provider: str = Field(..., min_length=1, max_length=30, json_schema_extra={"example": "google"})
    provider_id: str = Field(..., min_length=1, max_length=255, json_schema_extra={"example": "108234981234"})
    email: EmailStr = Field(..., json_schema_extra={"example": "user@example.com"})
    username: str = Field(..., min_length=1, max_length=100, json_schema_extra={"example": "홍길동"})
    profile_image_url: Optional[str] = Field(None, max_length=500)


class HandshakeRequest(CustomModel):
    """웹 클라이언트가 IdP 로그인 후 받은 ID 토큰"""
    provider: str = Field(..., min_length=1, max_length=30, json_schema_extra={"example": "google"})
    id_token: str = Field(..., min_length=1)


class TokenResponse(CustomModel):
    access_token: str
    token_type: str = "bearer"

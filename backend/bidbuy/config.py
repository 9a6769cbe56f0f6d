import json
from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class IdentityProviderSettings(BaseModel):
    """외부 인증 제공자(IdP)의 ID 토큰 검증 정보"""
    issuer: str
    audience: str
    algorithms: List[str] = ["RS256"]
    # 둘 중 하나: 공개키 목록 URL(JWKS) 또는 직접 지정한 키(공유 비밀, PEM, JWKS JSON)
    jwks_url: Optional[str] = None
    key: Optional[str] = None


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_file="../.env", env_file_encoding="utf-8", extra="ignore")

    # FastAPI 애플리케이션 설정
    ENVIRONMENT: str = "development"
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    LOG_LEVEL: str = "INFO"  # 로그 레벨 설정

    # 데이터베이스 설정
    POSTGRES_SSLMODE: str = "disable"
    DATABASE_URL: str = "postgresql+asyncpg://bidbuy:postgres@db:5432/bidbuy"

    # JWT 인증 설정 (HMAC 키는 최소 256bit)
    JWT_SECRET_KEY: str = "change-me-bidbuy-development-secret-key-0123456789"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_HOURS: int = 24

    # 쿠키 설정
    ACCESS_COOKIE_NAME: str = "access"
    REFRESH_COOKIE_NAME: str = "refresh"
    COOKIE_SECURE: bool = False  # 배포 환경(HTTPS)에서 True

    # 외부 인증 제공자 설정 (JSON: {"google": {"issuer": ..., "audience": ..., "jwks_url": ...}})
    OAUTH_PROVIDERS: Dict[str, IdentityProviderSettings] = {}
    OAUTH_JWKS_TIMEOUT: float = 10.0

    # CORS 설정
    # 쉼표 구분 문자열 또는 JSON 배열 모두 허용 (아래 validator에서 파싱)
    CORS_ORIGINS: Annotated[List[str], NoDecode] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # 상품 이미지 저장소
    MEDIA_DIR: str = "media"
    MEDIA_URL_PREFIX: str = "/media"
    MAX_IMAGES_PER_ARTICLE: int = 10

    # 목록 조회
    PAGE_SIZE_MAX: int = 100

    @property
    def refresh_token_max_age(self) -> int:
        """refresh 쿠키 Max-Age (초)"""
        return self.REFRESH_TOKEN_EXPIRE_HOURS * 60 * 60

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _normalise_cors(cls, value):
        if isinstance(value, list):
            return value
        if isinstance(value, str):
            raw = value.strip()
            if raw.startswith("[") and raw.endswith("]"):
                try:
                    parsed = json.loads(raw)
                    if isinstance(parsed, list):
                        return parsed
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in raw.split(",") if item.strip()]
        raise ValueError("CORS_ORIGINS must be a string or list of strings")

    @model_validator(mode="after")
    def _ensure_secret_key(self):
        # HS256 서명 키는 32바이트 이상이어야 함
        if len(self.JWT_SECRET_KEY.encode("utf-8")) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 256 bits (32 bytes) long.")
        return self


settings = Config()

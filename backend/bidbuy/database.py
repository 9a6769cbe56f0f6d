from datetime import datetime, timezone
from typing import Annotated, AsyncGenerator

from fastapi import Depends

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings

Base = declarative_base()


def utcnow() -> datetime:
    """모델 타임스탬프 기본값 (flush 직후 인스턴스에서 바로 읽을 수 있도록 파이썬 측에서 채움)"""
    return datetime.now(timezone.utc)


# asyncpg 전용 옵션은 PostgreSQL 연결일 때만 전달
connect_args = {}
if settings.DATABASE_URL.startswith("postgresql"):
    connect_args["ssl"] = settings.POSTGRES_SSLMODE == "require"

engine = create_async_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,               # 연결 사전 체크
    pool_recycle=1800,                # 30분마다 재연결
    connect_args=connect_args,
)

async_session_factory = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as sess:  # 커밋되지 않은 트랜잭션은 close 시 롤백
        yield sess

# Annotated 별칭: 다른 모듈에서 `db: SessionDep` 만 적으면 세션이 주입됩니다.
SessionDep = Annotated[AsyncSession, Depends(get_db)]

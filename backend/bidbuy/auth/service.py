import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

from jose import jwt, JWTError, ExpiredSignatureError
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..errors import BidBuyError, ErrorKind
from ..users.models import User, UserRole
from .models import RefreshToken
from .schema import ANONYMOUS, Principal, TokenPair

logger = logging.getLogger(__name__)

ACCESS_CATEGORY = "access"
REFRESH_CATEGORY = "refresh"


def access_token_ttl() -> timedelta:
    return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def refresh_token_ttl() -> timedelta:
    return timedelta(hours=settings.REFRESH_TOKEN_EXPIRE_HOURS)


def create_token(
    category: str,
    *,
    user_id: int,
    username: str,
    role: str,
    expires_delta: timedelta,
) -> Tuple[str, datetime]:
    """
    서명된 JWT를 생성하고 (토큰, 만료시각)을 반환합니다.
    같은 초에 발급된 토큰끼리도 문자열이 겹치지 않도록 jti를 넣습니다.
    """
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + expires_delta
    to_encode = {
        "category": category,
        "userId": user_id,
        "username": username,
        "role": role,
        "iat": issued_at,
        "exp": expire,
        "jti": uuid.uuid4().hex,
    }
    token = jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return token, expire


def decode_token(token: str) -> Dict:
    """서명과 만료를 검증합니다. 실패 시 jose 예외(ExpiredSignatureError, JWTError)를 그대로 던집니다."""
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


def _mint_pair(user_id: int, username: str, role: str) -> Tuple[TokenPair, datetime]:
    access_token, _ = create_token(
        ACCESS_CATEGORY, user_id=user_id, username=username, role=role, expires_delta=access_token_ttl()
    )
    refresh_token, refresh_expire = create_token(
        REFRESH_CATEGORY, user_id=user_id, username=username, role=role, expires_delta=refresh_token_ttl()
    )
    return TokenPair(access_token=access_token, refresh_token=refresh_token), refresh_expire


def verify_access(token: Optional[str]) -> Principal:
    """
    Access Token을 검증해 Principal을 반환합니다.
    만료/변조/카테고리 불일치 등 어떤 실패든 ANONYMOUS 입니다.
    """
    if not token:
        return ANONYMOUS
    try:
        payload = decode_token(token)
    except JWTError:
        return ANONYMOUS

    if payload.get("category") != ACCESS_CATEGORY:
        return ANONYMOUS

    user_id = payload.get("userId")
    if not isinstance(user_id, int):
        return ANONYMOUS
    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        return ANONYMOUS
    return Principal(user_id=user_id, username=payload.get("username"), role=role)


async def refresh_token_exists(db: AsyncSession, token: str) -> bool:
    result = await db.execute(select(RefreshToken.id).where(RefreshToken.token == token))
    return result.first() is not None


async def delete_refresh_token(db: AsyncSession, token: str) -> int:
    """삭제된 행 수를 반환합니다. (flush만 수행, 커밋은 호출자)"""
    result = await db.execute(delete(RefreshToken).where(RefreshToken.token == token))
    return result.rowcount or 0


def _role_value(user: User) -> str:
    return user.role.value if isinstance(user.role, UserRole) else str(user.role)


def _refresh_record(user_id: int, username: str, token: str, expiration: datetime) -> RefreshToken:
    return RefreshToken(user_id=user_id, username=username, token=token, expiration=expiration)


async def issue_pair(db: AsyncSession, user: User) -> TokenPair:
    """
    사용자에게 access/refresh 토큰 쌍을 발급하고 refresh 토큰을 저장합니다.
    """
    pair, refresh_expire = _mint_pair(user.id, user.username, _role_value(user))
    db.add(_refresh_record(user.id, user.username, pair.refresh_token, refresh_expire))
    await db.commit()
    logger.info(f"Issued token pair for user_id={user.id}")
    return pair


async def rotate(db: AsyncSession, old_refresh: Optional[str]) -> TokenPair:
    """
    refresh 토큰을 1회용으로 소모하고 새 토큰 쌍을 발급합니다.

    1. 토큰 없음            → TOKEN_MISSING
    2. 서명 검증 후 만료     → TOKEN_EXPIRED
    3. category != refresh  → TOKEN_WRONG_CATEGORY
    4. 저장소에 레코드 없음  → TOKEN_UNKNOWN (이미 재발급에 사용된 토큰의 재사용 차단)
    5. 이전 레코드 삭제 + 새 레코드 저장을 하나의 트랜잭션으로 커밋
    """
    if not old_refresh:
        raise BidBuyError(ErrorKind.TOKEN_MISSING, "refresh token is missing")

    try:
        payload = decode_token(old_refresh)
    except ExpiredSignatureError:
        raise BidBuyError(ErrorKind.TOKEN_EXPIRED, "refresh token has expired")
    except JWTError:
        # 서명이 맞지 않거나 형식이 잘못된 토큰은 저장소에 있을 수 없는 토큰입니다.
        raise BidBuyError(ErrorKind.TOKEN_UNKNOWN, "invalid refresh token")

    if payload.get("category") != REFRESH_CATEGORY:
        raise BidBuyError(ErrorKind.TOKEN_WRONG_CATEGORY, "token is not a refresh token")

    if not await refresh_token_exists(db, old_refresh):
        logger.warning(f"Rejected unknown or replayed refresh token for user_id={payload.get('userId')}")
        raise BidBuyError(ErrorKind.TOKEN_UNKNOWN, "invalid refresh token")

    user_id = payload["userId"]
    # 이름/권한은 토큰이 아닌 현재 사용자 행에서 읽음 (관리자 승격 등이 바로 반영)
    user = await db.get(User, user_id)
    if user is None:
        raise BidBuyError(ErrorKind.TOKEN_UNKNOWN, "invalid refresh token")
    username = user.username
    role = _role_value(user)

    # 동시에 같은 토큰으로 재발급을 시도하면 삭제된 행 수로 승자가 하나로 정해집니다.
    deleted = await delete_refresh_token(db, old_refresh)
    if deleted == 0:
        await db.rollback()
        logger.warning(f"Concurrent refresh rotation lost for user_id={user_id}")
        raise BidBuyError(ErrorKind.TOKEN_UNKNOWN, "invalid refresh token")

    pair, refresh_expire = _mint_pair(user_id, username, role)
    db.add(_refresh_record(user_id, username, pair.refresh_token, refresh_expire))
    await db.commit()
    logger.info(f"Rotated refresh token for user_id={user_id}")
    return pair


async def revoke(db: AsyncSession, refresh: Optional[str]) -> bool:
    """로그아웃: refresh 토큰 레코드를 삭제합니다. 없는 토큰이면 False (멱등)."""
    if not refresh:
        return False
    deleted = await delete_refresh_token(db, refresh)
    await db.commit()
    return deleted > 0


async def purge_expired(db: AsyncSession) -> int:
    """저장된 만료시각이 지난 refresh 토큰 레코드를 정리합니다."""
    now = datetime.now(timezone.utc)
    result = await db.execute(delete(RefreshToken).where(RefreshToken.expiration < now))
    await db.commit()
    purged = result.rowcount or 0
    logger.info(f"Purged {purged} expired refresh tokens")
    return purged

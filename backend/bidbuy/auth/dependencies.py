from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import settings
from ..errors import BidBuyError, ErrorKind
from .schema import Principal
from .service import verify_access

# 헤더는 선택적으로만 받도록 설정 (없어도 에러 발생 X)
bearer_scheme = HTTPBearer(auto_error=False)


async def get_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    """
    Authorization: Bearer 헤더 → access 쿠키 순서로 토큰을 찾아 Principal을 만듭니다.
    토큰이 없거나 유효하지 않으면 ANONYMOUS. 이 의존성은 토큰을 발급하지 않습니다.
    """
    token = credentials.credentials if credentials else None
    if not token:
        token = request.cookies.get(settings.ACCESS_COOKIE_NAME)
    return verify_access(token)


async def require_principal(principal: Principal = Depends(get_principal)) -> Principal:
    if principal.is_anonymous:
        raise BidBuyError(ErrorKind.UNAUTHENTICATED, "Could not validate credentials")
    return principal


OptionalPrincipal = Depends(get_principal)
CurrentPrincipal = Depends(require_principal)
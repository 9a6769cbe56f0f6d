from fastapi import APIRouter, Request, Response, status

from ..config import settings
from ..database import SessionDep
from ..users.service import get_or_create_oauth_user
from .cookies import clear_refresh_cookie, set_access_header, set_refresh_cookie
from .identity import verify_id_token
from .schema import HandshakeRequest, TokenPair, TokenResponse
from . import service as auth_service

router = APIRouter(prefix="/api", tags=["auth"])


def _deliver(response: Response, pair: TokenPair) -> TokenResponse:
    # access 토큰은 헤더와 본문으로, refresh 토큰은 HttpOnly 쿠키로만 전달
    set_access_header(response, pair.access_token)
    set_refresh_cookie(response, pair.refresh_token)
    return TokenResponse(access_token=pair.access_token)


@router.post("/auth/handshake", response_model=TokenResponse)
async def handshake(body: HandshakeRequest, response: Response, db: SessionDep):
    """
    IdP가 발급한 ID 토큰을 검증하고, 검증된 클레임의 사용자에게 토큰 쌍을 발급합니다.
    최초 로그인이면 사용자를 생성합니다.
    """
    profile = await verify_id_token(body.provider, body.id_token)
    user = await get_or_create_oauth_user(db, profile)
    pair = await auth_service.issue_pair(db, user)
    return _deliver(response, pair)


@router.post("/refreshToken", response_model=TokenResponse)
async def refresh_token(request: Request, response: Response, db: SessionDep):
    old_refresh = request.cookies.get(settings.REFRESH_COOKIE_NAME)
    pair = await auth_service.rotate(db, old_refresh)
    return _deliver(response, pair)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(request: Request, response: Response, db: SessionDep):
    await auth_service.revoke(db, request.cookies.get(settings.REFRESH_COOKIE_NAME))
    clear_refresh_cookie(response)
    return

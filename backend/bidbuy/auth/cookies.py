from fastapi import Response

from ..config import settings


def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    """
    refresh 토큰 쿠키를 심습니다.
    HttpOnly 이므로 클라이언트 스크립트에서 읽을 수 없습니다. Secure는 배포 설정(COOKIE_SECURE)을 따릅니다.
    """
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=settings.refresh_token_max_age,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def set_access_header(response: Response, access_token: str) -> None:
    response.headers["Authorization"] = f"Bearer {access_token}"

import logging
from enum import Enum as PyEnum

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorKind(str, PyEnum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    BAD_REQUEST = "BAD_REQUEST"
    # refresh 토큰 재발급 전용
    TOKEN_MISSING = "TOKEN_MISSING"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_WRONG_CATEGORY = "TOKEN_WRONG_CATEGORY"
    TOKEN_UNKNOWN = "TOKEN_UNKNOWN"
    INTERNAL = "INTERNAL"


STATUS_BY_KIND = {
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.TOKEN_MISSING: status.HTTP_400_BAD_REQUEST,
    ErrorKind.TOKEN_EXPIRED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.TOKEN_WRONG_CATEGORY: status.HTTP_400_BAD_REQUEST,
    ErrorKind.TOKEN_UNKNOWN: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# HTTPException을 직접 던지는 곳(FastAPI 내부 등)의 상태코드 → kind
KIND_BY_STATUS = {
    status.HTTP_400_BAD_REQUEST: ErrorKind.BAD_REQUEST,
    status.HTTP_401_UNAUTHORIZED: ErrorKind.UNAUTHENTICATED,
    status.HTTP_403_FORBIDDEN: ErrorKind.FORBIDDEN,
    status.HTTP_404_NOT_FOUND: ErrorKind.NOT_FOUND,
    status.HTTP_409_CONFLICT: ErrorKind.CONFLICT,
}


class BidBuyError(HTTPException):
    """
    서비스 계층에서 던지는 분류된 도메인 예외.
    상태코드는 kind로부터 결정되며, 응답은 {"kind", "detail"} 형태로 통일됩니다.
    """

    def __init__(self, kind: ErrorKind, detail: str, headers: dict | None = None):
        if kind == ErrorKind.UNAUTHENTICATED and headers is None:
            headers = {"WWW-Authenticate": "Bearer"}
        super().__init__(status_code=STATUS_BY_KIND[kind], detail=detail, headers=headers)
        self.kind = kind


def _envelope(status_code: int, kind: ErrorKind, detail, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"kind": kind.value, "detail": detail},
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    kind = getattr(exc, "kind", None) or KIND_BY_STATUS.get(exc.status_code, ErrorKind.INTERNAL)
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return _envelope(exc.status_code, kind, exc.detail, getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg")}
        for err in exc.errors()
    ]
    return _envelope(status.HTTP_400_BAD_REQUEST, ErrorKind.BAD_REQUEST, errors)


async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # 인프라(DB, 파일 저장소) 오류는 세션 종료 시 롤백되고 INTERNAL로 응답합니다.
    if isinstance(exc, (SQLAlchemyError, OSError)):
        logger.exception(f"Infrastructure failure on {request.method} {request.url.path}: {exc}")
    else:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorKind.INTERNAL, "Internal Server Error")

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .database import engine
from .db_models import *
from .config import settings
from .errors import http_exception_handler, unexpected_exception_handler, validation_exception_handler
from .auth.router import router as auth_router
from .users.router import router as users_router
from .articles.router import router as articles_router
from .likes.router import router as likes_router
from .offers.router import router as offers_router
from .reviews.router import router as reviews_router

# 로깅 설정 (Docker 환경 최적화)
log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
logging.basicConfig(
    level=log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)  # stdout으로 명시적 출력
    ]
)

logger = logging.getLogger(__name__)
logger.info(f"Application starting with log level: {settings.LOG_LEVEL} (environment={settings.ENVIRONMENT})")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await engine.dispose()


app = FastAPI(title="BidBuy API", lifespan=lifespan)

# 에러 응답은 {"kind", "detail"} 형태로 통일
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unexpected_exception_handler)

# CORS 설정 (refresh 쿠키를 주고받으므로 credentials 허용 + 명시적 origin)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Authorization"],
)

# 라우터 등록
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(articles_router)
app.include_router(likes_router)
app.include_router(offers_router)
app.include_router(reviews_router)

# 업로드된 상품 이미지 (LocalBlobStore)
app.mount(settings.MEDIA_URL_PREFIX, StaticFiles(directory=settings.MEDIA_DIR, check_dir=False), name="media")


# 간단한 헬스 체크 엔드포인트 (프로덕션 헬스체크 용도)
@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}

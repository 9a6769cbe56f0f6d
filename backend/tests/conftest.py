import json
import os
import sys
import tempfile
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from jose import jwt

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

# 테스트용 환경 변수 세팅 (bidbuy 모듈 임포트 전에 적용)
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("POSTGRES_SSLMODE", "disable")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "bidbuy-test-secret-key-0123456789-abcdefgh")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:3000")
os.environ.setdefault("MEDIA_DIR", tempfile.mkdtemp(prefix="bidbuy-media-"))

# 테스트용 IdP: 공유 비밀(HS256)로 서명한 ID 토큰을 발급/검증
IDP_SECRET = "bidbuy-test-idp-secret-0123456789-abcdefgh"
IDP_AUDIENCE = "bidbuy-web"
IDP_ISSUERS = {"google": "https://accounts.google.test", "kakao": "https://kauth.kakao.test"}
os.environ.setdefault("OAUTH_PROVIDERS", json.dumps({
    name: {"issuer": issuer, "audience": IDP_AUDIENCE, "algorithms": ["HS256"], "key": IDP_SECRET}
    for name, issuer in IDP_ISSUERS.items()
}))

# sys.path에 backend 추가하여 'bidbuy' 패키지 검색 가능하게 함
repo_root = Path(__file__).resolve().parents[2]
backend_path = repo_root / "backend"
if str(backend_path) not in sys.path:
    sys.path.insert(0, str(backend_path))

from bidbuy.main import app
from bidbuy.database import Base
from bidbuy.database import get_db as real_get_db
from bidbuy.storage.blob_store import ImageUpload, get_blob_store


class FakeBlobStore:
    """메모리 blob 저장소. 업로드/삭제 내역을 확인할 수 있습니다."""

    def __init__(self, fail_on_upload: Optional[int] = None):
        self.blobs: Dict[str, bytes] = {}
        self.deleted: List[str] = []
        self.upload_calls = 0
        self.fail_on_upload = fail_on_upload  # n번째 업로드(1부터)에서 실패

    async def upload(self, image: ImageUpload) -> str:
        self.upload_calls += 1
        if self.fail_on_upload is not None and self.upload_calls >= self.fail_on_upload:
            raise OSError("blob store unavailable")
        url = f"/media/test/{self.upload_calls}-{image.filename}"
        self.blobs[url] = image.data
        return url

    async def delete(self, url: str) -> None:
        self.deleted.append(url)
        self.blobs.pop(url, None)


@dataclass
class Member:
    id: int
    username: str
    access_token: str
    refresh_token: str

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}


def id_token_for(
    subject: str,
    email: Optional[str] = None,
    name: Optional[str] = None,
    *,
    provider: str = "google",
    key: str = IDP_SECRET,
    **claims,
) -> str:
    """테스트용 IdP가 서명한 ID 토큰. claims로 기본 클레임을 덮어쓸 수 있습니다."""
    now = datetime.now(timezone.utc)
    payload = {
        "iss": IDP_ISSUERS[provider],
        "aud": IDP_AUDIENCE,
        "sub": subject,
        "email": email or f"{subject}@example.com",
        "email_verified": True,
        "name": name or subject,
        "iat": now,
        "exp": now + timedelta(minutes=5),
    }
    payload.update(claims)
    return jwt.encode(payload, key, algorithm="HS256")


def cookie_value(response, name: str) -> Optional[str]:
    for header in response.headers.get_list("set-cookie"):
        key, _, rest = header.partition("=")
        if key.strip() == name:
            return rest.split(";", 1)[0].strip('"')
    return None


@pytest.fixture()
async def test_engine():
    # 메모리 SQLite를 모든 세션이 공유하도록 StaticPool 사용
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(test_engine):
    return sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
def blob_store():
    return FakeBlobStore()


@pytest.fixture(autouse=True)
def override_dependencies(session_factory, blob_store):
    # 요청마다 새 세션 (운영과 같은 요청 단위 트랜잭션)
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[real_get_db] = _get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def signup(client):
    """외부 인증 제공자 로그인(handshake)을 흉내 내고 Member를 돌려줍니다."""
    async def _signup(username: str) -> Member:
        resp = await client.post(
            "/api/auth/handshake",
            json={
                "provider": "google",
                "idToken": id_token_for(f"google-{username}", f"{username}@example.com", username),
            },
        )
        assert resp.status_code == 200, resp.text
        access_token = resp.json()["accessToken"]
        refresh_token = cookie_value(resp, "refresh")
        # 사용자별 토큰은 테스트에서 명시적으로 전달
        client.cookies.clear()

        me = await client.get("/api/users/me", headers={"Authorization": f"Bearer {access_token}"})
        assert me.status_code == 200, me.text
        return Member(me.json()["user"]["id"], username, access_token, refresh_token)

    return _signup


@pytest.fixture()
def create_article(client):
    async def _create_article(member: Member, images=(), **fields):
        payload = {
            "title": "아이폰 15 프로",
            "content": "생활기스 조금 있습니다.",
            "price": 10000,
            "category": "DIGITAL",
            "tradeMethod": "DIRECT",
            "addr1": "서울시",
            "addr2": "마포구",
        }
        payload.update(fields)
        files = [("images", (name, data, content_type)) for name, data, content_type in images]
        return await client.post(
            "/api/articles",
            data={"article": json.dumps(payload)},
            files=files or None,
            headers=member.headers,
        )

    return _create_article

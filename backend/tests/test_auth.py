from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from bidbuy.auth import service as auth_service
from bidbuy.auth.models import RefreshToken
from bidbuy.errors import BidBuyError, ErrorKind
from bidbuy.users.models import User, UserRole
from bidbuy.users.service import promote_to_admin

from conftest import cookie_value, id_token_for


async def refresh(client, token=None):
    client.cookies.clear()
    headers = {"Cookie": f"refresh={token}"} if token else {}
    resp = await client.post("/api/refreshToken", headers=headers)
    client.cookies.clear()
    return resp


async def count_refresh_records(session_factory) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count(RefreshToken.id)))).scalar_one()


async def test_handshake_issues_token_pair(client, session_factory):
    resp = await client.post(
        "/api/auth/handshake",
        json={"provider": "kakao", "idToken": id_token_for("k-1", "buyer@example.com", "buyer", provider="kakao")},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["tokenType"] == "bearer"
    assert resp.headers["Authorization"] == f"Bearer {body['accessToken']}"

    set_cookie = resp.headers["set-cookie"]
    assert set_cookie.startswith("refresh=")
    assert "HttpOnly" in set_cookie
    assert "Max-Age=86400" in set_cookie
    assert "Path=/" in set_cookie
    assert "samesite=lax" in set_cookie.lower()
    assert await count_refresh_records(session_factory) == 1

    principal = auth_service.verify_access(body["accessToken"])
    assert principal.username == "buyer"
    assert principal.role == UserRole.USER


async def test_handshake_reuses_existing_user(client, signup):
    first = await signup("seller")
    again = await signup("seller")
    assert first.id == again.id


async def handshake(client, provider, id_token):
    resp = await client.post("/api/auth/handshake", json={"provider": provider, "idToken": id_token})
    client.cookies.clear()
    return resp


async def test_forged_id_token_cannot_take_over_account(client, signup, session_factory):
    victim = await signup("victim")
    forged = id_token_for(
        "google-victim", "attacker@evil.com", "pwned", key="attacker-secret-0123456789-abcdefghijkl"
    )

    resp = await handshake(client, "google", forged)

    assert resp.status_code == 401
    assert resp.json()["kind"] == "UNAUTHENTICATED"
    assert cookie_value(resp, "refresh") is None
    async with session_factory() as session:
        user = await session.get(User, victim.id)
        assert user.username == "victim"
        assert user.email == "victim@example.com"


async def test_raw_profile_without_id_token_is_rejected(client):
    resp = await client.post(
        "/api/auth/handshake",
        json={"provider": "google", "providerId": "google-x", "email": "x@example.com", "username": "x"},
    )
    assert resp.status_code == 400
    assert resp.json()["kind"] == "BAD_REQUEST"


async def test_id_token_checks_audience_issuer_and_expiry(client):
    wrong_audience = id_token_for("google-a", aud="someone-else")
    wrong_issuer = id_token_for("google-b", iss="https://evil.test")
    expired = id_token_for("google-c", exp=datetime.now(timezone.utc) - timedelta(minutes=1))
    unverified_email = id_token_for("google-d", email_verified=False)

    for token in (wrong_audience, wrong_issuer, expired, unverified_email, "not-a-jwt"):
        resp = await handshake(client, "google", token)
        assert resp.status_code == 401, token


async def test_unknown_provider_is_rejected(client):
    resp = await handshake(client, "myspace", id_token_for("m-1"))
    assert resp.status_code == 401


async def test_rotation_issues_new_pair(client, signup, session_factory):
    member = await signup("rotator")
    resp = await refresh(client, member.refresh_token)

    assert resp.status_code == 200
    new_access = resp.json()["accessToken"]
    assert resp.headers["Authorization"] == f"Bearer {new_access}"
    new_refresh = cookie_value(resp, "refresh")
    assert new_refresh and new_refresh != member.refresh_token
    # 이전 레코드는 삭제되고 새 레코드만 남음
    assert await count_refresh_records(session_factory) == 1

    principal = auth_service.verify_access(new_access)
    assert principal.user_id == member.id


async def test_replayed_refresh_token_is_unknown(client, signup):
    member = await signup("replayer")
    first = await refresh(client, member.refresh_token)
    assert first.status_code == 200
    second_token = cookie_value(first, "refresh")

    replay = await refresh(client, member.refresh_token)
    assert replay.status_code == 400
    assert replay.json()["kind"] == "TOKEN_UNKNOWN"

    # 최신 토큰은 여전히 사용 가능
    third = await refresh(client, second_token)
    assert third.status_code == 200


async def test_missing_refresh_token(client):
    resp = await refresh(client)
    assert resp.status_code == 400
    assert resp.json()["kind"] == "TOKEN_MISSING"


async def test_expired_refresh_token(client, signup):
    member = await signup("expired")
    token, _ = auth_service.create_token(
        auth_service.REFRESH_CATEGORY,
        user_id=member.id,
        username=member.username,
        role="USER",
        expires_delta=timedelta(seconds=-10),
    )
    resp = await refresh(client, token)
    assert resp.status_code == 400
    assert resp.json()["kind"] == "TOKEN_EXPIRED"


async def test_access_token_cannot_be_used_for_refresh(client, signup):
    member = await signup("wrongcat")
    resp = await refresh(client, member.access_token)
    assert resp.status_code == 400
    assert resp.json()["kind"] == "TOKEN_WRONG_CATEGORY"


async def test_malformed_refresh_token_is_unknown(client):
    resp = await refresh(client, "not-a-jwt")
    assert resp.status_code == 400
    assert resp.json()["kind"] == "TOKEN_UNKNOWN"


async def test_logout_revokes_refresh_token(client, signup, session_factory):
    member = await signup("leaver")
    client.cookies.clear()
    resp = await client.post("/api/logout", headers={"Cookie": f"refresh={member.refresh_token}"})
    client.cookies.clear()
    assert resp.status_code == 204
    assert any(h.startswith("refresh=") for h in resp.headers.get_list("set-cookie"))
    assert await count_refresh_records(session_factory) == 0

    again = await refresh(client, member.refresh_token)
    assert again.json()["kind"] == "TOKEN_UNKNOWN"


async def test_refresh_token_is_not_an_access_token(client, signup):
    member = await signup("mixup")
    assert auth_service.verify_access(member.refresh_token).is_anonymous

    resp = await client.get("/api/users/me", headers={"Authorization": f"Bearer {member.refresh_token}"})
    assert resp.status_code == 401
    assert resp.json()["kind"] == "UNAUTHENTICATED"
    assert resp.headers["WWW-Authenticate"] == "Bearer"


async def test_tampered_access_token_is_anonymous(signup):
    member = await signup("tamper")
    assert not auth_service.verify_access(member.access_token).is_anonymous
    assert auth_service.verify_access(member.access_token[:-2] + "xx").is_anonymous
    assert auth_service.verify_access(None).is_anonymous


async def test_purge_expired_refresh_tokens(db, signup, session_factory):
    member = await signup("purger")
    token, _ = auth_service.create_token(
        auth_service.REFRESH_CATEGORY,
        user_id=member.id, username=member.username, role="USER",
        expires_delta=timedelta(hours=1),
    )
    db.add(RefreshToken(
        user_id=member.id,
        username=member.username,
        token=token,
        expiration=datetime(2000, 1, 1, tzinfo=timezone.utc),
    ))
    await db.commit()
    assert await count_refresh_records(session_factory) == 2

    purged = await auth_service.purge_expired(db)
    assert purged == 1
    assert await count_refresh_records(session_factory) == 1


async def test_concurrent_rotation_has_single_winner(signup, session_factory, monkeypatch):
    member = await signup("racer")
    original_exists = auth_service.refresh_token_exists
    winner = {}
    raced = []

    async def exists_then_lose_race(db, token):
        found = await original_exists(db, token)
        if not raced:
            raced.append(token)
            # 첫 번째 요청이 레코드를 확인한 직후, 다른 요청이 같은 토큰으로 먼저 재발급
            async with session_factory() as other:
                winner["pair"] = await auth_service.rotate(other, token)
        return found

    monkeypatch.setattr(auth_service, "refresh_token_exists", exists_then_lose_race)

    async with session_factory() as session:
        with pytest.raises(BidBuyError) as exc_info:
            await auth_service.rotate(session, member.refresh_token)

    assert exc_info.value.kind == ErrorKind.TOKEN_UNKNOWN
    assert winner["pair"].refresh_token != member.refresh_token
    # 승자의 새 레코드만 남음
    assert await count_refresh_records(session_factory) == 1


async def test_rotation_picks_up_current_role(client, signup, db):
    member = await signup("promoted")
    await promote_to_admin(db, "promoted@example.com")

    resp = await refresh(client, member.refresh_token)

    assert resp.status_code == 200
    principal = auth_service.verify_access(resp.json()["accessToken"])
    assert principal.role == UserRole.ADMIN

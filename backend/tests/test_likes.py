from sqlalchemy import func, select

from bidbuy.articles.models import Article
from bidbuy.auth.schema import Principal
from bidbuy.likes import service as like_service
from bidbuy.likes.models import LikeArticle
from bidbuy.users.models import UserRole


async def like_state(session_factory, article_id):
    async with session_factory() as session:
        like_count = (await session.execute(
            select(Article.like_count).where(Article.id == article_id)
        )).scalar_one()
        rows = (await session.execute(
            select(func.count()).select_from(LikeArticle).where(LikeArticle.article_id == article_id)
        )).scalar_one()
    return like_count, rows


async def test_self_like_is_forbidden(client, signup, create_article, session_factory):
    writer = await signup("writer")
    article = (await create_article(writer)).json()

    resp = await client.post(f"/api/articles/{article['id']}/like", headers=writer.headers)

    assert resp.status_code == 403
    assert resp.json()["kind"] == "FORBIDDEN"
    assert await like_state(session_factory, article["id"]) == (0, 0)


async def test_like_requires_login(client, signup, create_article):
    writer = await signup("writer")
    article = (await create_article(writer)).json()
    resp = await client.post(f"/api/articles/{article['id']}/like")
    assert resp.status_code == 401


async def test_like_missing_article(client, signup):
    member = await signup("member")
    resp = await client.post("/api/articles/404/like", headers=member.headers)
    assert resp.status_code == 404


async def test_likes_from_two_users_and_toggle_back(client, signup, create_article, session_factory):
    writer = await signup("writer")
    u2 = await signup("u2")
    u3 = await signup("u3")
    article_id = (await create_article(writer)).json()["id"]

    first = await client.post(f"/api/articles/{article_id}/like", headers=u2.headers)
    second = await client.post(f"/api/articles/{article_id}/like", headers=u3.headers)
    assert first.json() == {"state": "ADDED"}
    assert second.json() == {"state": "ADDED"}
    assert await like_state(session_factory, article_id) == (2, 2)

    # 같은 요청을 다시 보내면 정확히 한 행만 뒤집힘
    replay = await client.post(f"/api/articles/{article_id}/like", headers=u2.headers)
    assert replay.json() == {"state": "REMOVED"}
    assert await like_state(session_factory, article_id) == (1, 1)


async def test_is_liked_reflects_viewer(client, signup, create_article):
    writer = await signup("writer")
    fan = await signup("fan")
    article_id = (await create_article(writer)).json()["id"]
    await client.post(f"/api/articles/{article_id}/like", headers=fan.headers)

    fan_view = (await client.get(f"/api/articles/{article_id}", headers=fan.headers)).json()
    writer_view = (await client.get(f"/api/articles/{article_id}", headers=writer.headers)).json()
    assert fan_view["isLiked"] is True
    assert fan_view["likeCount"] == 1
    assert writer_view["isLiked"] is False

    listing = (await client.get("/api/articles", headers=fan.headers)).json()
    assert listing["content"][0]["isLiked"] is True
    anonymous = (await client.get("/api/articles")).json()
    assert anonymous["content"][0]["isLiked"] is None


async def test_duplicate_like_from_concurrent_request_keeps_counter(
    signup, create_article, session_factory, monkeypatch
):
    writer = await signup("writer")
    fan = await signup("fan")
    article_id = (await create_article(writer)).json()["id"]
    principal = Principal(user_id=fan.id, username=fan.username, role=UserRole.USER)

    original_find = like_service.find_like
    raced = []

    async def find_then_lose_race(db, user_id, article_id):
        found = await original_find(db, user_id, article_id)
        if not raced:
            raced.append(article_id)
            # 찜 행을 조회한 직후 같은 사용자의 다른 요청이 먼저 찜을 커밋
            async with session_factory() as other:
                assert await like_service.toggle_like(other, principal, article_id) == like_service.LikeState.ADDED
        return found

    monkeypatch.setattr(like_service, "find_like", find_then_lose_race)

    async with session_factory() as session:
        state = await like_service.toggle_like(session, principal, article_id)

    assert state == like_service.LikeState.ADDED
    assert await like_state(session_factory, article_id) == (1, 1)

async def complete_trade(client, writer, buyer, article_id):
    offer = (await client.post(
        f"/api/articles/{article_id}/offers", json={"price": 9000}, headers=buyer.headers
    )).json()
    await client.post(f"/api/offers/{offer['id']}/select", headers=writer.headers)
    await client.post(f"/api/articles/{article_id}/complete", headers=writer.headers)


async def test_my_profile_counts(client, signup, create_article):
    writer = await signup("writer")
    buyer = await signup("buyer")
    sold = (await create_article(writer, title="sold")).json()["id"]
    liked = (await create_article(writer, title="liked")).json()["id"]
    await client.post(f"/api/articles/{liked}/like", headers=buyer.headers)
    await complete_trade(client, writer, buyer, sold)
    await client.post(
        "/api/reviews", json={"articleId": sold, "score": 5, "content": "좋아요"}, headers=buyer.headers
    )

    me = (await client.get("/api/users/me", headers=buyer.headers)).json()
    assert me["user"]["email"] == "buyer@example.com"
    assert me["user"]["role"] == "USER"
    assert me["counts"] == {
        "countSale": 0,
        "countLike": 1,
        "countOffer": 1,
        "countBuy": 1,
        "countReview": 1,
    }

    seller = (await client.get(f"/api/users/{writer.id}")).json()
    assert seller["user"]["score"] == 5
    assert "email" not in seller["user"]
    assert seller["counts"]["countSale"] == 2
    assert seller["counts"]["countReview"] == 1


async def test_profile_requires_login_and_existing_user(client):
    assert (await client.get("/api/users/me")).status_code == 401
    missing = await client.get("/api/users/999")
    assert missing.status_code == 404
    assert missing.json()["kind"] == "NOT_FOUND"


async def test_sales_by_status(client, signup, create_article):
    writer = await signup("writer")
    buyer = await signup("buyer")
    on_sale = (await create_article(writer, title="on-sale")).json()["id"]
    done = (await create_article(writer, title="done")).json()["id"]
    await complete_trade(client, writer, buyer, done)
    await client.post(f"/api/articles/{on_sale}/like", headers=buyer.headers)

    sale = (await client.get(f"/api/users/{writer.id}/sales", headers=buyer.headers)).json()
    assert [row["title"] for row in sale["content"]] == ["on-sale"]
    assert sale["content"][0]["isLiked"] is True

    complete = (await client.get(f"/api/users/{writer.id}/sales", params={"status": "COMPLETE"})).json()
    assert [row["title"] for row in complete["content"]] == ["done"]
    assert complete["content"][0]["isLiked"] is None

    bad = await client.get(f"/api/users/{writer.id}/sales", params={"status": "SOLD"})
    assert bad.status_code == 400


async def test_my_lists(client, signup, create_article):
    writer = await signup("writer")
    buyer = await signup("buyer")
    cheap = (await create_article(writer, title="cheap", price=1000)).json()["id"]
    pricey = (await create_article(writer, title="pricey", price=5000)).json()["id"]
    await client.post(f"/api/articles/{cheap}/like", headers=buyer.headers)
    await client.post(f"/api/articles/{pricey}/offers", json={"price": 4000}, headers=buyer.headers)
    await client.post(f"/api/articles/{pricey}/offers", json={"price": 4500}, headers=buyer.headers)
    await client.post(f"/api/articles/{cheap}/offers", json={"price": 900}, headers=buyer.headers)

    likes = (await client.get("/api/users/me/likes", headers=buyer.headers)).json()
    assert [row["title"] for row in likes["content"]] == ["cheap"]
    assert likes["content"][0]["isLiked"] is True

    offers = (await client.get("/api/users/me/offers", params={"sort": "high-price"}, headers=buyer.headers)).json()
    assert [row["title"] for row in offers["content"]] == ["pricey", "cheap"]
    assert offers["totalElements"] == 2


async def test_my_buys_include_review_flag(client, signup, create_article):
    writer = await signup("writer")
    buyer = await signup("buyer")
    reviewed = (await create_article(writer, title="reviewed")).json()["id"]
    pending = (await create_article(writer, title="pending")).json()["id"]
    reserved = (await create_article(writer, title="reserved")).json()["id"]
    await complete_trade(client, writer, buyer, reviewed)
    await complete_trade(client, writer, buyer, pending)
    offer = (await client.post(
        f"/api/articles/{reserved}/offers", json={"price": 100}, headers=buyer.headers
    )).json()
    await client.post(f"/api/offers/{offer['id']}/select", headers=writer.headers)
    await client.post(
        "/api/reviews", json={"articleId": reviewed, "score": 4, "content": ""}, headers=buyer.headers
    )

    buys = (await client.get("/api/users/me/buys", headers=buyer.headers)).json()
    flags = {row["title"]: row["isReviewed"] for row in buys["content"]}
    assert flags == {"reviewed": True, "pending": False}

import pytest

from app.dependencies import get_current_user
from app.main import app


async def _create_post(client, content: str = "Hello world") -> dict:
    response = await client.post("/posts/new", json={"content": content})
    assert response.status_code == 201
    return response.json()


# ── posts ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_post(client, test_user):
    data = await _create_post(client, "First post")
    assert data["content"] == "First post"
    assert data["author_id"] == test_user.id
    assert data["author"]["username"] == "alice"


@pytest.mark.asyncio
async def test_create_post_blank_content(client):
    response = await client.post("/posts/new", json={"content": "   "})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_post_too_long(client):
    response = await client.post("/posts/new", json={"content": "x" * 1001})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_read_post_by_id(client):
    post = await _create_post(client)

    response = await client.get("/posts/read", params={"id": post["id"]})
    assert response.status_code == 200
    assert [p["id"] for p in response.json()] == [post["id"]]

    missing = await client.get("/posts/read", params={"id": 9999})
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_read_posts_by_author(client, test_user):
    first = await _create_post(client, "one")
    second = await _create_post(client, "two")

    response = await client.get("/posts/read", params={"author_id": test_user.id})
    assert response.status_code == 200
    assert {p["id"] for p in response.json()} == {first["id"], second["id"]}


@pytest.mark.asyncio
async def test_update_post(client):
    post = await _create_post(client)

    response = await client.put(f"/posts/update/{post['id']}", json={"content": "Edited"})
    assert response.status_code == 200
    assert response.json()["content"] == "Edited"


@pytest.mark.asyncio
async def test_update_someone_elses_post(client, second_user):
    post = await _create_post(client)
    app.dependency_overrides[get_current_user] = lambda: second_user

    response = await client.put(f"/posts/update/{post['id']}", json={"content": "Hijack"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_post(client):
    post = await _create_post(client)
    await client.post("/comments/new", json={"post_id": post["id"], "content": "bye"})

    response = await client.delete(f"/posts/delete/{post['id']}")
    assert response.status_code == 204

    response = await client.get("/posts/read", params={"id": post["id"]})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_someone_elses_post(client, second_user):
    post = await _create_post(client)
    app.dependency_overrides[get_current_user] = lambda: second_user

    response = await client.delete(f"/posts/delete/{post['id']}")
    assert response.status_code == 404


# ── comments ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_comment_on_post(client, test_user):
    post = await _create_post(client)

    response = await client.post(
        "/comments/new", json={"post_id": post["id"], "content": "Nice!"}
    )
    assert response.status_code == 201
    assert response.json()["author_id"] == test_user.id

    listing = await client.get(f"/comments/post/{post['id']}")
    assert [c["content"] for c in listing.json()] == ["Nice!"]


@pytest.mark.asyncio
async def test_comment_on_missing_post(client):
    response = await client.post("/comments/new", json={"post_id": 9999, "content": "Hi"})
    assert response.status_code == 404
    assert response.json()["detail"] == "Post with ID 9999 not found."


@pytest.mark.asyncio
async def test_delete_comment(client, test_user, second_user):
    post = await _create_post(client)
    comment = (
        await client.post("/comments/new", json={"post_id": post["id"], "content": "Hi"})
    ).json()

    app.dependency_overrides[get_current_user] = lambda: second_user
    assert (await client.delete(f"/comments/{comment['id']}")).status_code == 404

    app.dependency_overrides[get_current_user] = lambda: test_user
    assert (await client.delete(f"/comments/{comment['id']}")).status_code == 204

    listing = await client.get(f"/comments/post/{post['id']}")
    assert listing.json() == []


# ── likes ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_like_post(client, test_user):
    post = await _create_post(client)

    response = await client.post("/likes/new", json={"post_id": post["id"]})
    assert response.status_code == 201
    assert response.json()["author_id"] == test_user.id

    listing = await client.get(f"/likes/post/{post['id']}")
    assert len(listing.json()) == 1


@pytest.mark.asyncio
async def test_like_post_twice(client):
    post = await _create_post(client)
    await client.post("/likes/new", json={"post_id": post["id"]})

    response = await client.post("/likes/new", json={"post_id": post["id"]})
    assert response.status_code == 400
    assert "already liked" in response.json()["detail"]


@pytest.mark.asyncio
async def test_like_needs_exactly_one_target(client):
    neither = await client.post("/likes/new", json={})
    assert neither.status_code == 400

    both = await client.post("/likes/new", json={"post_id": 1, "comment_id": 1})
    assert both.status_code == 400


@pytest.mark.asyncio
async def test_like_comment(client):
    post = await _create_post(client)
    comment = (
        await client.post("/comments/new", json={"post_id": post["id"], "content": "Hi"})
    ).json()

    response = await client.post("/likes/new", json={"comment_id": comment["id"]})
    assert response.status_code == 201
    assert response.json()["comment_id"] == comment["id"]
    assert response.json()["post_id"] is None


@pytest.mark.asyncio
async def test_remove_like(client):
    post = await _create_post(client)
    await client.post("/likes/new", json={"post_id": post["id"]})

    response = await client.request("DELETE", "/likes/remove", json={"post_id": post["id"]})
    assert response.status_code == 200

    again = await client.request("DELETE", "/likes/remove", json={"post_id": post["id"]})
    assert again.status_code == 404

    listing = await client.get(f"/likes/post/{post['id']}")
    assert listing.json() == []


@pytest.mark.asyncio
async def test_update_comment(client, second_user):
    post = await _create_post(client)
    comment = (
        await client.post("/comments/new", json={"post_id": post["id"], "content": "Hi"})
    ).json()

    response = await client.put(f"/comments/update/{comment['id']}", json={"content": "Hello"})
    assert response.status_code == 200
    assert response.json()["content"] == "Hello"

    app.dependency_overrides[get_current_user] = lambda: second_user
    response = await client.put(f"/comments/update/{comment['id']}", json={"content": "Nope"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_likes_for_comment_and_user(client, test_user):
    post = await _create_post(client)
    comment = (
        await client.post("/comments/new", json={"post_id": post["id"], "content": "Hi"})
    ).json()
    await client.post("/likes/new", json={"post_id": post["id"]})
    await client.post("/likes/new", json={"comment_id": comment["id"]})

    by_comment = await client.get(f"/likes/comment/{comment['id']}")
    assert by_comment.status_code == 200
    assert [like["comment_id"] for like in by_comment.json()] == [comment["id"]]

    by_user = await client.get(f"/likes/user/{test_user.id}")
    assert by_user.status_code == 200
    assert len(by_user.json()) == 2
    assert all(like["author_id"] == test_user.id for like in by_user.json())

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_current_user
from app.main import app
from app.models.user import User
from app.services import user_service


async def _register(client, username: str, password: str = "password123") -> int:
    response = await client.post(
        "/auth/register",
        json={"username": username, "email": f"{username}@example.com", "password": password},
    )
    assert response.status_code == 201
    return response.json()["id"]


# ── service ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_update_user_without_changes_returns_user(
    db_session: AsyncSession, test_user: User
):
    user = await user_service.update_user(db_session, test_user.id, {"bio": None})
    assert user.id == test_user.id
    assert user.bio == ""


@pytest.mark.asyncio
async def test_update_unknown_user(db_session: AsyncSession):
    assert await user_service.update_user(db_session, 42, {"bio": "hi"}) is None


@pytest.mark.asyncio
async def test_search_requires_query(db_session: AsyncSession):
    with pytest.raises(ValueError, match="empty query"):
        await user_service.search_users(db_session, "   ")


# ── HTTP ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_read_user(client, second_user):
    response = await client.get(f"/users/read/{second_user.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["username"] == "bob"
    assert "email" not in data
    assert "password_hash" not in data


@pytest.mark.asyncio
async def test_read_missing_user(client):
    response = await client.get("/users/read/9999")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_search_users_is_case_insensitive(client, second_user, third_user):
    response = await client.get("/users/search", params={"q": "AL"})
    assert response.status_code == 200
    assert [u["username"] for u in response.json()] == ["alice"]

    response = await client.get("/users/search", params={"q": "o"})
    assert [u["username"] for u in response.json()] == ["bob", "carol"]


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(client, second_user):
    response = await client.get("/users/search", params={"q": "%"})
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_search_without_query(client):
    response = await client.get("/users/search")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_own_profile(client, test_user):
    response = await client.put(
        f"/users/update/{test_user.id}",
        json={"bio": "Coffee and code", "profile_pic": "https://cdn.example.com/a.png"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["bio"] == "Coffee and code"
    assert data["profile_pic"] == "https://cdn.example.com/a.png"
    assert data["username"] == "alice"


@pytest.mark.asyncio
async def test_update_someone_elses_profile(client, second_user):
    response = await client.put(f"/users/update/{second_user.id}", json={"bio": "hacked"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_to_taken_username(client, test_user, second_user):
    response = await client.put(f"/users/update/{test_user.id}", json={"username": "bob"})
    assert response.status_code == 409
    assert "already taken" in response.json()["detail"]


@pytest.mark.asyncio
async def test_update_to_invalid_username(client, test_user):
    response = await client.put(f"/users/update/{test_user.id}", json={"username": "al ice!"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_account_checks_password(client, db_session):
    user_id = await _register(client, "dave")
    dave = await db_session.get(User, user_id)
    app.dependency_overrides[get_current_user] = lambda: dave

    wrong = await client.request(
        "DELETE", f"/users/delete/{user_id}", json={"password": "not-my-password"}
    )
    assert wrong.status_code == 403
    assert (await client.get(f"/users/read/{user_id}")).status_code == 200

    response = await client.request(
        "DELETE", f"/users/delete/{user_id}", json={"password": "password123"}
    )
    assert response.status_code == 204
    assert (await client.get(f"/users/read/{user_id}")).status_code == 404


@pytest.mark.asyncio
async def test_delete_someone_elses_account(client, second_user):
    response = await client.request(
        "DELETE", f"/users/delete/{second_user.id}", json={"password": "whatever1"}
    )
    assert response.status_code == 403

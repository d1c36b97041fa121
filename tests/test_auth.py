import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_current_user
from app.main import app
from app.services.auth_service import (
    decode_access_token,
    hash_password,
    issue_tokens,
    login_with_email,
    register_user,
    verify_password,
)


def test_password_hashing():
    hashed = hash_password("correct horse")
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_issue_tokens():
    tokens = issue_tokens(42)
    assert "access_token" in tokens
    assert tokens["token_type"] == "bearer"
    assert tokens["expires_in"] == 3600
    assert decode_access_token(tokens["access_token"]) == 42


def test_decode_garbage_token():
    with pytest.raises(ValueError):
        decode_access_token("not-a-jwt")


@pytest.mark.asyncio
async def test_register_user(db_session: AsyncSession):
    user = await register_user(db_session, "dave", "dave@example.com", "password123")
    assert user.id is not None
    assert user.password_hash != "password123"

    logged_in = await login_with_email(db_session, "dave@example.com", "password123")
    assert logged_in.id == user.id


@pytest.mark.asyncio
async def test_register_rejects_special_characters(db_session: AsyncSession):
    with pytest.raises(ValueError, match="special characters"):
        await register_user(db_session, "da ve!", "dave@example.com", "password123")


@pytest.mark.asyncio
async def test_login_wrong_password(db_session: AsyncSession):
    await register_user(db_session, "dave", "dave@example.com", "password123")
    with pytest.raises(ValueError, match="Invalid email or password"):
        await login_with_email(db_session, "dave@example.com", "nope-nope")


# ── HTTP ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_register_and_login(client):
    response = await client.post(
        "/auth/register",
        json={"username": "erin", "email": "erin@example.com", "password": "password123"},
    )
    assert response.status_code == 201
    assert response.json()["username"] == "erin"
    assert "password_hash" not in response.json()

    response = await client.post(
        "/auth/login", json={"email": "erin@example.com", "password": "password123"}
    )
    assert response.status_code == 200
    assert decode_access_token(response.json()["access_token"]) > 0


@pytest.mark.asyncio
async def test_register_duplicate_email(client, test_user):
    response = await client.post(
        "/auth/register",
        json={"username": "alice2", "email": test_user.email, "password": "password123"},
    )
    assert response.status_code == 409
    assert "already in use" in response.json()["detail"]


@pytest.mark.asyncio
async def test_register_duplicate_username(client, test_user):
    response = await client.post(
        "/auth/register",
        json={"username": "alice", "email": "other@example.com", "password": "password123"},
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_login_unknown_email(client):
    response = await client.post(
        "/auth/login", json={"email": "ghost@example.com", "password": "password123"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_me_authenticated(client):
    response = await client.get("/auth/me")
    assert response.status_code == 200
    assert response.json()["username"] == "alice"


@pytest.mark.asyncio
async def test_get_me_with_real_token(client, test_user):
    app.dependency_overrides.pop(get_current_user)
    token = issue_tokens(test_user.id)["access_token"]

    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["id"] == test_user.id


@pytest.mark.asyncio
async def test_get_me_without_token(client):
    app.dependency_overrides.pop(get_current_user)

    response = await client.get("/auth/me")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_me_with_bad_token(client):
    app.dependency_overrides.pop(get_current_user)

    response = await client.get("/auth/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401

"""
Auth endpoint tests: registration, login, logout, the session cookie and
the ``/me`` profile endpoints.
"""
import pytest
from httpx import AsyncClient

from blog.config import settings
from blog.security.sessions import decode_session_token


@pytest.mark.asyncio
async def test_register_sets_session_cookie(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/auth/register", json={
        "email": "New@Example.com",
        "password": "secret123",
        "first_name": "Nina",
    })
    assert resp.status_code == 201
    data = resp.json()
    assert data["email"] == "new@example.com"
    assert data["roles"] == ["User"]
    assert data["display_name"] == "Nina"
    assert "password_hash" not in data

    set_cookie = resp.headers["set-cookie"]
    assert settings.SESSION_COOKIE_NAME in set_cookie
    assert "httponly" in set_cookie.lower()

    principal = decode_session_token(async_client.cookies.get(settings.SESSION_COOKIE_NAME))
    assert principal is not None
    assert principal.user_id == data["id"]
    assert principal.roles == frozenset({"User"})


@pytest.mark.asyncio
async def test_register_duplicate_email_returns_400(async_client: AsyncClient):
    payload = {"email": "dup@example.com", "password": "secret123"}
    assert (await async_client.post("/api/v1/auth/register", json=payload)).status_code == 201

    resp = await async_client.post("/api/v1/auth/register", json=payload)
    assert resp.status_code == 400
    assert "already exists" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_register_invalid_email_returns_400(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/auth/register", json={
        "email": "nope", "password": "secret123",
    })
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_register_missing_password_returns_422(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/auth/register", json={"email": "x@example.com"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_login_and_me(api, async_client: AsyncClient):
    await api.register("me@example.com")
    async_client.cookies.clear()

    resp = await async_client.get("/api/v1/auth/me")
    assert resp.status_code == 401

    await api.login("ME@example.com")
    resp = await async_client.get("/api/v1/auth/me")
    assert resp.status_code == 200
    assert resp.json()["email"] == "me@example.com"


@pytest.mark.asyncio
async def test_login_wrong_password_returns_401(api, async_client: AsyncClient):
    await api.register("wrong@example.com")
    resp = await async_client.post("/api/v1/auth/login", json={
        "email": "wrong@example.com", "password": "not-it",
    })
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_login_failure_is_audited(async_client: AsyncClient, caplog):
    with caplog.at_level("INFO", logger="blog.audit.actions"):
        await async_client.post("/api/v1/auth/login", json={
            "email": "ghost@example.com", "password": "whatever",
        })
    assert any("LOGIN_FAILED" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_logout_clears_session(api, async_client: AsyncClient):
    await api.register("bye@example.com")
    assert (await async_client.get("/api/v1/auth/me")).status_code == 200

    await api.logout()
    assert (await async_client.get("/api/v1/auth/me")).status_code == 401


@pytest.mark.asyncio
async def test_tampered_cookie_is_anonymous(async_client: AsyncClient):
    async_client.cookies.set(settings.SESSION_COOKIE_NAME, "not.a.token")
    resp = await async_client.get("/api/v1/auth/me")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_update_me(api, async_client: AsyncClient):
    await api.register("edit@example.com")
    resp = await async_client.put("/api/v1/auth/me", json={"first_name": "Ed", "last_name": "Itor"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["first_name"] == "Ed"
    assert data["display_name"] == "Ed Itor"
    assert data["email"] == "edit@example.com"

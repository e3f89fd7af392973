"""
Authentication endpoint tests.
Covers: register, login, refresh, logout, duplicate email/username,
user search and the demo-mode registration block.
"""
from __future__ import annotations

import pytest
from httpx import AsyncClient
from jose import jwt

from app.core.config import settings

pytestmark = pytest.mark.asyncio


class TestRegister:
    async def test_register_success(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "email": "newuser@example.com",
                "username": "newuser",
                "password": "NewPass1",
                "full_name": "New User",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "newuser@example.com"
        assert data["username"] == "newuser"
        assert "hashed_password" not in data
        assert "id" in data

    async def test_register_duplicate_email(
        self, client: AsyncClient, registered_user: dict
    ) -> None:
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "email": "testuser@example.com",  # already registered
                "username": "differentuser",
                "password": "TestPass1",
            },
        )
        assert response.status_code == 409

    async def test_register_duplicate_username(
        self, client: AsyncClient, registered_user: dict
    ) -> None:
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "email": "different@example.com",
                "username": "testuser",  # already registered
                "password": "TestPass1",
            },
        )
        assert response.status_code == 409

    async def test_register_weak_password(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "email": "weak@example.com",
                "username": "weakuser",
                "password": "short",  # too short, no uppercase, no digit
            },
        )
        assert response.status_code == 422

    async def test_register_invalid_email(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "email": "not-an-email",
                "username": "someuser",
                "password": "ValidPass1",
            },
        )
        assert response.status_code == 422


class TestLogin:
    async def test_login_success(
        self, client: AsyncClient, registered_user: dict
    ) -> None:
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "testuser@example.com", "password": "TestPass1"},
        )
        assert response.status_code == 200
        data = response.json()
        assert "access_token" in data
        assert "refresh_token" in data
        assert data["token_type"] == "bearer"

    async def test_login_wrong_password(
        self, client: AsyncClient, registered_user: dict
    ) -> None:
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "testuser@example.com", "password": "WrongPass1"},
        )
        assert response.status_code == 401

    async def test_login_nonexistent_user(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@example.com", "password": "TestPass1"},
        )
        assert response.status_code == 401


class TestRefresh:
    async def test_refresh_success(
        self, client: AsyncClient, registered_user: dict
    ) -> None:
        login_resp = await client.post(
            "/api/v1/auth/login",
            json={"email": "testuser@example.com", "password": "TestPass1"},
        )
        refresh_token = login_resp.json()["refresh_token"]

        response = await client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": refresh_token},
        )
        assert response.status_code == 200
        data = response.json()
        assert "access_token" in data
        assert "refresh_token" in data

    async def test_refresh_invalid_token(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": "this.is.invalid"},
        )
        assert response.status_code == 401


class TestLogout:
    async def test_logout_success(
        self, client: AsyncClient, auth_headers: dict
    ) -> None:
        response = await client.post("/api/v1/auth/logout", headers=auth_headers)
        assert response.status_code == 204

    async def test_logout_unauthenticated(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/auth/logout")
        assert response.status_code == 401


class TestGetMe:
    async def test_get_me_success(
        self, client: AsyncClient, auth_headers: dict, registered_user: dict
    ) -> None:
        response = await client.get("/api/v1/users/me", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["email"] == registered_user["email"]

    async def test_get_me_unauthenticated(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/users/me")
        assert response.status_code == 401


class TestTokenClaims:
    async def test_access_token_carries_display_name(
        self, client: AsyncClient, registered_user: dict
    ) -> None:
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "testuser@example.com", "password": "TestPass1"},
        )
        claims = jwt.get_unverified_claims(response.json()["access_token"])
        assert claims["sub"] == registered_user["id"]
        assert claims["name"] == "Test User"
        assert claims["type"] == "access"

    async def test_refresh_rejected_after_logout(
        self, client: AsyncClient, registered_user: dict
    ) -> None:
        login_resp = await client.post(
            "/api/v1/auth/login",
            json={"email": "testuser@example.com", "password": "TestPass1"},
        )
        tokens = login_resp.json()
        headers = {"Authorization": f"Bearer {tokens['access_token']}"}
        await client.post("/api/v1/auth/logout", headers=headers)

        response = await client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": tokens["refresh_token"]},
        )
        assert response.status_code == 401


class TestDemoModeRegistration:
    async def test_register_blocked_in_demo_mode(
        self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings, "DEMO_MODE", True)
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "email": "demo-signup@example.com",
                "username": "demosignup",
                "password": "DemoPass1",
            },
        )
        assert response.status_code == 403
        assert response.json()["error"] == "DEMO_MODE_RESTRICTED"


class TestUserSearch:
    async def test_search_matches_substring(
        self, client: AsyncClient, auth_headers: dict, other_user: tuple
    ) -> None:
        response = await client.get(
            "/api/v1/users/search", params={"q": "herus"}, headers=auth_headers
        )
        assert response.status_code == 200
        usernames = [u["username"] for u in response.json()]
        assert usernames == ["otheruser"]

    async def test_search_is_case_insensitive(
        self, client: AsyncClient, auth_headers: dict, other_user: tuple
    ) -> None:
        response = await client.get(
            "/api/v1/users/search", params={"q": "OTHER"}, headers=auth_headers
        )
        assert response.status_code == 200
        assert len(response.json()) == 1

    async def test_search_query_too_short(
        self, client: AsyncClient, auth_headers: dict
    ) -> None:
        response = await client.get(
            "/api/v1/users/search", params={"q": "x"}, headers=auth_headers
        )
        assert response.status_code == 422

"""
Test configuration and shared fixtures.
Each test gets a fresh in-memory SQLite database.
"""
from __future__ import annotations

import os

# Must be set before the application (and its settings) are imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DEMO_MODE"] = "false"

from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.db.base import Base
from app.db.session import get_db
from app.main import app

# ── Test database ─────────────────────────────────────────────────────────────
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    """Provide a session bound to a fresh in-memory database."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        try:
            yield session
            await session.rollback()
        finally:
            await session.close()
    await engine.dispose()


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP test client with the test DB injected."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db
        await db.flush()

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch) -> str:
    """Keep attachment writes inside the test's temp directory."""
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path))
    return str(path)


# ── Helper fixtures ───────────────────────────────────────────────────────────

async def register_and_login(
    client: AsyncClient,
    *,
    email: str,
    username: str,
    password: str = "TestPass1",
    full_name: str | None = None,
) -> tuple[dict[str, Any], dict[str, str]]:
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "email": email,
            "username": username,
            "password": password,
            "full_name": full_name,
        },
    )
    assert response.status_code == 201, response.text
    user = response.json()
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )
    assert response.status_code == 200, response.text
    token = response.json()["access_token"]
    return user, {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def registered_user(client: AsyncClient) -> dict[str, Any]:
    """Register and return a standard user."""
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "email": "testuser@example.com",
            "username": "testuser",
            "password": "TestPass1",
            "full_name": "Test User",
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
async def auth_headers(client: AsyncClient, registered_user: dict) -> dict[str, str]:
    """Return Authorization headers for the registered test user."""
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "testuser@example.com", "password": "TestPass1"},
    )
    assert response.status_code == 200, response.text
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def other_user(client: AsyncClient) -> tuple[dict[str, Any], dict[str, str]]:
    """A second, unrelated user and their Authorization headers."""
    return await register_and_login(
        client, email="other@example.com", username="otheruser", full_name="Other User"
    )


@pytest_asyncio.fixture
async def registered_admin(client: AsyncClient, db: AsyncSession) -> dict[str, Any]:
    """Register an admin user directly via the DB."""
    from app.core.security import hash_password
    from app.models.user import User

    admin = User(
        email="admin@example.com",
        username="adminuser",
        hashed_password=hash_password("AdminPass1"),
        full_name="Admin User",
        role="admin",
        is_active=True,
        is_verified=True,
    )
    db.add(admin)
    await db.flush()
    await db.refresh(admin)
    return {"id": str(admin.id), "email": admin.email, "username": admin.username}


@pytest_asyncio.fixture
async def admin_headers(client: AsyncClient, registered_admin: dict) -> dict[str, str]:
    """Return Authorization headers for the admin user."""
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "admin@example.com", "password": "AdminPass1"},
    )
    assert response.status_code == 200, response.text
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


# ── Workspace fixtures ────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def project(client: AsyncClient, auth_headers: dict) -> dict[str, Any]:
    response = await client.post(
        "/api/v1/projects/",
        json={"name": "Roadmap", "description": "Quarterly roadmap"},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
async def task_list(
    client: AsyncClient, auth_headers: dict, project: dict
) -> dict[str, Any]:
    response = await client.post(
        f"/api/v1/projects/{project['id']}/lists",
        json={"name": "To Do"},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
async def task(
    client: AsyncClient, auth_headers: dict, task_list: dict
) -> dict[str, Any]:
    response = await client.post(
        f"/api/v1/tasks/lists/{task_list['id']}/tasks",
        json={"name": "Write docs", "description": "Describe the API"},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
async def member_in_project(
    client: AsyncClient,
    auth_headers: dict,
    project: dict,
    other_user: tuple[dict[str, Any], dict[str, str]],
) -> tuple[dict[str, Any], dict[str, str]]:
    """other_user, added to `project` as a plain MEMBER."""
    user, headers = other_user
    response = await client.post(
        f"/api/v1/projects/{project['id']}/members",
        json={"email": user["email"], "role": "MEMBER"},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return user, headers


@pytest.fixture
def broadcasts(monkeypatch) -> list[dict[str, Any]]:
    """Record every project broadcast instead of sending it."""
    from app.services.realtime_service import realtime_gateway

    sent: list[dict[str, Any]] = []

    async def record(project_id, event, payload, *, user_id=None, user_name=None, type=None):
        sent.append(
            {
                "project_id": str(project_id),
                "event": event,
                "type": type or event,
                "payload": payload,
                "user_id": str(user_id) if user_id is not None else None,
            }
        )

    monkeypatch.setattr(realtime_gateway, "broadcast_to_project", record)
    return sent

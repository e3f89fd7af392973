"""
Demo mode tests.
Builds a separate application with DEMO_MODE on and exercises the in-memory
store through the demo routes, plus the reset scheduler.
"""
from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.session import get_db
from app.demo.scheduler import DemoResetScheduler
from app.demo.store import DemoStore, demo_store
from app.main import create_application
from app.services.realtime_service import _default_membership_checker

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def demo_client(
    db: AsyncSession, monkeypatch
) -> AsyncGenerator[AsyncClient, None]:
    monkeypatch.setattr(settings, "DEMO_MODE", True)
    demo_store.reset()
    demo_app = create_application()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    demo_app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=demo_app), base_url="http://test"
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def demo_headers(demo_client: AsyncClient) -> dict[str, str]:
    response = await demo_client.post(
        "/api/v1/auth/login",
        json={"email": settings.DEMO_EMAIL, "password": settings.DEMO_PASSWORD},
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


class TestDemoStore:

    def _store(self) -> DemoStore:
        store = DemoStore()
        store.reset()
        return store

    async def test_seed(self) -> None:
        stats = self._store().stats()
        assert stats["users"] == 1
        assert stats["projects"] == 2
        assert stats["lists"] == 8
        assert stats["labels"] == 8
        assert stats["tasks"] == 10

    async def test_reset_discards_changes(self) -> None:
        store = self._store()
        user = next(iter(store.users.values()))
        project = store.create_project(user_id=user.id, name="Scratch")
        store.reset()
        assert project.id not in store.projects
        assert store.stats()["projects"] == 2

    async def test_authenticate(self) -> None:
        store = self._store()
        assert store.authenticate(settings.DEMO_EMAIL.upper(), settings.DEMO_PASSWORD)
        assert store.authenticate(settings.DEMO_EMAIL, "wrong") is None
        assert store.authenticate("nobody@example.com", settings.DEMO_PASSWORD) is None

    async def test_positions_are_contiguous(self) -> None:
        store = self._store()
        for list_id in store.lists:
            positions = [t.position for t in store._tasks_in(list_id)]
            assert positions == list(range(len(positions)))

    async def test_delete_label_strips_tasks(self) -> None:
        store = self._store()
        user = next(iter(store.users.values()))
        label_id = next(iter(store.labels))
        store.delete_label(label_id, user_id=user.id)
        assert all(label_id not in t.label_ids for t in store.tasks.values())


class TestDemoApi:

    async def test_login_rejects_bad_password(self, demo_client: AsyncClient) -> None:
        response = await demo_client.post(
            "/api/v1/auth/login",
            json={"email": settings.DEMO_EMAIL, "password": "nope"},
        )
        assert response.status_code == 401

    async def test_me(self, demo_client: AsyncClient, demo_headers: dict) -> None:
        response = await demo_client.get("/api/v1/users/me", headers=demo_headers)
        assert response.status_code == 200
        assert response.json()["email"] == settings.DEMO_EMAIL

    async def test_projects_and_data(
        self, demo_client: AsyncClient, demo_headers: dict
    ) -> None:
        projects = await demo_client.get("/api/v1/projects/", headers=demo_headers)
        assert projects.status_code == 200
        names = {p["name"] for p in projects.json()}
        assert names == {"Marketing 2024", "Website Redesign"}

        project_id = next(p["id"] for p in projects.json() if p["name"] == "Marketing 2024")
        data = await demo_client.get(
            f"/api/v1/projects/{project_id}/data", headers=demo_headers
        )
        assert data.status_code == 200
        body = data.json()
        assert [lst["name"] for lst in body["lists"]] == ["To Do", "In Progress", "Review", "Done"]
        assert sum(len(lst["tasks"]) for lst in body["lists"]) == 5
        assert body["boards"] == []
        assert body["members"][0]["role"] == "OWNER"

    async def test_task_flow(
        self, demo_client: AsyncClient, demo_headers: dict, broadcasts: list[dict]
    ) -> None:
        project_id = next(p.id for p in demo_store.projects.values() if p.name == "Website Redesign")
        lists = (
            await demo_client.get(f"/api/v1/projects/{project_id}/lists", headers=demo_headers)
        ).json()
        todo, doing = lists[0]["id"], lists[1]["id"]

        created = await demo_client.post(
            f"/api/v1/tasks/lists/{todo}/tasks",
            json={"name": "Try the demo"},
            headers=demo_headers,
        )
        assert created.status_code == 201
        task = created.json()

        moved = await demo_client.put(
            f"/api/v1/tasks/{task['id']}/move",
            json={"list_id": doing, "position": 0},
            headers=demo_headers,
        )
        assert moved.status_code == 200
        assert moved.json()["list_id"] == doing
        assert moved.json()["position"] == 0

        frame = next(b for b in broadcasts if b["event"] == "task-moved")
        assert frame["payload"]["from_list_id"] == todo
        assert frame["payload"]["to_list_id"] == doing
        assert frame["payload"]["task"]["id"] == task["id"]

        subtask = await demo_client.post(
            f"/api/v1/tasks/{task['id']}/subtasks",
            json={"name": "Click around"},
            headers=demo_headers,
        )
        assert subtask.status_code == 201
        done = await demo_client.put(
            f"/api/v1/tasks/subtasks/{subtask.json()['id']}",
            json={"is_completed": True},
            headers=demo_headers,
        )
        assert done.json()["is_completed"] is True

        deleted = await demo_client.delete(f"/api/v1/tasks/{task['id']}", headers=demo_headers)
        assert deleted.status_code == 204
        missing = await demo_client.get(f"/api/v1/tasks/{task['id']}", headers=demo_headers)
        assert missing.status_code == 404

    async def test_reorder_must_be_permutation(
        self, demo_client: AsyncClient, demo_headers: dict
    ) -> None:
        list_id = next(iter(demo_store.lists))
        response = await demo_client.put(
            f"/api/v1/tasks/lists/{list_id}/reorder",
            json={"task_ids": ["task-999"]},
            headers=demo_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_ORDER"

    async def test_database_routes_restricted(
        self, demo_client: AsyncClient, demo_headers: dict
    ) -> None:
        response = await demo_client.post(
            "/api/v1/auth/register",
            json={"email": "new@example.com", "username": "newbie", "password": "TestPass1"},
        )
        assert response.status_code == 403
        assert response.json()["error"] == "DEMO_MODE_RESTRICTED"

        response = await demo_client.get("/api/v1/notifications/", headers=demo_headers)
        assert response.status_code == 403

    async def test_unauthenticated(self, demo_client: AsyncClient) -> None:
        response = await demo_client.get("/api/v1/projects/")
        assert response.status_code == 401

    async def test_token_dies_with_reset(
        self, demo_client: AsyncClient, demo_headers: dict
    ) -> None:
        demo_store.users.clear()
        response = await demo_client.get("/api/v1/users/me", headers=demo_headers)
        assert response.status_code == 401

    async def test_websocket_membership_uses_store(self, demo_client: AsyncClient) -> None:
        user = next(iter(demo_store.users.values()))
        project_id = next(iter(demo_store.projects))
        assert await _default_membership_checker(project_id, user.id) is True
        assert await _default_membership_checker(project_id, "user-999") is False


class TestDemoInfo:

    async def test_off(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/demo-info")
        assert response.status_code == 200
        assert response.json() == {"demo_mode": False}

    async def test_on(self, demo_client: AsyncClient) -> None:
        response = await demo_client.get("/api/v1/demo-info")
        data = response.json()
        assert data["demo_mode"] is True
        assert data["credentials"] == {
            "email": settings.DEMO_EMAIL,
            "password": settings.DEMO_PASSWORD,
        }
        assert data["stats"]["projects"] == 2


class TestScheduler:

    async def test_interval_within_window(self) -> None:
        scheduler = DemoResetScheduler(DemoStore(), min_minutes=20, max_minutes=30)
        for _ in range(50):
            assert 20 * 60 <= scheduler.next_interval() <= 30 * 60

    async def test_start_and_stop(self) -> None:
        scheduler = DemoResetScheduler(DemoStore(), min_minutes=20, max_minutes=30)
        assert scheduler.seconds_until_reset() is None

        scheduler.start()
        await asyncio.sleep(0)
        assert scheduler.running
        remaining = scheduler.seconds_until_reset()
        assert remaining is not None and 19 * 60 <= remaining <= 30 * 60

        await scheduler.stop()
        assert not scheduler.running
        assert scheduler.seconds_until_reset() is None

    async def test_resets_store(self, monkeypatch) -> None:
        store = DemoStore()
        scheduler = DemoResetScheduler(store, min_minutes=1, max_minutes=1)
        monkeypatch.setattr(scheduler, "next_interval", lambda: 0.01)

        scheduler.start()
        await asyncio.sleep(0.05)
        await scheduler.stop()
        assert store.stats()["projects"] == 2

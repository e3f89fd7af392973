"""
Task endpoint tests.
Covers: CRUD, completion, ordering within and across lists, assignees,
labels, subtasks and access control.
"""
from __future__ import annotations

from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def _create_task(
    client: AsyncClient,
    headers: dict,
    list_id: str,
    name: str = "Test Task",
    **kwargs: Any,
) -> dict:
    payload = {"name": name, "description": "A test task description", **kwargs}
    response = await client.post(
        f"/api/v1/tasks/lists/{list_id}/tasks", json=payload, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


async def _create_list(
    client: AsyncClient, headers: dict, project_id: str, name: str
) -> dict:
    response = await client.post(
        f"/api/v1/projects/{project_id}/lists", json={"name": name}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


async def _positions(client: AsyncClient, headers: dict, list_id: str) -> list[tuple[str, int]]:
    response = await client.get(f"/api/v1/tasks/lists/{list_id}/tasks", headers=headers)
    assert response.status_code == 200, response.text
    return [(t["name"], t["position"]) for t in response.json()]


class TestCreateTask:

    async def test_create_task_success(
        self, client: AsyncClient, auth_headers: dict, task_list: dict, registered_user: dict
    ) -> None:
        data = await _create_task(client, auth_headers, task_list["id"], "First")
        assert data["name"] == "First"
        assert data["list_id"] == task_list["id"]
        assert data["position"] == 0
        assert data["is_completed"] is False
        assert data["created_by_id"] == registered_user["id"]
        assert data["members"] == []
        assert data["labels"] == []
        assert data["subtasks"] == []

    async def test_tasks_are_appended(
        self, client: AsyncClient, auth_headers: dict, task_list: dict
    ) -> None:
        for name in ("One", "Two", "Three"):
            await _create_task(client, auth_headers, task_list["id"], name)
        assert await _positions(client, auth_headers, task_list["id"]) == [
            ("One", 0),
            ("Two", 1),
            ("Three", 2),
        ]

    async def test_name_too_short(
        self, client: AsyncClient, auth_headers: dict, task_list: dict
    ) -> None:
        response = await client.post(
            f"/api/v1/tasks/lists/{task_list['id']}/tasks",
            json={"name": "x"},
            headers=auth_headers,
        )
        assert response.status_code == 422

    async def test_unknown_list(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.post(
            "/api/v1/tasks/lists/00000000-0000-0000-0000-000000000000/tasks",
            json={"name": "Orphan"},
            headers=auth_headers,
        )
        assert response.status_code == 404

    async def test_unauthenticated(self, client: AsyncClient, task_list: dict) -> None:
        response = await client.post(
            f"/api/v1/tasks/lists/{task_list['id']}/tasks", json={"name": "Nope"}
        )
        assert response.status_code in (401, 403)

    async def test_create_broadcasts(
        self,
        client: AsyncClient,
        auth_headers: dict,
        task_list: dict,
        broadcasts: list[dict],
    ) -> None:
        data = await _create_task(client, auth_headers, task_list["id"], "Loud")
        created = [b for b in broadcasts if b["event"] == "task-created"]
        assert len(created) == 1
        assert created[0]["payload"]["id"] == data["id"]
        assert created[0]["project_id"] == task_list["project_id"]


class TestReadUpdateDelete:

    async def test_get_task(self, client: AsyncClient, auth_headers: dict, task: dict) -> None:
        response = await client.get(f"/api/v1/tasks/{task['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["name"] == "Write docs"

    async def test_update_task(self, client: AsyncClient, auth_headers: dict, task: dict) -> None:
        response = await client.put(
            f"/api/v1/tasks/{task['id']}",
            json={"name": "Write better docs", "due_date": "2030-01-15T12:00:00Z"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Write better docs"
        assert data["description"] == "Describe the API"
        assert data["due_date"].startswith("2030-01-15")

    async def test_complete_task_logs_activity(
        self, client: AsyncClient, auth_headers: dict, task: dict, project: dict
    ) -> None:
        response = await client.put(
            f"/api/v1/tasks/{task['id']}", json={"is_completed": True}, headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["is_completed"] is True

        activity = await client.get(
            f"/api/v1/projects/{project['id']}/activity", headers=auth_headers
        )
        assert activity.status_code == 200
        actions = [entry["action"] for entry in activity.json()["items"]]
        assert "TASK_COMPLETED" in actions

    async def test_completion_notifies_assignees(
        self,
        client: AsyncClient,
        auth_headers: dict,
        task: dict,
        member_in_project: tuple[dict, dict],
    ) -> None:
        member, member_headers = member_in_project
        await client.post(
            f"/api/v1/tasks/{task['id']}/members",
            json={"user_id": member["id"]},
            headers=auth_headers,
        )
        await client.put(
            f"/api/v1/tasks/{task['id']}", json={"is_completed": True}, headers=auth_headers
        )
        response = await client.get("/api/v1/notifications/", headers=member_headers)
        types = [n["type"] for n in response.json()["items"]]
        assert "TASK_ASSIGNED" in types
        assert "TASK_COMPLETED" in types

    async def test_delete_resequences(
        self, client: AsyncClient, auth_headers: dict, task_list: dict
    ) -> None:
        first = await _create_task(client, auth_headers, task_list["id"], "One")
        await _create_task(client, auth_headers, task_list["id"], "Two")
        await _create_task(client, auth_headers, task_list["id"], "Three")

        response = await client.delete(f"/api/v1/tasks/{first['id']}", headers=auth_headers)
        assert response.status_code == 204

        assert await _positions(client, auth_headers, task_list["id"]) == [
            ("Two", 0),
            ("Three", 1),
        ]
        gone = await client.get(f"/api/v1/tasks/{first['id']}", headers=auth_headers)
        assert gone.status_code == 404

    async def test_delete_broadcasts_list(
        self, client: AsyncClient, auth_headers: dict, task: dict, broadcasts: list[dict]
    ) -> None:
        await client.delete(f"/api/v1/tasks/{task['id']}", headers=auth_headers)
        deleted = [b for b in broadcasts if b["event"] == "task-deleted"]
        assert deleted[0]["payload"] == {"id": task["id"], "list_id": task["list_id"]}


class TestOrdering:

    async def test_move_within_list(
        self, client: AsyncClient, auth_headers: dict, task_list: dict
    ) -> None:
        await _create_task(client, auth_headers, task_list["id"], "One")
        await _create_task(client, auth_headers, task_list["id"], "Two")
        third = await _create_task(client, auth_headers, task_list["id"], "Three")

        response = await client.put(
            f"/api/v1/tasks/{third['id']}/move",
            json={"list_id": task_list["id"], "position": 0},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["position"] == 0
        assert await _positions(client, auth_headers, task_list["id"]) == [
            ("Three", 0),
            ("One", 1),
            ("Two", 2),
        ]

    async def test_move_across_lists(
        self,
        client: AsyncClient,
        auth_headers: dict,
        project: dict,
        task_list: dict,
        broadcasts: list[dict],
    ) -> None:
        done = await _create_list(client, auth_headers, project["id"], "Done")
        first = await _create_task(client, auth_headers, task_list["id"], "One")
        await _create_task(client, auth_headers, task_list["id"], "Two")
        await _create_task(client, auth_headers, done["id"], "Shipped")

        response = await client.put(
            f"/api/v1/tasks/{first['id']}/move",
            json={"list_id": done["id"], "position": 0},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["list_id"] == done["id"]

        assert await _positions(client, auth_headers, task_list["id"]) == [("Two", 0)]
        assert await _positions(client, auth_headers, done["id"]) == [
            ("One", 0),
            ("Shipped", 1),
        ]

        moved = [b for b in broadcasts if b["event"] == "task-moved"]
        assert moved[0]["payload"]["from_list_id"] == task_list["id"]
        assert moved[0]["payload"]["to_list_id"] == done["id"]
        assert moved[0]["payload"]["task"]["id"] == first["id"]

    async def test_move_position_is_clamped(
        self, client: AsyncClient, auth_headers: dict, project: dict, task_list: dict
    ) -> None:
        done = await _create_list(client, auth_headers, project["id"], "Done")
        first = await _create_task(client, auth_headers, task_list["id"], "One")
        await _create_task(client, auth_headers, done["id"], "Shipped")

        response = await client.put(
            f"/api/v1/tasks/{first['id']}/move",
            json={"list_id": done["id"], "position": 99},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["position"] == 1

    async def test_move_to_other_project_rejected(
        self, client: AsyncClient, auth_headers: dict, task: dict
    ) -> None:
        other = await client.post(
            "/api/v1/projects/", json={"name": "Side Quest"}, headers=auth_headers
        )
        foreign = await _create_list(client, auth_headers, other.json()["id"], "Elsewhere")

        response = await client.put(
            f"/api/v1/tasks/{task['id']}/move",
            json={"list_id": foreign["id"]},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "CROSS_PROJECT_MOVE"

    async def test_reorder(self, client: AsyncClient, auth_headers: dict, task_list: dict) -> None:
        a = await _create_task(client, auth_headers, task_list["id"], "Alpha")
        b = await _create_task(client, auth_headers, task_list["id"], "Bravo")
        c = await _create_task(client, auth_headers, task_list["id"], "Charlie")

        response = await client.put(
            f"/api/v1/tasks/lists/{task_list['id']}/reorder",
            json={"task_ids": [c["id"], a["id"], b["id"]]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert [t["name"] for t in response.json()] == ["Charlie", "Alpha", "Bravo"]
        assert [t["position"] for t in response.json()] == [0, 1, 2]

    async def test_reorder_must_be_permutation(
        self, client: AsyncClient, auth_headers: dict, task_list: dict
    ) -> None:
        a = await _create_task(client, auth_headers, task_list["id"], "Alpha")
        await _create_task(client, auth_headers, task_list["id"], "Bravo")

        response = await client.put(
            f"/api/v1/tasks/lists/{task_list['id']}/reorder",
            json={"task_ids": [a["id"]]},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_ORDER"

    async def test_reorder_rejects_duplicates(
        self, client: AsyncClient, auth_headers: dict, task_list: dict
    ) -> None:
        a = await _create_task(client, auth_headers, task_list["id"], "Alpha")
        response = await client.put(
            f"/api/v1/tasks/lists/{task_list['id']}/reorder",
            json={"task_ids": [a["id"], a["id"]]},
            headers=auth_headers,
        )
        assert response.status_code == 422


class TestAssignees:

    async def test_assign_member(
        self,
        client: AsyncClient,
        auth_headers: dict,
        task: dict,
        member_in_project: tuple[dict, dict],
    ) -> None:
        member, _ = member_in_project
        response = await client.post(
            f"/api/v1/tasks/{task['id']}/members",
            json={"user_id": member["id"]},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert [m["id"] for m in response.json()["members"]] == [member["id"]]

        again = await client.post(
            f"/api/v1/tasks/{task['id']}/members",
            json={"user_id": member["id"]},
            headers=auth_headers,
        )
        assert again.status_code == 409

    async def test_assign_non_member(
        self,
        client: AsyncClient,
        auth_headers: dict,
        task: dict,
        other_user: tuple[dict, dict],
    ) -> None:
        outsider, _ = other_user
        response = await client.post(
            f"/api/v1/tasks/{task['id']}/members",
            json={"user_id": outsider["id"]},
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_self_assignment_does_not_notify(
        self, client: AsyncClient, auth_headers: dict, task: dict, registered_user: dict
    ) -> None:
        await client.post(
            f"/api/v1/tasks/{task['id']}/members",
            json={"user_id": registered_user["id"]},
            headers=auth_headers,
        )
        response = await client.get("/api/v1/notifications/", headers=auth_headers)
        assert response.json()["items"] == []

    async def test_unassign(
        self,
        client: AsyncClient,
        auth_headers: dict,
        task: dict,
        member_in_project: tuple[dict, dict],
    ) -> None:
        member, _ = member_in_project
        await client.post(
            f"/api/v1/tasks/{task['id']}/members",
            json={"user_id": member["id"]},
            headers=auth_headers,
        )
        response = await client.delete(
            f"/api/v1/tasks/{task['id']}/members/{member['id']}", headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["members"] == []

        missing = await client.delete(
            f"/api/v1/tasks/{task['id']}/members/{member['id']}", headers=auth_headers
        )
        assert missing.status_code == 404


class TestTaskLabels:

    async def test_apply_and_remove_label(
        self, client: AsyncClient, auth_headers: dict, project: dict, task: dict
    ) -> None:
        label = await client.post(
            f"/api/v1/projects/{project['id']}/labels",
            json={"name": "Urgent", "color": "#ef4444"},
            headers=auth_headers,
        )
        label_id = label.json()["id"]

        response = await client.post(
            f"/api/v1/tasks/{task['id']}/labels",
            json={"label_id": label_id},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert [lbl["name"] for lbl in response.json()["labels"]] == ["Urgent"]

        duplicate = await client.post(
            f"/api/v1/tasks/{task['id']}/labels",
            json={"label_id": label_id},
            headers=auth_headers,
        )
        assert duplicate.status_code == 409

        removed = await client.delete(
            f"/api/v1/tasks/{task['id']}/labels/{label_id}", headers=auth_headers
        )
        assert removed.status_code == 200
        assert removed.json()["labels"] == []

    async def test_label_from_other_project(
        self, client: AsyncClient, auth_headers: dict, task: dict
    ) -> None:
        other = await client.post(
            "/api/v1/projects/", json={"name": "Side Quest"}, headers=auth_headers
        )
        label = await client.post(
            f"/api/v1/projects/{other.json()['id']}/labels",
            json={"name": "Foreign"},
            headers=auth_headers,
        )
        response = await client.post(
            f"/api/v1/tasks/{task['id']}/labels",
            json={"label_id": label.json()["id"]},
            headers=auth_headers,
        )
        assert response.status_code == 400


class TestSubtasks:

    async def test_subtask_lifecycle(
        self, client: AsyncClient, auth_headers: dict, task: dict, broadcasts: list[dict]
    ) -> None:
        first = await client.post(
            f"/api/v1/tasks/{task['id']}/subtasks",
            json={"name": "Outline"},
            headers=auth_headers,
        )
        second = await client.post(
            f"/api/v1/tasks/{task['id']}/subtasks",
            json={"name": "Draft"},
            headers=auth_headers,
        )
        assert first.status_code == 201
        assert first.json()["position"] == 0
        assert second.json()["position"] == 1

        done = await client.put(
            f"/api/v1/tasks/subtasks/{first.json()['id']}",
            json={"is_completed": True},
            headers=auth_headers,
        )
        assert done.status_code == 200
        assert done.json()["is_completed"] is True

        deleted = await client.delete(
            f"/api/v1/tasks/subtasks/{first.json()['id']}", headers=auth_headers
        )
        assert deleted.status_code == 204

        detail = await client.get(f"/api/v1/tasks/{task['id']}", headers=auth_headers)
        subtasks = detail.json()["subtasks"]
        assert [(s["name"], s["position"]) for s in subtasks] == [("Draft", 0)]

        kinds = [b["type"] for b in broadcasts if b["event"] == "task-updated"]
        assert kinds == ["subtask-created", "subtask-created", "subtask-updated", "subtask-deleted"]


class TestAccessControl:

    async def test_outsider_cannot_read(
        self, client: AsyncClient, task: dict, other_user: tuple[dict, dict]
    ) -> None:
        _, headers = other_user
        response = await client.get(f"/api/v1/tasks/{task['id']}", headers=headers)
        assert response.status_code == 403

    async def test_outsider_cannot_create(
        self, client: AsyncClient, task_list: dict, other_user: tuple[dict, dict]
    ) -> None:
        _, headers = other_user
        response = await client.post(
            f"/api/v1/tasks/lists/{task_list['id']}/tasks",
            json={"name": "Sneaky"},
            headers=headers,
        )
        assert response.status_code == 403

    async def test_member_can_edit(
        self, client: AsyncClient, task: dict, member_in_project: tuple[dict, dict]
    ) -> None:
        _, headers = member_in_project
        response = await client.put(
            f"/api/v1/tasks/{task['id']}", json={"name": "Member edit"}, headers=headers
        )
        assert response.status_code == 200

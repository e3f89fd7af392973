"""
Board and list endpoint tests.
Covers: board CRUD and limit, per-scope list positions, reorder, deletion
cascades and gap closing.
"""
from __future__ import annotations

import pytest
from httpx import AsyncClient

from app.core.config import settings

pytestmark = pytest.mark.asyncio


async def _create_board(
    client: AsyncClient, headers: dict, project_id: str, name: str
) -> dict:
    response = await client.post(
        f"/api/v1/boards/project/{project_id}",
        json={"name": name},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


async def _create_list(
    client: AsyncClient,
    headers: dict,
    project_id: str,
    name: str,
    board_id: str | None = None,
) -> dict:
    response = await client.post(
        f"/api/v1/projects/{project_id}/lists",
        json={"name": name, "board_id": board_id},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestBoards:

    async def test_boards_are_appended(
        self, client: AsyncClient, auth_headers: dict, project: dict
    ) -> None:
        first = await _create_board(client, auth_headers, project["id"], "Sprint 1")
        second = await _create_board(client, auth_headers, project["id"], "Sprint 2")
        assert (first["position"], second["position"]) == (0, 1)

        response = await client.get(
            f"/api/v1/boards/project/{project['id']}", headers=auth_headers
        )
        assert [b["name"] for b in response.json()] == ["Sprint 1", "Sprint 2"]

    async def test_board_limit(
        self, client: AsyncClient, auth_headers: dict, project: dict, monkeypatch
    ) -> None:
        monkeypatch.setattr(settings, "MAX_BOARDS_PER_PROJECT", 2)
        await _create_board(client, auth_headers, project["id"], "One")
        await _create_board(client, auth_headers, project["id"], "Two")

        response = await client.post(
            f"/api/v1/boards/project/{project['id']}",
            json={"name": "Three"},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "BOARD_LIMIT_REACHED"

    async def test_board_detail_includes_lists(
        self, client: AsyncClient, auth_headers: dict, project: dict
    ) -> None:
        board = await _create_board(client, auth_headers, project["id"], "Sprint")
        await _create_list(client, auth_headers, project["id"], "Backlog", board["id"])

        response = await client.get(f"/api/v1/boards/{board['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert [lst["name"] for lst in response.json()["lists"]] == ["Backlog"]

    async def test_update_board(
        self, client: AsyncClient, auth_headers: dict, project: dict
    ) -> None:
        board = await _create_board(client, auth_headers, project["id"], "Sprint")
        response = await client.put(
            f"/api/v1/boards/{board['id']}",
            json={"description": "Two weeks"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["description"] == "Two weeks"
        assert response.json()["name"] == "Sprint"

    async def test_reorder_boards(
        self, client: AsyncClient, auth_headers: dict, project: dict
    ) -> None:
        a = await _create_board(client, auth_headers, project["id"], "Alpha")
        b = await _create_board(client, auth_headers, project["id"], "Bravo")

        response = await client.put(
            f"/api/v1/boards/project/{project['id']}/reorder",
            json={"board_ids": [b["id"], a["id"]]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert [(x["name"], x["position"]) for x in response.json()] == [
            ("Bravo", 0),
            ("Alpha", 1),
        ]

    async def test_delete_board_cascades_and_closes_gap(
        self, client: AsyncClient, auth_headers: dict, project: dict
    ) -> None:
        first = await _create_board(client, auth_headers, project["id"], "First")
        await _create_board(client, auth_headers, project["id"], "Second")
        doomed = await _create_list(client, auth_headers, project["id"], "Backlog", first["id"])

        response = await client.delete(f"/api/v1/boards/{first['id']}", headers=auth_headers)
        assert response.status_code == 204

        boards = await client.get(
            f"/api/v1/boards/project/{project['id']}", headers=auth_headers
        )
        assert [(b["name"], b["position"]) for b in boards.json()] == [("Second", 0)]

        lists = await client.get(
            f"/api/v1/projects/{project['id']}/lists", headers=auth_headers
        )
        assert doomed["id"] not in [lst["id"] for lst in lists.json()]

    async def test_outsider_cannot_list_boards(
        self, client: AsyncClient, project: dict, other_user: tuple[dict, dict]
    ) -> None:
        _, headers = other_user
        response = await client.get(
            f"/api/v1/boards/project/{project['id']}", headers=headers
        )
        assert response.status_code == 403


class TestLists:

    async def test_positions_are_scoped_per_board(
        self, client: AsyncClient, auth_headers: dict, project: dict
    ) -> None:
        board = await _create_board(client, auth_headers, project["id"], "Sprint")
        loose = await _create_list(client, auth_headers, project["id"], "Inbox")
        on_board = await _create_list(client, auth_headers, project["id"], "Doing", board["id"])
        assert loose["position"] == 0
        assert on_board["position"] == 0
        assert on_board["board_id"] == board["id"]

    async def test_board_from_other_project(
        self, client: AsyncClient, auth_headers: dict, project: dict
    ) -> None:
        other = await client.post(
            "/api/v1/projects/", json={"name": "Side Quest"}, headers=auth_headers
        )
        board = await _create_board(client, auth_headers, other.json()["id"], "Foreign")
        response = await client.post(
            f"/api/v1/projects/{project['id']}/lists",
            json={"name": "Nope", "board_id": board["id"]},
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_rename_list(
        self, client: AsyncClient, auth_headers: dict, task_list: dict
    ) -> None:
        response = await client.put(
            f"/api/v1/lists/{task_list['id']}",
            json={"name": "Backlog"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Backlog"

    async def test_reorder_lists(
        self, client: AsyncClient, auth_headers: dict, project: dict, broadcasts: list[dict]
    ) -> None:
        a = await _create_list(client, auth_headers, project["id"], "Alpha")
        b = await _create_list(client, auth_headers, project["id"], "Bravo")
        c = await _create_list(client, auth_headers, project["id"], "Charlie")

        response = await client.put(
            f"/api/v1/projects/{project['id']}/lists/reorder",
            json={"list_ids": [c["id"], a["id"], b["id"]]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert [lst["name"] for lst in response.json()] == ["Charlie", "Alpha", "Bravo"]

        reordered = [b for b in broadcasts if b["type"] == "lists-reordered"]
        assert reordered[0]["payload"]["list_ids"] == [c["id"], a["id"], b["id"]]

    async def test_reorder_lists_incomplete(
        self, client: AsyncClient, auth_headers: dict, project: dict
    ) -> None:
        a = await _create_list(client, auth_headers, project["id"], "Alpha")
        await _create_list(client, auth_headers, project["id"], "Bravo")

        response = await client.put(
            f"/api/v1/projects/{project['id']}/lists/reorder",
            json={"list_ids": [a["id"]]},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_ORDER"

    async def test_delete_list_removes_tasks(
        self, client: AsyncClient, auth_headers: dict, project: dict, task: dict
    ) -> None:
        second = await _create_list(client, auth_headers, project["id"], "Done")

        response = await client.delete(
            f"/api/v1/lists/{task['list_id']}", headers=auth_headers
        )
        assert response.status_code == 204

        gone = await client.get(f"/api/v1/tasks/{task['id']}", headers=auth_headers)
        assert gone.status_code == 404

        lists = await client.get(
            f"/api/v1/projects/{project['id']}/lists", headers=auth_headers
        )
        assert [(lst["id"], lst["position"]) for lst in lists.json()] == [(second["id"], 0)]

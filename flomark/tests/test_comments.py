"""
Comment endpoint tests.
Covers: posting, pagination, @mentions, watcher notifications and
author-only edits.
"""
from __future__ import annotations

import pytest
from httpx import AsyncClient

from app.services.comment_service import extract_mentions

pytestmark = pytest.mark.asyncio


async def _comment(client: AsyncClient, headers: dict, task_id: str, content: str) -> dict:
    response = await client.post(
        f"/api/v1/tasks/{task_id}/comments", json={"content": content}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


async def _notification_types(client: AsyncClient, headers: dict) -> list[str]:
    response = await client.get("/api/v1/notifications/", headers=headers)
    assert response.status_code == 200, response.text
    return [n["type"] for n in response.json()["items"]]


async def test_extract_mentions() -> None:
    assert extract_mentions("ping @Alice and @bob_2, not email@") == {"alice", "bob_2"}
    assert extract_mentions("no mentions here") == set()


class TestComments:

    async def test_create_and_list(
        self, client: AsyncClient, auth_headers: dict, task: dict, registered_user: dict
    ) -> None:
        created = await _comment(client, auth_headers, task["id"], "  Looks good  ")
        assert created["content"] == "Looks good"
        assert created["author_id"] == registered_user["id"]

        await _comment(client, auth_headers, task["id"], "Second thought")
        response = await client.get(
            f"/api/v1/tasks/{task['id']}/comments",
            params={"page": 1, "size": 1},
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["pages"] == 2
        assert len(data["items"]) == 1

    async def test_blank_comment_rejected(
        self, client: AsyncClient, auth_headers: dict, task: dict
    ) -> None:
        response = await client.post(
            f"/api/v1/tasks/{task['id']}/comments",
            json={"content": "   "},
            headers=auth_headers,
        )
        assert response.status_code == 422

    async def test_outsider_cannot_comment(
        self, client: AsyncClient, task: dict, other_user: tuple[dict, dict]
    ) -> None:
        _, headers = other_user
        response = await client.post(
            f"/api/v1/tasks/{task['id']}/comments", json={"content": "hi"}, headers=headers
        )
        assert response.status_code == 403


class TestCommentNotifications:

    async def test_mention_replaces_comment_notice(
        self,
        client: AsyncClient,
        auth_headers: dict,
        task: dict,
        member_in_project: tuple[dict, dict],
    ) -> None:
        _, member_headers = member_in_project
        await _comment(client, member_headers, task["id"], "@TestUser can you check?")

        types = await _notification_types(client, auth_headers)
        assert types.count("MENTION") == 1
        assert "COMMENT_ADDED" not in types

    async def test_creator_notified_of_comment(
        self,
        client: AsyncClient,
        auth_headers: dict,
        task: dict,
        member_in_project: tuple[dict, dict],
    ) -> None:
        _, member_headers = member_in_project
        await _comment(client, member_headers, task["id"], "Done on my side")

        assert await _notification_types(client, auth_headers) == ["COMMENT_ADDED"]

    async def test_author_not_notified(
        self, client: AsyncClient, auth_headers: dict, task: dict
    ) -> None:
        await _comment(client, auth_headers, task["id"], "Note to self @testuser")
        assert await _notification_types(client, auth_headers) == []

    async def test_non_member_mention_ignored(
        self,
        client: AsyncClient,
        auth_headers: dict,
        task: dict,
        other_user: tuple[dict, dict],
    ) -> None:
        _, outsider_headers = other_user
        await _comment(client, auth_headers, task["id"], "@otheruser see this")
        assert await _notification_types(client, outsider_headers) == []


class TestCommentEditing:

    async def test_author_can_edit_and_delete(
        self, client: AsyncClient, auth_headers: dict, task: dict, broadcasts: list[dict]
    ) -> None:
        comment = await _comment(client, auth_headers, task["id"], "Frist")
        response = await client.put(
            f"/api/v1/comments/{comment['id']}",
            json={"content": "First"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["content"] == "First"

        deleted = await client.delete(f"/api/v1/comments/{comment['id']}", headers=auth_headers)
        assert deleted.status_code == 204

        kinds = [b["type"] for b in broadcasts if b["event"] == "comment-updated"]
        assert kinds == ["comment-added", "comment-updated", "comment-deleted"]

    async def test_other_member_cannot_edit(
        self,
        client: AsyncClient,
        auth_headers: dict,
        task: dict,
        member_in_project: tuple[dict, dict],
    ) -> None:
        _, member_headers = member_in_project
        comment = await _comment(client, auth_headers, task["id"], "Mine")

        response = await client.put(
            f"/api/v1/comments/{comment['id']}",
            json={"content": "Hijacked"},
            headers=member_headers,
        )
        assert response.status_code == 403

        response = await client.delete(
            f"/api/v1/comments/{comment['id']}", headers=member_headers
        )
        assert response.status_code == 403

"""
Attachment endpoint tests.
Covers: upload validation, storage on disk, download, listing and
uploader/admin-only deletion.
"""
from __future__ import annotations

import os

import pytest
from httpx import AsyncClient

from app.core.config import settings

pytestmark = pytest.mark.asyncio


async def _upload(
    client: AsyncClient,
    headers: dict,
    task_id: str,
    content: bytes = b"hello world",
    filename: str = "Notes.TXT",
    mime_type: str = "text/plain",
):
    return await client.post(
        f"/api/v1/tasks/{task_id}/attachments",
        files={"file": (filename, content, mime_type)},
        headers=headers,
    )


class TestUpload:

    async def test_upload_stores_file(
        self, client: AsyncClient, auth_headers: dict, task: dict, upload_dir: str
    ) -> None:
        response = await _upload(client, auth_headers, task["id"])
        assert response.status_code == 201, response.text
        data = response.json()
        assert data["original_name"] == "Notes.TXT"
        assert data["mime_type"] == "text/plain"
        assert data["size"] == len(b"hello world")
        assert data["filename"].endswith(".txt")
        assert data["url"] == f"/api/v1/attachments/{data['id']}/download"

        with open(os.path.join(upload_dir, data["filename"]), "rb") as f:
            assert f.read() == b"hello world"

    async def test_unsupported_type(
        self, client: AsyncClient, auth_headers: dict, task: dict
    ) -> None:
        response = await _upload(
            client,
            auth_headers,
            task["id"],
            filename="run.sh",
            mime_type="application/x-sh",
        )
        assert response.status_code == 400
        assert response.json()["error"] == "UNSUPPORTED_FILE_TYPE"

    async def test_file_too_large(
        self, client: AsyncClient, auth_headers: dict, task: dict, monkeypatch
    ) -> None:
        monkeypatch.setattr(settings, "MAX_ATTACHMENT_SIZE_MB", 1)
        response = await _upload(
            client, auth_headers, task["id"], content=b"x" * (1024 * 1024 + 1)
        )
        assert response.status_code == 413
        assert response.json()["error"] == "FILE_TOO_LARGE"

    async def test_outsider_cannot_upload(
        self, client: AsyncClient, task: dict, other_user: tuple[dict, dict]
    ) -> None:
        _, headers = other_user
        response = await _upload(client, headers, task["id"])
        assert response.status_code == 403


class TestDownloadAndList:

    async def test_download(self, client: AsyncClient, auth_headers: dict, task: dict) -> None:
        uploaded = (await _upload(client, auth_headers, task["id"])).json()
        response = await client.get(uploaded["url"], headers=auth_headers)
        assert response.status_code == 200
        assert response.content == b"hello world"
        assert response.headers["content-type"].startswith("text/plain")

    async def test_missing_file_on_disk(
        self, client: AsyncClient, auth_headers: dict, task: dict, upload_dir: str
    ) -> None:
        uploaded = (await _upload(client, auth_headers, task["id"])).json()
        os.remove(os.path.join(upload_dir, uploaded["filename"]))

        response = await client.get(uploaded["url"], headers=auth_headers)
        assert response.status_code == 404

    async def test_list(self, client: AsyncClient, auth_headers: dict, task: dict) -> None:
        await _upload(client, auth_headers, task["id"], filename="a.txt")
        await _upload(client, auth_headers, task["id"], filename="b.txt")

        response = await client.get(
            f"/api/v1/tasks/{task['id']}/attachments", headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["total"] == 2


class TestDelete:

    async def test_uploader_deletes(
        self, client: AsyncClient, auth_headers: dict, task: dict, upload_dir: str
    ) -> None:
        uploaded = (await _upload(client, auth_headers, task["id"])).json()
        response = await client.delete(
            f"/api/v1/attachments/{uploaded['id']}", headers=auth_headers
        )
        assert response.status_code == 204
        assert not os.path.exists(os.path.join(upload_dir, uploaded["filename"]))

        listing = await client.get(
            f"/api/v1/tasks/{task['id']}/attachments", headers=auth_headers
        )
        assert listing.json()["total"] == 0

    async def test_plain_member_cannot_delete_others(
        self,
        client: AsyncClient,
        auth_headers: dict,
        task: dict,
        member_in_project: tuple[dict, dict],
    ) -> None:
        _, member_headers = member_in_project
        uploaded = (await _upload(client, auth_headers, task["id"])).json()
        response = await client.delete(
            f"/api/v1/attachments/{uploaded['id']}", headers=member_headers
        )
        assert response.status_code == 403

    async def test_project_owner_deletes_members_upload(
        self,
        client: AsyncClient,
        auth_headers: dict,
        task: dict,
        member_in_project: tuple[dict, dict],
    ) -> None:
        _, member_headers = member_in_project
        uploaded = (await _upload(client, member_headers, task["id"])).json()
        response = await client.delete(
            f"/api/v1/attachments/{uploaded['id']}", headers=auth_headers
        )
        assert response.status_code == 204

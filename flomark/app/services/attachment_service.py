"""
Attachment service.
Validates uploads against the allowed MIME list and size cap, stores them
under UPLOAD_DIR and keeps the database row in step with the file on disk.
"""
from __future__ import annotations

import logging
import os
import uuid

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    BadRequestException,
    FileTooLargeException,
    ForbiddenException,
    NotFoundException,
)
from app.crud.attachment import crud_attachment
from app.crud.project import crud_project
from app.models.attachment import Attachment
from app.models.task import Task
from app.models.user import User
from app.schemas.attachment import AttachmentRead
from app.services.activity_service import activity_service
from app.services.realtime_service import realtime_gateway
from app.services.task_service import task_service

logger = logging.getLogger(__name__)


def stored_path(filename: str) -> str:
    return os.path.join(settings.UPLOAD_DIR, filename)


class AttachmentService:

    async def list_attachments(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        current_user: User,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[Attachment], int]:
        await task_service.get_task(db, task_id=task_id, current_user=current_user)
        return await crud_attachment.list_by_task(db, task_id=task_id, skip=skip, limit=limit)

    async def upload(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        file: UploadFile,
        current_user: User,
    ) -> Attachment:
        task = await task_service.get_task(db, task_id=task_id, current_user=current_user)

        mime_type = file.content_type or "application/octet-stream"
        if mime_type not in settings.ALLOWED_ATTACHMENT_TYPES:
            raise BadRequestException(
                f"File type {mime_type!r} is not allowed",
                error_code="UNSUPPORTED_FILE_TYPE",
            )

        content = await file.read()
        if len(content) > settings.max_attachment_size_bytes:
            raise FileTooLargeException(settings.MAX_ATTACHMENT_SIZE_MB)

        attachment_id = uuid.uuid4()
        original_name = os.path.basename(file.filename or "upload")
        _, ext = os.path.splitext(original_name)
        filename = f"{attachment_id.hex}{ext.lower()}"

        os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
        with open(stored_path(filename), "wb") as f:
            f.write(content)
        logger.info(
            "Stored attachment %s (%d bytes) for task_id=%s", filename, len(content), task.id
        )

        attachment = await crud_attachment.create_from_dict(
            db,
            obj_in={
                "id": attachment_id,
                "filename": filename,
                "original_name": original_name,
                "mime_type": mime_type,
                "size": len(content),
                "url": f"{settings.API_V1_STR}/attachments/{attachment_id}/download",
                "task_id": task.id,
                "uploaded_by_id": current_user.id,
            },
        )
        await activity_service.log(
            db,
            project_id=task.project_id,
            user_id=current_user.id,
            action="ATTACHMENT_UPLOADED",
            entity_type="attachment",
            entity_id=attachment.id,
            details={"task_id": str(task.id), "filename": original_name},
        )
        await realtime_gateway.broadcast_to_project(
            task.project_id,
            "attachment-uploaded",
            AttachmentRead.model_validate(attachment).model_dump(mode="json"),
            user_id=current_user.id,
            user_name=current_user.display_name,
        )
        return attachment

    async def get_for_download(
        self, db: AsyncSession, *, attachment_id: uuid.UUID, current_user: User
    ) -> tuple[Attachment, str]:
        attachment, _ = await self._get(db, attachment_id, current_user)
        path = stored_path(attachment.filename)
        if not os.path.exists(path):
            raise NotFoundException("Attachment file")
        return attachment, path

    async def delete(
        self, db: AsyncSession, *, attachment_id: uuid.UUID, current_user: User
    ) -> None:
        attachment, task = await self._get(db, attachment_id, current_user)
        if attachment.uploaded_by_id != current_user.id:
            member = await crud_project.get_member(
                db, project_id=task.project_id, user_id=current_user.id
            )
            if member is None or not member.can_manage:
                raise ForbiddenException(
                    "Only the uploader or project admins can delete this attachment"
                )

        path = stored_path(attachment.filename)
        if os.path.exists(path):
            os.remove(path)
        await crud_attachment.remove(db, id=attachment_id)

        await activity_service.log(
            db,
            project_id=task.project_id,
            user_id=current_user.id,
            action="ATTACHMENT_DELETED",
            entity_type="attachment",
            entity_id=attachment_id,
            details={"task_id": str(task.id), "filename": attachment.original_name},
        )
        await realtime_gateway.broadcast_to_project(
            task.project_id,
            "attachment-deleted",
            {"id": str(attachment_id), "task_id": str(task.id)},
            user_id=current_user.id,
            user_name=current_user.display_name,
        )

    async def _get(
        self, db: AsyncSession, attachment_id: uuid.UUID, user: User
    ) -> tuple[Attachment, Task]:
        attachment = await crud_attachment.get(db, attachment_id)
        if attachment is None:
            raise NotFoundException("Attachment", str(attachment_id))
        task = await task_service.get_task(db, task_id=attachment.task_id, current_user=user)
        return attachment, task


attachment_service = AttachmentService()

"""
Attachment routes.
/api/v1/tasks/{task_id}/attachments accepts multipart/form-data uploads.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, UploadFile, status
from fastapi.responses import FileResponse

from app.core.dependencies import CurrentUser, DBSession, LiveModeOnly
from app.schemas.attachment import AttachmentRead
from app.schemas.pagination import PaginatedResponse, page_offset
from app.services.attachment_service import attachment_service

router = APIRouter(tags=["Attachments"], dependencies=[LiveModeOnly])


@router.get(
    "/tasks/{task_id}/attachments",
    response_model=PaginatedResponse[AttachmentRead],
    summary="List attachments for a task",
)
async def list_attachments(
    task_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
) -> PaginatedResponse[AttachmentRead]:
    attachments, total = await attachment_service.list_attachments(
        db,
        task_id=task_id,
        current_user=current_user,
        skip=page_offset(page, size),
        limit=size,
    )
    return PaginatedResponse(
        items=[AttachmentRead.model_validate(a) for a in attachments],
        total=total,
        page=page,
        size=size,
    )


@router.post(
    "/tasks/{task_id}/attachments",
    response_model=AttachmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a file attachment to a task",
)
async def upload_attachment(
    task_id: uuid.UUID,
    file: UploadFile,
    current_user: CurrentUser,
    db: DBSession,
) -> AttachmentRead:
    attachment = await attachment_service.upload(
        db, task_id=task_id, file=file, current_user=current_user
    )
    return AttachmentRead.model_validate(attachment)


@router.get(
    "/attachments/{attachment_id}/download",
    response_class=FileResponse,
    summary="Download an attachment",
)
async def download_attachment(
    attachment_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> FileResponse:
    attachment, path = await attachment_service.get_for_download(
        db, attachment_id=attachment_id, current_user=current_user
    )
    return FileResponse(
        path, media_type=attachment.mime_type, filename=attachment.original_name
    )


@router.delete(
    "/attachments/{attachment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an attachment",
)
async def delete_attachment(
    attachment_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await attachment_service.delete(
        db, attachment_id=attachment_id, current_user=current_user
    )

"""
Comment routes.
/api/v1/tasks/{task_id}/comments for the collection, /api/v1/comments/{id}
for edits.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from app.core.dependencies import CurrentUser, DBSession, LiveModeOnly
from app.schemas.comment import CommentCreate, CommentRead, CommentUpdate
from app.schemas.pagination import PaginatedResponse, page_offset
from app.services.comment_service import comment_service

router = APIRouter(tags=["Comments"], dependencies=[LiveModeOnly])


@router.get(
    "/tasks/{task_id}/comments",
    response_model=PaginatedResponse[CommentRead],
    summary="List comments on a task",
)
async def list_comments(
    task_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
    page: int = Query(default=1, ge=1),
    size: int = Query(default=50, ge=1, le=200),
) -> PaginatedResponse[CommentRead]:
    comments, total = await comment_service.list_comments(
        db,
        task_id=task_id,
        current_user=current_user,
        skip=page_offset(page, size),
        limit=size,
    )
    return PaginatedResponse(
        items=[CommentRead.model_validate(c) for c in comments],
        total=total,
        page=page,
        size=size,
    )


@router.post(
    "/tasks/{task_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add a comment to a task",
)
async def create_comment(
    task_id: uuid.UUID,
    comment_in: CommentCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> CommentRead:
    comment = await comment_service.create_comment(
        db, task_id=task_id, comment_in=comment_in, current_user=current_user
    )
    return CommentRead.model_validate(comment)


@router.put(
    "/comments/{comment_id}",
    response_model=CommentRead,
    summary="Edit a comment",
)
async def update_comment(
    comment_id: uuid.UUID,
    comment_in: CommentUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> CommentRead:
    comment = await comment_service.update_comment(
        db, comment_id=comment_id, comment_in=comment_in, current_user=current_user
    )
    return CommentRead.model_validate(comment)


@router.delete(
    "/comments/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a comment",
)
async def delete_comment(
    comment_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await comment_service.delete_comment(db, comment_id=comment_id, current_user=current_user)

"""
Single-list and single-label routes.
Collections live under /projects/{project_id}.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, status

from app.core.dependencies import CurrentUser, DBSession
from app.schemas.board import LabelRead, LabelUpdate, TaskListRead, TaskListUpdate
from app.services.label_service import label_service
from app.services.list_service import list_service

router = APIRouter(tags=["Lists & Labels"])


@router.put(
    "/lists/{list_id}",
    response_model=TaskListRead,
    summary="Rename a list",
)
async def update_list(
    list_id: uuid.UUID,
    list_in: TaskListUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> TaskListRead:
    task_list = await list_service.update_list(
        db, list_id=list_id, list_in=list_in, current_user=current_user
    )
    return TaskListRead.model_validate(task_list)


@router.delete(
    "/lists/{list_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a list and its tasks",
)
async def delete_list(
    list_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await list_service.delete_list(db, list_id=list_id, current_user=current_user)


@router.put(
    "/labels/{label_id}",
    response_model=LabelRead,
    summary="Update a label",
)
async def update_label(
    label_id: uuid.UUID,
    label_in: LabelUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> LabelRead:
    label = await label_service.update_label(
        db, label_id=label_id, label_in=label_in, current_user=current_user
    )
    return LabelRead.model_validate(label)


@router.delete(
    "/labels/{label_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a label",
)
async def delete_label(
    label_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await label_service.delete_label(db, label_id=label_id, current_user=current_user)

"""
Task routes.
CRUD within a list, move/reorder, assignees, labels and subtasks.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, status

from app.core.dependencies import CurrentUser, DBSession
from app.schemas.task import (
    SubTaskCreate,
    SubTaskRead,
    SubTaskUpdate,
    TaskCreate,
    TaskLabelAssign,
    TaskMemberAssign,
    TaskMove,
    TaskRead,
    TaskReorder,
    TaskUpdate,
)
from app.services.task_service import task_service

router = APIRouter(prefix="/tasks", tags=["Tasks"])


# ── By list ───────────────────────────────────────────────────────────────────

@router.get(
    "/lists/{list_id}/tasks",
    response_model=list[TaskRead],
    summary="List a list's tasks in order",
)
async def list_tasks(
    list_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> list[TaskRead]:
    tasks = await task_service.list_tasks(db, list_id=list_id, current_user=current_user)
    return [TaskRead.model_validate(t) for t in tasks]


@router.post(
    "/lists/{list_id}/tasks",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task at the end of a list",
)
async def create_task(
    list_id: uuid.UUID,
    task_in: TaskCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> TaskRead:
    task = await task_service.create_task(
        db, list_id=list_id, task_in=task_in, current_user=current_user
    )
    return TaskRead.model_validate(task)


@router.put(
    "/lists/{list_id}/reorder",
    response_model=list[TaskRead],
    summary="Reorder the tasks of a list",
)
async def reorder_tasks(
    list_id: uuid.UUID,
    reorder_in: TaskReorder,
    current_user: CurrentUser,
    db: DBSession,
) -> list[TaskRead]:
    tasks = await task_service.reorder_tasks(
        db, list_id=list_id, reorder_in=reorder_in, current_user=current_user
    )
    return [TaskRead.model_validate(t) for t in tasks]


# ── Subtasks ──────────────────────────────────────────────────────────────────

@router.put(
    "/subtasks/{subtask_id}",
    response_model=SubTaskRead,
    summary="Update a subtask",
)
async def update_subtask(
    subtask_id: uuid.UUID,
    subtask_in: SubTaskUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> SubTaskRead:
    subtask = await task_service.update_subtask(
        db, subtask_id=subtask_id, subtask_in=subtask_in, current_user=current_user
    )
    return SubTaskRead.model_validate(subtask)


@router.delete(
    "/subtasks/{subtask_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a subtask",
)
async def delete_subtask(
    subtask_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await task_service.delete_subtask(db, subtask_id=subtask_id, current_user=current_user)


# ── Single task ───────────────────────────────────────────────────────────────

@router.get(
    "/{task_id}",
    response_model=TaskRead,
    summary="Get a task",
)
async def get_task(
    task_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> TaskRead:
    task = await task_service.get_task(db, task_id=task_id, current_user=current_user)
    return TaskRead.model_validate(task)


@router.put(
    "/{task_id}",
    response_model=TaskRead,
    summary="Update a task",
)
async def update_task(
    task_id: uuid.UUID,
    task_in: TaskUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> TaskRead:
    task = await task_service.update_task(
        db, task_id=task_id, task_in=task_in, current_user=current_user
    )
    return TaskRead.model_validate(task)


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a task",
)
async def delete_task(
    task_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await task_service.delete_task(db, task_id=task_id, current_user=current_user)


@router.put(
    "/{task_id}/move",
    response_model=TaskRead,
    summary="Move a task to another list or position",
)
async def move_task(
    task_id: uuid.UUID,
    move_in: TaskMove,
    current_user: CurrentUser,
    db: DBSession,
) -> TaskRead:
    task = await task_service.move_task(
        db, task_id=task_id, move_in=move_in, current_user=current_user
    )
    return TaskRead.model_validate(task)


@router.post(
    "/{task_id}/members",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    summary="Assign a project member to the task",
)
async def add_task_member(
    task_id: uuid.UUID,
    body: TaskMemberAssign,
    current_user: CurrentUser,
    db: DBSession,
) -> TaskRead:
    task = await task_service.add_member(
        db, task_id=task_id, user_id=body.user_id, current_user=current_user
    )
    return TaskRead.model_validate(task)


@router.delete(
    "/{task_id}/members/{user_id}",
    response_model=TaskRead,
    summary="Unassign a member from the task",
)
async def remove_task_member(
    task_id: uuid.UUID,
    user_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> TaskRead:
    task = await task_service.remove_member(
        db, task_id=task_id, user_id=user_id, current_user=current_user
    )
    return TaskRead.model_validate(task)


@router.post(
    "/{task_id}/labels",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    summary="Apply a label to the task",
)
async def add_task_label(
    task_id: uuid.UUID,
    body: TaskLabelAssign,
    current_user: CurrentUser,
    db: DBSession,
) -> TaskRead:
    task = await task_service.add_label(
        db, task_id=task_id, label_id=body.label_id, current_user=current_user
    )
    return TaskRead.model_validate(task)


@router.delete(
    "/{task_id}/labels/{label_id}",
    response_model=TaskRead,
    summary="Remove a label from the task",
)
async def remove_task_label(
    task_id: uuid.UUID,
    label_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> TaskRead:
    task = await task_service.remove_label(
        db, task_id=task_id, label_id=label_id, current_user=current_user
    )
    return TaskRead.model_validate(task)


@router.post(
    "/{task_id}/subtasks",
    response_model=SubTaskRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add a subtask",
)
async def add_subtask(
    task_id: uuid.UUID,
    subtask_in: SubTaskCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> SubTaskRead:
    subtask = await task_service.add_subtask(
        db, task_id=task_id, subtask_in=subtask_in, current_user=current_user
    )
    return SubTaskRead.model_validate(subtask)

"""
Demo-mode routes.
Mounted ahead of the database-backed API when DEMO_MODE is on and served
from the in-memory store. Paths mirror the real API, so anything not
handled here falls through to the regular routes, where database-only
mutations answer 403 DEMO_MODE_RESTRICTED.
"""
from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from pydantic import BaseModel, Field

from app.core.config import settings
from app.core.exceptions import InvalidTokenException, UnauthorizedException
from app.core.rate_limit import limiter
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
)
from app.demo.scheduler import demo_scheduler
from app.demo.store import (
    DemoLabel,
    DemoList,
    DemoMemberRead,
    DemoProject,
    DemoProjectData,
    DemoSubTask,
    DemoTask,
    DemoTaskRead,
    DemoUser,
    DemoUserRead,
    demo_store,
)
from app.schemas.board import LabelCreate, LabelUpdate, TaskListCreate, TaskListUpdate
from app.schemas.project import ProjectCreate, ProjectUpdate
from app.schemas.task import SubTaskCreate, SubTaskUpdate, TaskCreate, TaskUpdate
from app.schemas.user import LoginRequest, RefreshTokenRequest, Token
from app.services.realtime_service import realtime_gateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Demo"])
info_router = APIRouter(tags=["Demo"])

bearer_scheme = HTTPBearer(auto_error=False)


# ── Request bodies with demo ids ──────────────────────────────────────────────

class DemoListReorder(BaseModel):
    list_ids: list[str]


class DemoTaskMove(BaseModel):
    list_id: str
    position: int | None = Field(default=None, ge=0)


class DemoTaskReorder(BaseModel):
    task_ids: list[str]


class DemoMemberAssign(BaseModel):
    user_id: str


class DemoLabelAssign(BaseModel):
    label_id: str


# ── Auth ──────────────────────────────────────────────────────────────────────

async def get_demo_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ] = None,
) -> DemoUser:
    if credentials is None:
        raise UnauthorizedException("Missing authentication token")
    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError:
        raise InvalidTokenException("Invalid or expired access token")
    user = demo_store.get_user(payload.get("sub") or "")
    if user is None:
        # Tokens minted before the last reset point at users that no longer exist
        raise UnauthorizedException("User not found")
    return user


DemoCurrentUser = Annotated[DemoUser, Depends(get_demo_user)]


def _issue_tokens(user: DemoUser) -> Token:
    return Token(
        access_token=create_access_token(user.id, user.role, user.display_name),
        refresh_token=create_refresh_token(user.id),
    )


@router.post("/auth/login", response_model=Token, summary="Log in as the demo user")
@limiter.limit(settings.RATE_LIMIT_LOGIN)
async def login(request: Request, credentials: LoginRequest) -> Token:
    user = demo_store.authenticate(credentials.email, credentials.password)
    if user is None:
        raise UnauthorizedException("Invalid email or password")
    logger.info("Demo login: user_id=%s", user.id)
    return _issue_tokens(user)


@router.post("/auth/refresh", response_model=Token, summary="Refresh a demo token")
async def refresh(body: RefreshTokenRequest) -> Token:
    try:
        payload = decode_refresh_token(body.refresh_token)
    except JWTError:
        raise InvalidTokenException("Invalid or expired refresh token")
    user = demo_store.get_user(payload.get("sub") or "")
    if user is None:
        raise InvalidTokenException("User not found")
    return _issue_tokens(user)


@router.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(current_user: DemoCurrentUser) -> None:
    return None


@router.get("/users/me", response_model=DemoUserRead)
async def me(current_user: DemoCurrentUser) -> DemoUserRead:
    return DemoUserRead.model_validate(current_user)


# ── Projects ──────────────────────────────────────────────────────────────────

async def _broadcast(
    project_id: str, event: str, payload: Any, user: DemoUser, kind: str | None = None
) -> None:
    await realtime_gateway.broadcast_to_project(
        project_id,
        event,
        payload,
        user_id=user.id,
        user_name=user.display_name,
        type=kind,
    )


def _task_json(task: DemoTask) -> dict[str, Any]:
    return demo_store.task_view(task).model_dump(mode="json")


@router.get("/projects/", response_model=list[DemoProject])
async def list_projects(current_user: DemoCurrentUser) -> list[DemoProject]:
    return demo_store.list_projects(user_id=current_user.id)


@router.post("/projects/", response_model=DemoProject, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_in: ProjectCreate, current_user: DemoCurrentUser
) -> DemoProject:
    return demo_store.create_project(
        user_id=current_user.id, name=project_in.name, description=project_in.description
    )


@router.get("/projects/{project_id}", response_model=DemoProject)
async def get_project(project_id: str, current_user: DemoCurrentUser) -> DemoProject:
    return demo_store.get_project(project_id, user_id=current_user.id)


@router.put("/projects/{project_id}", response_model=DemoProject)
async def update_project(
    project_id: str, project_in: ProjectUpdate, current_user: DemoCurrentUser
) -> DemoProject:
    project = demo_store.update_project(
        project_id,
        user_id=current_user.id,
        changes=project_in.model_dump(exclude_unset=True),
    )
    await _broadcast(
        project_id, "project-updated", project.model_dump(mode="json"), current_user,
        "project-updated",
    )
    return project


@router.delete("/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: str, current_user: DemoCurrentUser) -> None:
    demo_store.delete_project(project_id, user_id=current_user.id)
    await _broadcast(
        project_id, "project-updated", {"id": project_id}, current_user, "project-deleted"
    )


@router.get("/projects/{project_id}/data", response_model=DemoProjectData)
async def get_project_data(project_id: str, current_user: DemoCurrentUser) -> DemoProjectData:
    return demo_store.project_data(project_id, user_id=current_user.id)


@router.get("/projects/{project_id}/members", response_model=list[DemoMemberRead])
async def list_members(project_id: str, current_user: DemoCurrentUser) -> list[DemoMemberRead]:
    return demo_store.list_members(project_id, user_id=current_user.id)


# ── Lists ─────────────────────────────────────────────────────────────────────

@router.get("/projects/{project_id}/lists", response_model=list[DemoList])
async def list_lists(project_id: str, current_user: DemoCurrentUser) -> list[DemoList]:
    return demo_store.list_lists(project_id, user_id=current_user.id)


@router.post(
    "/projects/{project_id}/lists",
    response_model=DemoList,
    status_code=status.HTTP_201_CREATED,
)
async def create_list(
    project_id: str, list_in: TaskListCreate, current_user: DemoCurrentUser
) -> DemoList:
    task_list = demo_store.create_list(project_id, user_id=current_user.id, name=list_in.name)
    await _broadcast(
        project_id, "list-updated", task_list.model_dump(mode="json"), current_user,
        "list-created",
    )
    return task_list


@router.put("/projects/{project_id}/lists/reorder", response_model=list[DemoList])
async def reorder_lists(
    project_id: str, reorder_in: DemoListReorder, current_user: DemoCurrentUser
) -> list[DemoList]:
    lists = demo_store.reorder_lists(
        project_id, user_id=current_user.id, list_ids=reorder_in.list_ids
    )
    await _broadcast(
        project_id, "list-updated", {"list_ids": reorder_in.list_ids}, current_user,
        "lists-reordered",
    )
    return lists


@router.put("/lists/{list_id}", response_model=DemoList)
async def update_list(
    list_id: str, list_in: TaskListUpdate, current_user: DemoCurrentUser
) -> DemoList:
    task_list = demo_store.get_list(list_id, user_id=current_user.id)
    if list_in.name is not None:
        task_list = demo_store.update_list(list_id, user_id=current_user.id, name=list_in.name)
    await _broadcast(
        task_list.project_id, "list-updated", task_list.model_dump(mode="json"),
        current_user, "list-updated",
    )
    return task_list


@router.delete("/lists/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_list(list_id: str, current_user: DemoCurrentUser) -> None:
    task_list = demo_store.delete_list(list_id, user_id=current_user.id)
    await _broadcast(
        task_list.project_id,
        "list-updated",
        {"id": list_id, "board_id": None},
        current_user,
        "list-deleted",
    )


# ── Labels ────────────────────────────────────────────────────────────────────

@router.get("/projects/{project_id}/labels", response_model=list[DemoLabel])
async def list_labels(project_id: str, current_user: DemoCurrentUser) -> list[DemoLabel]:
    return demo_store.list_labels(project_id, user_id=current_user.id)


@router.post(
    "/projects/{project_id}/labels",
    response_model=DemoLabel,
    status_code=status.HTTP_201_CREATED,
)
async def create_label(
    project_id: str, label_in: LabelCreate, current_user: DemoCurrentUser
) -> DemoLabel:
    label = demo_store.create_label(
        project_id, user_id=current_user.id, name=label_in.name, color=label_in.color
    )
    await _broadcast(
        project_id, "label-updated", label.model_dump(mode="json"), current_user,
        "label-created",
    )
    return label


@router.put("/labels/{label_id}", response_model=DemoLabel)
async def update_label(
    label_id: str, label_in: LabelUpdate, current_user: DemoCurrentUser
) -> DemoLabel:
    label = demo_store.update_label(
        label_id, user_id=current_user.id, changes=label_in.model_dump(exclude_unset=True)
    )
    await _broadcast(
        label.project_id, "label-updated", label.model_dump(mode="json"), current_user,
        "label-updated",
    )
    return label


@router.delete("/labels/{label_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_label(label_id: str, current_user: DemoCurrentUser) -> None:
    label = demo_store.delete_label(label_id, user_id=current_user.id)
    await _broadcast(
        label.project_id, "label-updated", {"id": label_id}, current_user, "label-deleted"
    )


# ── Tasks ─────────────────────────────────────────────────────────────────────

@router.get("/tasks/lists/{list_id}/tasks", response_model=list[DemoTaskRead])
async def list_tasks(list_id: str, current_user: DemoCurrentUser) -> list[DemoTaskRead]:
    tasks = demo_store.list_tasks(list_id, user_id=current_user.id)
    return [demo_store.task_view(t) for t in tasks]


@router.post(
    "/tasks/lists/{list_id}/tasks",
    response_model=DemoTaskRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    list_id: str, task_in: TaskCreate, current_user: DemoCurrentUser
) -> DemoTaskRead:
    task = demo_store.create_task(
        list_id,
        user_id=current_user.id,
        name=task_in.name,
        description=task_in.description,
        due_date=task_in.due_date,
    )
    await _broadcast(task.project_id, "task-created", _task_json(task), current_user)
    return demo_store.task_view(task)


@router.put("/tasks/lists/{list_id}/reorder", response_model=list[DemoTaskRead])
async def reorder_tasks(
    list_id: str, reorder_in: DemoTaskReorder, current_user: DemoCurrentUser
) -> list[DemoTaskRead]:
    tasks = demo_store.reorder_tasks(
        list_id, user_id=current_user.id, task_ids=reorder_in.task_ids
    )
    if tasks:
        await _broadcast(
            tasks[0].project_id,
            "tasks-reordered",
            {"list_id": list_id, "task_ids": reorder_in.task_ids},
            current_user,
        )
    return [demo_store.task_view(t) for t in tasks]


@router.put("/tasks/subtasks/{subtask_id}", response_model=DemoSubTask)
async def update_subtask(
    subtask_id: str, subtask_in: SubTaskUpdate, current_user: DemoCurrentUser
) -> DemoSubTask:
    subtask, task = demo_store.update_subtask(
        subtask_id, user_id=current_user.id, changes=subtask_in.model_dump(exclude_unset=True)
    )
    await _broadcast(
        task.project_id,
        "task-updated",
        subtask.model_dump(mode="json"),
        current_user,
        "subtask-updated",
    )
    return subtask


@router.delete("/tasks/subtasks/{subtask_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subtask(subtask_id: str, current_user: DemoCurrentUser) -> None:
    task = demo_store.delete_subtask(subtask_id, user_id=current_user.id)
    await _broadcast(
        task.project_id,
        "task-updated",
        {"id": subtask_id, "task_id": task.id},
        current_user,
        "subtask-deleted",
    )


@router.get("/tasks/{task_id}", response_model=DemoTaskRead)
async def get_task(task_id: str, current_user: DemoCurrentUser) -> DemoTaskRead:
    return demo_store.task_view(demo_store.get_task(task_id, user_id=current_user.id))


@router.put("/tasks/{task_id}", response_model=DemoTaskRead)
async def update_task(
    task_id: str, task_in: TaskUpdate, current_user: DemoCurrentUser
) -> DemoTaskRead:
    task = demo_store.update_task(
        task_id, user_id=current_user.id, changes=task_in.model_dump(exclude_unset=True)
    )
    await _broadcast(task.project_id, "task-updated", _task_json(task), current_user)
    return demo_store.task_view(task)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: str, current_user: DemoCurrentUser) -> None:
    task = demo_store.delete_task(task_id, user_id=current_user.id)
    await _broadcast(
        task.project_id, "task-deleted", {"id": task_id, "list_id": task.list_id}, current_user
    )


@router.put("/tasks/{task_id}/move", response_model=DemoTaskRead)
async def move_task(
    task_id: str, move_in: DemoTaskMove, current_user: DemoCurrentUser
) -> DemoTaskRead:
    task, source_list_id = demo_store.move_task(
        task_id, user_id=current_user.id, list_id=move_in.list_id, position=move_in.position
    )
    payload = {
        "task": _task_json(task),
        "from_list_id": source_list_id,
        "to_list_id": task.list_id,
        "position": task.position,
    }
    await _broadcast(task.project_id, "task-moved", payload, current_user)
    return demo_store.task_view(task)


@router.post(
    "/tasks/{task_id}/members",
    response_model=DemoTaskRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_task_member(
    task_id: str, body: DemoMemberAssign, current_user: DemoCurrentUser
) -> DemoTaskRead:
    task = demo_store.add_task_member(task_id, user_id=current_user.id, member_id=body.user_id)
    await _broadcast(
        task.project_id, "task-updated", _task_json(task), current_user, "task-member-added"
    )
    return demo_store.task_view(task)


@router.delete("/tasks/{task_id}/members/{user_id}", response_model=DemoTaskRead)
async def remove_task_member(
    task_id: str, user_id: str, current_user: DemoCurrentUser
) -> DemoTaskRead:
    task = demo_store.remove_task_member(task_id, user_id=current_user.id, member_id=user_id)
    await _broadcast(
        task.project_id, "task-updated", _task_json(task), current_user, "task-member-removed"
    )
    return demo_store.task_view(task)


@router.post(
    "/tasks/{task_id}/labels",
    response_model=DemoTaskRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_task_label(
    task_id: str, body: DemoLabelAssign, current_user: DemoCurrentUser
) -> DemoTaskRead:
    task = demo_store.add_task_label(task_id, user_id=current_user.id, label_id=body.label_id)
    await _broadcast(
        task.project_id, "task-updated", _task_json(task), current_user, "task-label-added"
    )
    return demo_store.task_view(task)


@router.delete("/tasks/{task_id}/labels/{label_id}", response_model=DemoTaskRead)
async def remove_task_label(
    task_id: str, label_id: str, current_user: DemoCurrentUser
) -> DemoTaskRead:
    task = demo_store.remove_task_label(task_id, user_id=current_user.id, label_id=label_id)
    await _broadcast(
        task.project_id, "task-updated", _task_json(task), current_user, "task-label-removed"
    )
    return demo_store.task_view(task)


@router.post(
    "/tasks/{task_id}/subtasks",
    response_model=DemoSubTask,
    status_code=status.HTTP_201_CREATED,
)
async def add_subtask(
    task_id: str, subtask_in: SubTaskCreate, current_user: DemoCurrentUser
) -> DemoSubTask:
    subtask = demo_store.add_subtask(task_id, user_id=current_user.id, name=subtask_in.name)
    task = demo_store.get_task(task_id, user_id=current_user.id)
    await _broadcast(
        task.project_id,
        "task-updated",
        subtask.model_dump(mode="json"),
        current_user,
        "subtask-created",
    )
    return subtask


# ── Info ──────────────────────────────────────────────────────────────────────

@info_router.get("/demo-info", summary="Whether demo mode is on, and how to log in")
async def demo_info() -> dict[str, Any]:
    if not settings.DEMO_MODE:
        return {"demo_mode": False}
    return {
        "demo_mode": True,
        "credentials": {
            "email": settings.DEMO_EMAIL,
            "password": settings.DEMO_PASSWORD,
        },
        "seconds_until_reset": demo_scheduler.seconds_until_reset(),
        "stats": demo_store.stats(),
    }

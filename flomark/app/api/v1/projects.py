"""
Project routes.
Projects, their members and invite codes, plus the project-scoped list and
label collections.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, status

from app.core.dependencies import CurrentUser, DBSession, LiveModeOnly
from app.schemas.board import (
    LabelCreate,
    LabelRead,
    TaskListCreate,
    TaskListRead,
    TaskListReorder,
)
from app.schemas.project import (
    ProjectCreate,
    ProjectInviteRead,
    ProjectMemberAdd,
    ProjectMemberRead,
    ProjectMemberRoleUpdate,
    ProjectRead,
    ProjectUpdate,
)
from app.schemas.project_data import ProjectData
from app.services.label_service import label_service
from app.services.list_service import list_service
from app.services.project_service import project_service

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.get(
    "/",
    response_model=list[ProjectRead],
    summary="List projects I belong to",
)
async def list_projects(
    current_user: CurrentUser,
    db: DBSession,
) -> list[ProjectRead]:
    projects = await project_service.list_projects(db, current_user=current_user)
    return [ProjectRead.model_validate(p) for p in projects]


@router.post(
    "/",
    response_model=ProjectRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
)
async def create_project(
    project_in: ProjectCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectRead:
    project = await project_service.create_project(
        db, project_in=project_in, current_user=current_user
    )
    return ProjectRead.model_validate(project)


@router.post(
    "/join/{invite_code}",
    response_model=ProjectMemberRead,
    status_code=status.HTTP_201_CREATED,
    summary="Join a project with an invite code",
    dependencies=[LiveModeOnly],
)
async def join_project(
    invite_code: str,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectMemberRead:
    member = await project_service.join_by_invite(
        db, invite_code=invite_code, current_user=current_user
    )
    return ProjectMemberRead.model_validate(member)


@router.get(
    "/{project_id}",
    response_model=ProjectRead,
    summary="Get a project",
)
async def get_project(
    project_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectRead:
    project = await project_service.get_project(
        db, project_id=project_id, current_user=current_user
    )
    return ProjectRead.model_validate(project)


@router.put(
    "/{project_id}",
    response_model=ProjectRead,
    summary="Update project details",
)
async def update_project(
    project_id: uuid.UUID,
    project_in: ProjectUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectRead:
    project = await project_service.update_project(
        db, project_id=project_id, project_in=project_in, current_user=current_user
    )
    return ProjectRead.model_validate(project)


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a project and everything in it",
)
async def delete_project(
    project_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await project_service.delete_project(
        db, project_id=project_id, current_user=current_user
    )


@router.get(
    "/{project_id}/data",
    response_model=ProjectData,
    summary="Boards, lists with tasks, labels and members in one payload",
)
async def get_project_data(
    project_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectData:
    return await project_service.get_project_data(
        db, project_id=project_id, current_user=current_user
    )


# ── Members ───────────────────────────────────────────────────────────────────

@router.get(
    "/{project_id}/members",
    response_model=list[ProjectMemberRead],
    summary="List project members",
)
async def list_members(
    project_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> list[ProjectMemberRead]:
    members = await project_service.list_members(
        db, project_id=project_id, current_user=current_user
    )
    return [ProjectMemberRead.model_validate(m) for m in members]


@router.post(
    "/{project_id}/members",
    response_model=ProjectMemberRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add a member by email",
    dependencies=[LiveModeOnly],
)
async def add_member(
    project_id: uuid.UUID,
    member_in: ProjectMemberAdd,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectMemberRead:
    member = await project_service.add_member(
        db, project_id=project_id, member_in=member_in, current_user=current_user
    )
    return ProjectMemberRead.model_validate(member)


@router.put(
    "/{project_id}/members/{user_id}",
    response_model=ProjectMemberRead,
    summary="Change a member's role",
    dependencies=[LiveModeOnly],
)
async def update_member_role(
    project_id: uuid.UUID,
    user_id: uuid.UUID,
    role_in: ProjectMemberRoleUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectMemberRead:
    member = await project_service.update_member_role(
        db,
        project_id=project_id,
        user_id=user_id,
        role=role_in.role,
        current_user=current_user,
    )
    return ProjectMemberRead.model_validate(member)


@router.delete(
    "/{project_id}/members/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a member or leave the project",
    dependencies=[LiveModeOnly],
)
async def remove_member(
    project_id: uuid.UUID,
    user_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await project_service.remove_member(
        db, project_id=project_id, user_id=user_id, current_user=current_user
    )


@router.post(
    "/{project_id}/invite",
    response_model=ProjectInviteRead,
    summary="Get or create the project's invite code",
    dependencies=[LiveModeOnly],
)
async def create_invite(
    project_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectInviteRead:
    project = await project_service.create_invite(
        db, project_id=project_id, current_user=current_user
    )
    return ProjectInviteRead(project_id=project.id, invite_code=project.invite_code or "")


# ── Lists ─────────────────────────────────────────────────────────────────────

@router.get(
    "/{project_id}/lists",
    response_model=list[TaskListRead],
    summary="List the project's lists",
)
async def list_lists(
    project_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> list[TaskListRead]:
    lists = await list_service.list_lists(
        db, project_id=project_id, current_user=current_user
    )
    return [TaskListRead.model_validate(lst) for lst in lists]


@router.post(
    "/{project_id}/lists",
    response_model=TaskListRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a list",
)
async def create_list(
    project_id: uuid.UUID,
    list_in: TaskListCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> TaskListRead:
    task_list = await list_service.create_list(
        db, project_id=project_id, list_in=list_in, current_user=current_user
    )
    return TaskListRead.model_validate(task_list)


@router.put(
    "/{project_id}/lists/reorder",
    response_model=list[TaskListRead],
    summary="Reorder the lists of one board",
)
async def reorder_lists(
    project_id: uuid.UUID,
    reorder_in: TaskListReorder,
    current_user: CurrentUser,
    db: DBSession,
) -> list[TaskListRead]:
    lists = await list_service.reorder_lists(
        db, project_id=project_id, reorder_in=reorder_in, current_user=current_user
    )
    return [TaskListRead.model_validate(lst) for lst in lists]


# ── Labels ────────────────────────────────────────────────────────────────────

@router.get(
    "/{project_id}/labels",
    response_model=list[LabelRead],
    summary="List the project's labels",
)
async def list_labels(
    project_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> list[LabelRead]:
    labels = await label_service.list_labels(
        db, project_id=project_id, current_user=current_user
    )
    return [LabelRead.model_validate(label) for label in labels]


@router.post(
    "/{project_id}/labels",
    response_model=LabelRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a label",
)
async def create_label(
    project_id: uuid.UUID,
    label_in: LabelCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> LabelRead:
    label = await label_service.create_label(
        db, project_id=project_id, label_in=label_in, current_user=current_user
    )
    return LabelRead.model_validate(label)

"""
Project and membership service.
Every project-scoped resource goes through require_member(), which is the
single gate deciding who may see or change a project's data.
"""
from __future__ import annotations

import logging
import uuid
from collections import defaultdict

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    BadRequestException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
)
from app.core.security import generate_invite_code
from app.crud.board import crud_board
from app.crud.label import crud_label
from app.crud.project import crud_project
from app.crud.task import crud_task
from app.crud.task_list import crud_task_list
from app.crud.user import crud_user
from app.models.project import Project, ProjectMember
from app.models.user import User
from app.schemas.board import BoardRead, LabelRead, TaskListRead
from app.schemas.project import (
    ProjectCreate,
    ProjectMemberAdd,
    ProjectMemberRead,
    ProjectRead,
    ProjectUpdate,
)
from app.schemas.project_data import ProjectData, TaskListWithTasks
from app.schemas.task import TaskRead
from app.services.activity_service import activity_service
from app.services.notification_service import notification_service
from app.services.realtime_service import realtime_gateway

logger = logging.getLogger(__name__)


async def require_member(
    db: AsyncSession, *, project_id: uuid.UUID, user: User
) -> tuple[Project, ProjectMember]:
    """Return the project and the caller's membership, or raise 404/403."""
    project = await crud_project.get(db, project_id)
    if project is None:
        raise NotFoundException("Project", str(project_id))
    member = await crud_project.get_member(db, project_id=project_id, user_id=user.id)
    if member is None:
        raise ForbiddenException("You are not a member of this project")
    return project, member


async def require_manager(
    db: AsyncSession, *, project_id: uuid.UUID, user: User
) -> tuple[Project, ProjectMember]:
    project, member = await require_member(db, project_id=project_id, user=user)
    if not member.can_manage:
        raise ForbiddenException("Only the project owner or admins can do this")
    return project, member


class ProjectService:

    async def list_projects(self, db: AsyncSession, *, current_user: User) -> list[Project]:
        return await crud_project.list_for_user(db, user_id=current_user.id)

    async def create_project(
        self, db: AsyncSession, *, project_in: ProjectCreate, current_user: User
    ) -> Project:
        owned = await crud_project.get_count(db, owner_id=current_user.id)
        if owned >= settings.MAX_OWNED_PROJECTS:
            raise BadRequestException(
                f"You can own at most {settings.MAX_OWNED_PROJECTS} projects",
                error_code="PROJECT_LIMIT_REACHED",
            )
        project = await crud_project.create_with_owner(
            db, obj_in=project_in, owner_id=current_user.id
        )
        await activity_service.log(
            db,
            project_id=project.id,
            user_id=current_user.id,
            action="PROJECT_CREATED",
            entity_type="project",
            entity_id=project.id,
            details={"name": project.name},
        )
        return project

    async def get_project(
        self, db: AsyncSession, *, project_id: uuid.UUID, current_user: User
    ) -> Project:
        project, _ = await require_member(db, project_id=project_id, user=current_user)
        return project

    async def update_project(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        project_in: ProjectUpdate,
        current_user: User,
    ) -> Project:
        project, _ = await require_manager(db, project_id=project_id, user=current_user)
        updated = await crud_project.update(db, db_obj=project, obj_in=project_in)
        await activity_service.log(
            db,
            project_id=project.id,
            user_id=current_user.id,
            action="PROJECT_UPDATED",
            entity_type="project",
            entity_id=project.id,
            details=project_in.model_dump(exclude_unset=True),
        )
        await realtime_gateway.broadcast_to_project(
            project.id,
            "project-updated",
            ProjectRead.model_validate(updated).model_dump(mode="json"),
            user_id=current_user.id,
            user_name=current_user.display_name,
            type="project-updated",
        )
        return updated

    async def delete_project(
        self, db: AsyncSession, *, project_id: uuid.UUID, current_user: User
    ) -> None:
        project, member = await require_member(
            db, project_id=project_id, user=current_user
        )
        if member.role != "OWNER":
            raise ForbiddenException("Only the project owner can delete the project")
        await crud_project.remove(db, id=project.id)
        logger.info("Project deleted: project_id=%s by user_id=%s", project_id, current_user.id)
        await realtime_gateway.broadcast_to_project(
            project_id,
            "project-updated",
            {"id": str(project_id)},
            user_id=current_user.id,
            user_name=current_user.display_name,
            type="project-deleted",
        )

    async def get_project_data(
        self, db: AsyncSession, *, project_id: uuid.UUID, current_user: User
    ) -> ProjectData:
        """Everything needed to render a project board in one payload."""
        project, _ = await require_member(db, project_id=project_id, user=current_user)
        boards = await crud_board.list_by_project(db, project_id=project_id)
        lists = await crud_task_list.list_by_project(db, project_id=project_id)
        tasks = await crud_task.list_by_project(db, project_id=project_id)
        labels = await crud_label.list_by_project(db, project_id=project_id)
        members = await crud_project.list_members(db, project_id=project_id)

        tasks_by_list: dict[uuid.UUID, list[TaskRead]] = defaultdict(list)
        for task in tasks:
            tasks_by_list[task.list_id].append(TaskRead.model_validate(task))

        return ProjectData(
            project=ProjectRead.model_validate(project),
            boards=[BoardRead.model_validate(b) for b in boards],
            lists=[
                TaskListWithTasks(
                    **TaskListRead.model_validate(lst).model_dump(),
                    tasks=tasks_by_list.get(lst.id, []),
                )
                for lst in lists
            ],
            labels=[LabelRead.model_validate(label) for label in labels],
            members=[ProjectMemberRead.model_validate(m) for m in members],
        )

    # ── Members ───────────────────────────────────────────────────────────────

    async def list_members(
        self, db: AsyncSession, *, project_id: uuid.UUID, current_user: User
    ) -> list[ProjectMember]:
        await require_member(db, project_id=project_id, user=current_user)
        return await crud_project.list_members(db, project_id=project_id)

    async def add_member(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        member_in: ProjectMemberAdd,
        current_user: User,
    ) -> ProjectMember:
        project, _ = await require_manager(db, project_id=project_id, user=current_user)

        target = await crud_user.get_active_by_email(db, member_in.email)
        if target is None:
            raise NotFoundException("User")

        existing = await crud_project.get_member(db, project_id=project_id, user_id=target.id)
        if existing is not None:
            raise ConflictException("User is already a member of this project")

        member = await crud_project.add_member(
            db, project_id=project_id, user_id=target.id, role=member_in.role
        )
        await notification_service.notify_project_invitation(
            db,
            user_id=target.id,
            project_id=project.id,
            project_name=project.name,
            inviter_name=current_user.display_name,
        )
        await activity_service.log(
            db,
            project_id=project.id,
            user_id=current_user.id,
            action="MEMBER_ADDED",
            entity_type="member",
            entity_id=target.id,
            details={"role": member_in.role},
        )
        await self._broadcast_members(project.id, current_user, "member-added", member)
        return member

    async def update_member_role(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        user_id: uuid.UUID,
        role: str,
        current_user: User,
    ) -> ProjectMember:
        project, caller = await require_member(db, project_id=project_id, user=current_user)
        if caller.role != "OWNER":
            raise ForbiddenException("Only the project owner can change member roles")

        member = await crud_project.get_member(db, project_id=project_id, user_id=user_id)
        if member is None:
            raise NotFoundException("Project member")
        if member.role == "OWNER":
            raise BadRequestException("The owner's role cannot be changed")

        updated = await crud_project.update_member_role(db, member=member, role=role)
        await activity_service.log(
            db,
            project_id=project.id,
            user_id=current_user.id,
            action="MEMBER_ROLE_UPDATED",
            entity_type="member",
            entity_id=user_id,
            details={"role": role},
        )
        await self._broadcast_members(project.id, current_user, "member-updated", updated)
        return updated

    async def remove_member(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        user_id: uuid.UUID,
        current_user: User,
    ) -> None:
        """
        Managers may remove others; anyone may remove themselves.
        The owner can never be removed. The removed user's task
        assignments in this project go with them.
        """
        project, caller = await require_member(db, project_id=project_id, user=current_user)
        member = await crud_project.get_member(db, project_id=project_id, user_id=user_id)
        if member is None:
            raise NotFoundException("Project member")
        if member.role == "OWNER":
            raise BadRequestException("The project owner cannot leave or be removed")
        if user_id != current_user.id and not caller.can_manage:
            raise ForbiddenException("Only the project owner or admins can remove members")

        member_name = member.user.display_name
        await crud_task.unassign_user_in_project(db, project_id=project_id, user_id=user_id)
        await crud_project.remove_member(db, project_id=project_id, user_id=user_id)

        remaining = await crud_project.member_user_ids(db, project_id=project_id)
        await notification_service.notify_member_left(
            db,
            user_ids=remaining,
            member_id=user_id,
            member_name=member_name,
            project_id=project.id,
            project_name=project.name,
            actor_id=current_user.id,
        )
        await activity_service.log(
            db,
            project_id=project.id,
            user_id=current_user.id,
            action="MEMBER_REMOVED",
            entity_type="member",
            entity_id=user_id,
        )
        await realtime_gateway.broadcast_to_project(
            project.id,
            "member-updated",
            {"user_id": str(user_id)},
            user_id=current_user.id,
            user_name=current_user.display_name,
            type="member-removed",
        )

    # ── Invites ───────────────────────────────────────────────────────────────

    async def create_invite(
        self, db: AsyncSession, *, project_id: uuid.UUID, current_user: User
    ) -> Project:
        """Return the project's invite code, generating one on first use."""
        project, _ = await require_manager(db, project_id=project_id, user=current_user)
        if project.invite_code is None:
            project = await crud_project.update(
                db, db_obj=project, obj_in={"invite_code": generate_invite_code()}
            )
        return project

    async def join_by_invite(
        self, db: AsyncSession, *, invite_code: str, current_user: User
    ) -> ProjectMember:
        project = await crud_project.get_by_invite_code(db, invite_code)
        if project is None:
            raise NotFoundException("Invite")

        existing = await crud_project.get_member(
            db, project_id=project.id, user_id=current_user.id
        )
        if existing is not None:
            raise ConflictException("You are already a member of this project")

        others = await crud_project.member_user_ids(db, project_id=project.id)
        member = await crud_project.add_member(
            db, project_id=project.id, user_id=current_user.id
        )
        await notification_service.notify_member_joined(
            db,
            user_ids=others,
            joiner_id=current_user.id,
            joiner_name=current_user.display_name,
            project_id=project.id,
            project_name=project.name,
        )
        await activity_service.log(
            db,
            project_id=project.id,
            user_id=current_user.id,
            action="MEMBER_JOINED",
            entity_type="member",
            entity_id=current_user.id,
        )
        await self._broadcast_members(project.id, current_user, "member-joined", member)
        return member

    # ── Private helpers ───────────────────────────────────────────────────────

    async def _broadcast_members(
        self,
        project_id: uuid.UUID,
        actor: User,
        kind: str,
        member: ProjectMember,
    ) -> None:
        await realtime_gateway.broadcast_to_project(
            project_id,
            "member-updated",
            ProjectMemberRead.model_validate(member).model_dump(mode="json"),
            user_id=actor.id,
            user_name=actor.display_name,
            type=kind,
        )


project_service = ProjectService()

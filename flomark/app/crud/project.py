"""
Project and membership CRUD operations.
"""
from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.project import Project, ProjectMember
from app.schemas.project import ProjectCreate, ProjectUpdate


class CRUDProject(CRUDBase[Project, ProjectCreate, ProjectUpdate]):

    async def create_with_owner(
        self,
        db: AsyncSession,
        *,
        obj_in: ProjectCreate,
        owner_id: uuid.UUID,
    ) -> Project:
        """Create the project and its OWNER membership in one flush."""
        project = Project(
            name=obj_in.name,
            description=obj_in.description,
            owner_id=owner_id,
        )
        db.add(project)
        await db.flush()
        db.add(ProjectMember(project_id=project.id, user_id=owner_id, role="OWNER"))
        await db.flush()
        await db.refresh(project)
        return project

    async def list_for_user(
        self, db: AsyncSession, *, user_id: uuid.UUID
    ) -> list[Project]:
        """Return every project the user is a member of, newest first."""
        result = await db.execute(
            select(Project)
            .join(ProjectMember, ProjectMember.project_id == Project.id)
            .where(ProjectMember.user_id == user_id)
            .order_by(Project.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_by_invite_code(
        self, db: AsyncSession, invite_code: str
    ) -> Project | None:
        result = await db.execute(
            select(Project).where(Project.invite_code == invite_code)
        )
        return result.scalar_one_or_none()

    # ── Membership ────────────────────────────────────────────────────────────

    async def get_member(
        self, db: AsyncSession, *, project_id: uuid.UUID, user_id: uuid.UUID
    ) -> ProjectMember | None:
        result = await db.execute(
            select(ProjectMember).where(
                ProjectMember.project_id == project_id,
                ProjectMember.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_members(
        self, db: AsyncSession, *, project_id: uuid.UUID
    ) -> list[ProjectMember]:
        result = await db.execute(
            select(ProjectMember)
            .where(ProjectMember.project_id == project_id)
            .order_by(ProjectMember.joined_at.asc())
        )
        return list(result.scalars().all())

    async def member_user_ids(
        self, db: AsyncSession, *, project_id: uuid.UUID
    ) -> list[uuid.UUID]:
        result = await db.execute(
            select(ProjectMember.user_id).where(ProjectMember.project_id == project_id)
        )
        return [row[0] for row in result.all()]

    async def add_member(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        user_id: uuid.UUID,
        role: str = "MEMBER",
    ) -> ProjectMember:
        member = ProjectMember(project_id=project_id, user_id=user_id, role=role)
        db.add(member)
        await db.flush()
        await db.refresh(member)
        return member

    async def remove_member(
        self, db: AsyncSession, *, project_id: uuid.UUID, user_id: uuid.UUID
    ) -> ProjectMember | None:
        member = await self.get_member(db, project_id=project_id, user_id=user_id)
        if member is None:
            return None
        await db.delete(member)
        await db.flush()
        return member

    async def update_member_role(
        self,
        db: AsyncSession,
        *,
        member: ProjectMember,
        role: str,
    ) -> ProjectMember:
        member.role = role
        db.add(member)
        await db.flush()
        await db.refresh(member)
        return member


crud_project = CRUDProject(Project)

"""
TaskList (column) CRUD operations.
Positions are scoped to (project_id, board_id); a NULL board_id is its own scope.
"""
from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.task_list import TaskList
from app.schemas.board import TaskListCreate, TaskListUpdate


class CRUDTaskList(CRUDBase[TaskList, TaskListCreate, TaskListUpdate]):

    def _scope(self, project_id: uuid.UUID, board_id: uuid.UUID | None):
        query = select(TaskList).where(TaskList.project_id == project_id)
        if board_id is None:
            return query.where(TaskList.board_id.is_(None))
        return query.where(TaskList.board_id == board_id)

    async def list_by_project(
        self, db: AsyncSession, *, project_id: uuid.UUID
    ) -> list[TaskList]:
        result = await db.execute(
            select(TaskList)
            .where(TaskList.project_id == project_id)
            .order_by(TaskList.position.asc(), TaskList.created_at.asc())
        )
        return list(result.scalars().all())

    async def list_in_scope(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        board_id: uuid.UUID | None,
    ) -> list[TaskList]:
        result = await db.execute(
            self._scope(project_id, board_id).order_by(
                TaskList.position.asc(), TaskList.created_at.asc()
            )
        )
        return list(result.scalars().all())

    async def next_position(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        board_id: uuid.UUID | None,
    ) -> int:
        subquery = self._scope(project_id, board_id).subquery()
        result = await db.execute(select(func.max(subquery.c.position)))
        current = result.scalar_one_or_none()
        return 0 if current is None else current + 1


crud_task_list = CRUDTaskList(TaskList)

"""
Task CRUD operations.
Extends CRUDBase with per-list ordering queries and the assignee, label and
subtask association rows.
"""
from __future__ import annotations

import uuid

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.task import SubTask, Task, TaskLabel, TaskMember
from app.schemas.task import SubTaskCreate, SubTaskUpdate, TaskCreate, TaskUpdate


class CRUDTask(CRUDBase[Task, TaskCreate, TaskUpdate]):

    async def get_with_relations(
        self, db: AsyncSession, task_id: uuid.UUID
    ) -> Task | None:
        """
        Fetch a task with members, labels and subtasks freshly loaded.
        populate_existing re-runs the eager loaders for an instance that is
        already in the identity map, so association changes made earlier in
        the same session show up.
        """
        result = await db.execute(
            select(Task)
            .where(Task.id == task_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create_task(
        self,
        db: AsyncSession,
        *,
        obj_in: TaskCreate,
        project_id: uuid.UUID,
        list_id: uuid.UUID,
        position: int,
        created_by_id: uuid.UUID,
    ) -> Task:
        task = Task(
            name=obj_in.name,
            description=obj_in.description,
            due_date=obj_in.due_date,
            project_id=project_id,
            list_id=list_id,
            position=position,
            created_by_id=created_by_id,
        )
        db.add(task)
        await db.flush()
        await db.refresh(task)
        return task

    async def list_by_list(
        self, db: AsyncSession, *, list_id: uuid.UUID
    ) -> list[Task]:
        result = await db.execute(
            select(Task)
            .where(Task.list_id == list_id)
            .order_by(Task.position.asc(), Task.created_at.asc())
        )
        return list(result.scalars().all())

    async def list_by_project(
        self, db: AsyncSession, *, project_id: uuid.UUID
    ) -> list[Task]:
        result = await db.execute(
            select(Task)
            .where(Task.project_id == project_id)
            .order_by(Task.list_id, Task.position.asc(), Task.created_at.asc())
        )
        return list(result.scalars().all())

    async def count_completed(self, db: AsyncSession) -> int:
        result = await db.execute(
            select(func.count()).select_from(Task).where(Task.is_completed.is_(True))
        )
        return result.scalar_one()

    # ── Assignees ─────────────────────────────────────────────────────────────

    async def get_member_link(
        self, db: AsyncSession, *, task_id: uuid.UUID, user_id: uuid.UUID
    ) -> TaskMember | None:
        result = await db.execute(
            select(TaskMember).where(
                TaskMember.task_id == task_id, TaskMember.user_id == user_id
            )
        )
        return result.scalar_one_or_none()

    async def add_member(
        self, db: AsyncSession, *, task_id: uuid.UUID, user_id: uuid.UUID
    ) -> TaskMember:
        link = TaskMember(task_id=task_id, user_id=user_id)
        db.add(link)
        await db.flush()
        return link

    async def remove_member(self, db: AsyncSession, *, link: TaskMember) -> None:
        await db.delete(link)
        await db.flush()

    async def member_ids(
        self, db: AsyncSession, *, task_id: uuid.UUID
    ) -> list[uuid.UUID]:
        result = await db.execute(
            select(TaskMember.user_id).where(TaskMember.task_id == task_id)
        )
        return [row[0] for row in result.all()]

    async def unassign_user_in_project(
        self, db: AsyncSession, *, project_id: uuid.UUID, user_id: uuid.UUID
    ) -> int:
        """Drop every assignment the user holds on tasks of one project."""
        task_ids = select(Task.id).where(Task.project_id == project_id)
        result = await db.execute(
            delete(TaskMember)
            .where(TaskMember.user_id == user_id, TaskMember.task_id.in_(task_ids))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount  # type: ignore[return-value]

    # ── Labels ────────────────────────────────────────────────────────────────

    async def get_label_link(
        self, db: AsyncSession, *, task_id: uuid.UUID, label_id: uuid.UUID
    ) -> TaskLabel | None:
        result = await db.execute(
            select(TaskLabel).where(
                TaskLabel.task_id == task_id, TaskLabel.label_id == label_id
            )
        )
        return result.scalar_one_or_none()

    async def add_label(
        self, db: AsyncSession, *, task_id: uuid.UUID, label_id: uuid.UUID
    ) -> TaskLabel:
        link = TaskLabel(task_id=task_id, label_id=label_id)
        db.add(link)
        await db.flush()
        return link

    async def remove_label(self, db: AsyncSession, *, link: TaskLabel) -> None:
        await db.delete(link)
        await db.flush()


class CRUDSubTask(CRUDBase[SubTask, SubTaskCreate, SubTaskUpdate]):

    async def list_by_task(
        self, db: AsyncSession, *, task_id: uuid.UUID
    ) -> list[SubTask]:
        result = await db.execute(
            select(SubTask)
            .where(SubTask.task_id == task_id)
            .order_by(SubTask.position.asc(), SubTask.created_at.asc())
        )
        return list(result.scalars().all())

    async def next_position(self, db: AsyncSession, *, task_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.max(SubTask.position)).where(SubTask.task_id == task_id)
        )
        current = result.scalar_one_or_none()
        return 0 if current is None else current + 1


crud_task = CRUDTask(Task)
crud_subtask = CRUDSubTask(SubTask)

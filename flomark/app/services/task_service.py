"""
Task business logic service.
Enforces project membership, keeps per-list positions contiguous, and fires
notifications, activity logs and realtime broadcasts.
"""
from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    BadRequestException,
    ConflictException,
    NotFoundException,
)
from app.crud.base import resequence
from app.crud.label import crud_label
from app.crud.project import crud_project
from app.crud.task import crud_subtask, crud_task
from app.crud.task_list import crud_task_list
from app.models.task import SubTask, Task
from app.models.task_list import TaskList
from app.models.user import User
from app.schemas.task import (
    SubTaskCreate,
    SubTaskRead,
    SubTaskUpdate,
    TaskCreate,
    TaskMove,
    TaskRead,
    TaskReorder,
    TaskUpdate,
)
from app.services.activity_service import activity_service
from app.services.notification_service import notification_service
from app.services.ordering import apply_order, insert_at
from app.services.project_service import require_member
from app.services.realtime_service import realtime_gateway


class TaskService:

    async def list_tasks(
        self, db: AsyncSession, *, list_id: uuid.UUID, current_user: User
    ) -> list[Task]:
        task_list = await self._get_list(db, list_id, current_user)
        return await crud_task.list_by_list(db, list_id=task_list.id)

    async def create_task(
        self,
        db: AsyncSession,
        *,
        list_id: uuid.UUID,
        task_in: TaskCreate,
        current_user: User,
    ) -> Task:
        """Create a task at the end of the list."""
        task_list = await self._get_list(db, list_id, current_user)
        position = await crud_task.get_count(db, list_id=task_list.id)
        task = await crud_task.create_task(
            db,
            obj_in=task_in,
            project_id=task_list.project_id,
            list_id=task_list.id,
            position=position,
            created_by_id=current_user.id,
        )
        task = await self._reload(db, task.id)

        await activity_service.log(
            db,
            project_id=task.project_id,
            user_id=current_user.id,
            action="TASK_CREATED",
            entity_type="task",
            entity_id=task.id,
            details={"name": task.name, "list_id": str(task.list_id)},
        )
        await self._broadcast(task, current_user, "task-created")
        return task

    async def get_task(
        self, db: AsyncSession, *, task_id: uuid.UUID, current_user: User
    ) -> Task:
        task = await crud_task.get_with_relations(db, task_id)
        if task is None:
            raise NotFoundException("Task", str(task_id))
        await require_member(db, project_id=task.project_id, user=current_user)
        return task

    async def update_task(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        task_in: TaskUpdate,
        current_user: User,
    ) -> Task:
        task = await self.get_task(db, task_id=task_id, current_user=current_user)
        was_completed = task.is_completed
        changes = task_in.model_dump(exclude_unset=True)

        await crud_task.update(db, db_obj=task, obj_in=changes)
        task = await self._reload(db, task_id)
        completed_now = task.is_completed and not was_completed

        await activity_service.log(
            db,
            project_id=task.project_id,
            user_id=current_user.id,
            action="TASK_COMPLETED" if completed_now else "TASK_UPDATED",
            entity_type="task",
            entity_id=task.id,
            details=task_in.model_dump(mode="json", exclude_unset=True),
        )
        await notification_service.notify_task_changed(
            db,
            assignee_ids=[m.id for m in task.members],
            actor_id=current_user.id,
            actor_name=current_user.display_name,
            project_id=task.project_id,
            task_id=task.id,
            task_name=task.name,
            completed=completed_now,
        )
        await self._broadcast(task, current_user, "task-updated")
        return task

    async def delete_task(
        self, db: AsyncSession, *, task_id: uuid.UUID, current_user: User
    ) -> None:
        task = await self.get_task(db, task_id=task_id, current_user=current_user)
        project_id, list_id, name = task.project_id, task.list_id, task.name

        await crud_task.remove(db, id=task_id)
        resequence(await crud_task.list_by_list(db, list_id=list_id))
        await db.flush()

        await activity_service.log(
            db,
            project_id=project_id,
            user_id=current_user.id,
            action="TASK_DELETED",
            entity_type="task",
            entity_id=task_id,
            details={"name": name},
        )
        await realtime_gateway.broadcast_to_project(
            project_id,
            "task-deleted",
            {"id": str(task_id), "list_id": str(list_id)},
            user_id=current_user.id,
            user_name=current_user.display_name,
        )

    # ── Ordering ──────────────────────────────────────────────────────────────

    async def move_task(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        move_in: TaskMove,
        current_user: User,
    ) -> Task:
        """
        Move a task to a list of the same project at a clamped position
        (default: end). Both lists are renumbered.
        """
        task = await self.get_task(db, task_id=task_id, current_user=current_user)
        target = await crud_task_list.get(db, move_in.list_id)
        if target is None:
            raise NotFoundException("List", str(move_in.list_id))
        if target.project_id != task.project_id:
            raise BadRequestException(
                "Tasks can only move between lists of the same project",
                error_code="CROSS_PROJECT_MOVE",
            )

        from_list_id = task.list_id
        source_tasks = [
            t for t in await crud_task.list_by_list(db, list_id=from_list_id) if t.id != task.id
        ]
        if target.id == from_list_id:
            target_tasks = source_tasks
        else:
            target_tasks = await crud_task.list_by_list(db, list_id=target.id)
            resequence(source_tasks)

        task.list_id = target.id
        index = insert_at(target_tasks, task, move_in.position)
        await db.flush()
        task = await self._reload(db, task_id)

        await activity_service.log(
            db,
            project_id=task.project_id,
            user_id=current_user.id,
            action="TASK_MOVED",
            entity_type="task",
            entity_id=task.id,
            details={
                "from_list_id": str(from_list_id),
                "to_list_id": str(target.id),
                "position": index,
            },
        )
        await realtime_gateway.broadcast_to_project(
            task.project_id,
            "task-moved",
            {
                "task": TaskRead.model_validate(task).model_dump(mode="json"),
                "from_list_id": str(from_list_id),
                "to_list_id": str(target.id),
                "position": index,
            },
            user_id=current_user.id,
            user_name=current_user.display_name,
        )
        return task

    async def reorder_tasks(
        self,
        db: AsyncSession,
        *,
        list_id: uuid.UUID,
        reorder_in: TaskReorder,
        current_user: User,
    ) -> list[Task]:
        task_list = await self._get_list(db, list_id, current_user)
        tasks = await crud_task.list_by_list(db, list_id=task_list.id)
        ordered = apply_order(tasks, reorder_in.task_ids, "task")
        await db.flush()

        await activity_service.log(
            db,
            project_id=task_list.project_id,
            user_id=current_user.id,
            action="TASKS_REORDERED",
            entity_type="list",
            entity_id=task_list.id,
            details={"task_ids": [str(i) for i in reorder_in.task_ids]},
        )
        await realtime_gateway.broadcast_to_project(
            task_list.project_id,
            "tasks-reordered",
            {"list_id": str(task_list.id), "task_ids": [str(t.id) for t in ordered]},
            user_id=current_user.id,
            user_name=current_user.display_name,
        )
        return await crud_task.list_by_list(db, list_id=task_list.id)

    # ── Assignees ─────────────────────────────────────────────────────────────

    async def add_member(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        user_id: uuid.UUID,
        current_user: User,
    ) -> Task:
        task = await self.get_task(db, task_id=task_id, current_user=current_user)
        assignee = await crud_project.get_member(db, project_id=task.project_id, user_id=user_id)
        if assignee is None:
            raise BadRequestException("Only project members can be assigned to tasks")
        if await crud_task.get_member_link(db, task_id=task_id, user_id=user_id) is not None:
            raise ConflictException("User is already assigned to this task")

        await crud_task.add_member(db, task_id=task_id, user_id=user_id)
        task = await self._reload(db, task_id)

        if user_id != current_user.id:
            await notification_service.notify_task_assigned(
                db,
                assignee_id=user_id,
                project_id=task.project_id,
                task_id=task.id,
                task_name=task.name,
                assigner_name=current_user.display_name,
            )
        await activity_service.log(
            db,
            project_id=task.project_id,
            user_id=current_user.id,
            action="TASK_MEMBER_ADDED",
            entity_type="task",
            entity_id=task.id,
            details={"user_id": str(user_id)},
        )
        await self._broadcast(task, current_user, "task-updated", kind="task-member-added")
        return task

    async def remove_member(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        user_id: uuid.UUID,
        current_user: User,
    ) -> Task:
        task = await self.get_task(db, task_id=task_id, current_user=current_user)
        link = await crud_task.get_member_link(db, task_id=task_id, user_id=user_id)
        if link is None:
            raise NotFoundException("Task assignment")

        await crud_task.remove_member(db, link=link)
        task = await self._reload(db, task_id)
        await activity_service.log(
            db,
            project_id=task.project_id,
            user_id=current_user.id,
            action="TASK_MEMBER_REMOVED",
            entity_type="task",
            entity_id=task.id,
            details={"user_id": str(user_id)},
        )
        await self._broadcast(task, current_user, "task-updated", kind="task-member-removed")
        return task

    # ── Labels ────────────────────────────────────────────────────────────────

    async def add_label(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        label_id: uuid.UUID,
        current_user: User,
    ) -> Task:
        task = await self.get_task(db, task_id=task_id, current_user=current_user)
        label = await crud_label.get(db, label_id)
        if label is None:
            raise NotFoundException("Label", str(label_id))
        if label.project_id != task.project_id:
            raise BadRequestException("Label belongs to a different project")
        if await crud_task.get_label_link(db, task_id=task_id, label_id=label_id) is not None:
            raise ConflictException("Label is already applied to this task")

        await crud_task.add_label(db, task_id=task_id, label_id=label_id)
        task = await self._reload(db, task_id)
        await self._broadcast(task, current_user, "task-updated", kind="task-label-added")
        return task

    async def remove_label(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        label_id: uuid.UUID,
        current_user: User,
    ) -> Task:
        task = await self.get_task(db, task_id=task_id, current_user=current_user)
        link = await crud_task.get_label_link(db, task_id=task_id, label_id=label_id)
        if link is None:
            raise NotFoundException("Task label")

        await crud_task.remove_label(db, link=link)
        task = await self._reload(db, task_id)
        await self._broadcast(task, current_user, "task-updated", kind="task-label-removed")
        return task

    # ── Subtasks ──────────────────────────────────────────────────────────────

    async def add_subtask(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        subtask_in: SubTaskCreate,
        current_user: User,
    ) -> SubTask:
        task = await self.get_task(db, task_id=task_id, current_user=current_user)
        position = await crud_subtask.next_position(db, task_id=task.id)
        subtask = await crud_subtask.create_from_dict(
            db, obj_in={"task_id": task.id, "name": subtask_in.name, "position": position}
        )
        await self._broadcast_subtask(task.project_id, subtask, current_user, "subtask-created")
        return subtask

    async def update_subtask(
        self,
        db: AsyncSession,
        *,
        subtask_id: uuid.UUID,
        subtask_in: SubTaskUpdate,
        current_user: User,
    ) -> SubTask:
        subtask, task = await self._get_subtask(db, subtask_id, current_user)
        updated = await crud_subtask.update(db, db_obj=subtask, obj_in=subtask_in)
        await self._broadcast_subtask(task.project_id, updated, current_user, "subtask-updated")
        return updated

    async def delete_subtask(
        self, db: AsyncSession, *, subtask_id: uuid.UUID, current_user: User
    ) -> None:
        subtask, task = await self._get_subtask(db, subtask_id, current_user)
        payload = SubTaskRead.model_validate(subtask).model_dump(mode="json")
        await crud_subtask.remove(db, id=subtask_id)
        resequence(await crud_subtask.list_by_task(db, task_id=task.id))
        await db.flush()
        await realtime_gateway.broadcast_to_project(
            task.project_id,
            "task-updated",
            payload,
            user_id=current_user.id,
            user_name=current_user.display_name,
            type="subtask-deleted",
        )

    # ── Private helpers ───────────────────────────────────────────────────────

    async def _get_list(
        self, db: AsyncSession, list_id: uuid.UUID, user: User
    ) -> TaskList:
        task_list = await crud_task_list.get(db, list_id)
        if task_list is None:
            raise NotFoundException("List", str(list_id))
        await require_member(db, project_id=task_list.project_id, user=user)
        return task_list

    async def _get_subtask(
        self, db: AsyncSession, subtask_id: uuid.UUID, user: User
    ) -> tuple[SubTask, Task]:
        subtask = await crud_subtask.get(db, subtask_id)
        if subtask is None:
            raise NotFoundException("Subtask", str(subtask_id))
        task = await self.get_task(db, task_id=subtask.task_id, current_user=user)
        return subtask, task

    async def _reload(self, db: AsyncSession, task_id: uuid.UUID) -> Task:
        task = await crud_task.get_with_relations(db, task_id)
        if task is None:
            raise NotFoundException("Task", str(task_id))
        return task

    async def _broadcast(
        self, task: Task, user: User, event: str, *, kind: str | None = None
    ) -> None:
        await realtime_gateway.broadcast_to_project(
            task.project_id,
            event,
            TaskRead.model_validate(task).model_dump(mode="json"),
            user_id=user.id,
            user_name=user.display_name,
            type=kind,
        )

    async def _broadcast_subtask(
        self, project_id: uuid.UUID, subtask: SubTask, user: User, kind: str
    ) -> None:
        await realtime_gateway.broadcast_to_project(
            project_id,
            "task-updated",
            SubTaskRead.model_validate(subtask).model_dump(mode="json"),
            user_id=user.id,
            user_name=user.display_name,
            type=kind,
        )


task_service = TaskService()

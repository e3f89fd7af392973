"""
List (column) service.
Lists are ordered within their (project, board) scope; deleting one removes
its tasks.
"""
from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestException, NotFoundException
from app.crud.base import resequence
from app.crud.board import crud_board
from app.crud.task_list import crud_task_list
from app.models.task_list import TaskList
from app.models.user import User
from app.schemas.board import TaskListCreate, TaskListRead, TaskListReorder, TaskListUpdate
from app.services.activity_service import activity_service
from app.services.ordering import apply_order
from app.services.project_service import require_member
from app.services.realtime_service import realtime_gateway


class ListService:

    async def list_lists(
        self, db: AsyncSession, *, project_id: uuid.UUID, current_user: User
    ) -> list[TaskList]:
        await require_member(db, project_id=project_id, user=current_user)
        return await crud_task_list.list_by_project(db, project_id=project_id)

    async def get_list(
        self, db: AsyncSession, *, list_id: uuid.UUID, current_user: User
    ) -> TaskList:
        task_list = await crud_task_list.get(db, list_id)
        if task_list is None:
            raise NotFoundException("List", str(list_id))
        await require_member(db, project_id=task_list.project_id, user=current_user)
        return task_list

    async def create_list(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        list_in: TaskListCreate,
        current_user: User,
    ) -> TaskList:
        await require_member(db, project_id=project_id, user=current_user)
        await self._check_board(db, project_id, list_in.board_id)

        position = await crud_task_list.next_position(
            db, project_id=project_id, board_id=list_in.board_id
        )
        task_list = await crud_task_list.create_from_dict(
            db,
            obj_in={
                "name": list_in.name,
                "board_id": list_in.board_id,
                "project_id": project_id,
                "position": position,
            },
        )
        await self._record(db, task_list, current_user, "LIST_CREATED", "list-created")
        return task_list

    async def update_list(
        self,
        db: AsyncSession,
        *,
        list_id: uuid.UUID,
        list_in: TaskListUpdate,
        current_user: User,
    ) -> TaskList:
        task_list = await self.get_list(db, list_id=list_id, current_user=current_user)
        updated = await crud_task_list.update(db, db_obj=task_list, obj_in=list_in)
        await self._record(db, updated, current_user, "LIST_UPDATED", "list-updated")
        return updated

    async def delete_list(
        self, db: AsyncSession, *, list_id: uuid.UUID, current_user: User
    ) -> None:
        task_list = await self.get_list(db, list_id=list_id, current_user=current_user)
        project_id, board_id, name = task_list.project_id, task_list.board_id, task_list.name
        await crud_task_list.remove(db, id=list_id)
        resequence(
            await crud_task_list.list_in_scope(db, project_id=project_id, board_id=board_id)
        )
        await db.flush()

        await activity_service.log(
            db,
            project_id=project_id,
            user_id=current_user.id,
            action="LIST_DELETED",
            entity_type="list",
            entity_id=list_id,
            details={"name": name},
        )
        await realtime_gateway.broadcast_to_project(
            project_id,
            "list-updated",
            {"id": str(list_id), "board_id": str(board_id) if board_id else None},
            user_id=current_user.id,
            user_name=current_user.display_name,
            type="list-deleted",
        )

    async def reorder_lists(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        reorder_in: TaskListReorder,
        current_user: User,
    ) -> list[TaskList]:
        await require_member(db, project_id=project_id, user=current_user)
        await self._check_board(db, project_id, reorder_in.board_id)
        lists = await crud_task_list.list_in_scope(
            db, project_id=project_id, board_id=reorder_in.board_id
        )
        ordered = apply_order(lists, reorder_in.list_ids, "list")
        await db.flush()

        await activity_service.log(
            db,
            project_id=project_id,
            user_id=current_user.id,
            action="LISTS_REORDERED",
            entity_type="project",
            entity_id=project_id,
            details={"list_ids": [str(i) for i in reorder_in.list_ids]},
        )
        await realtime_gateway.broadcast_to_project(
            project_id,
            "list-updated",
            {
                "board_id": str(reorder_in.board_id) if reorder_in.board_id else None,
                "list_ids": [str(lst.id) for lst in ordered],
            },
            user_id=current_user.id,
            user_name=current_user.display_name,
            type="lists-reordered",
        )
        return ordered

    # ── Private helpers ───────────────────────────────────────────────────────

    async def _check_board(
        self, db: AsyncSession, project_id: uuid.UUID, board_id: uuid.UUID | None
    ) -> None:
        if board_id is None:
            return
        board = await crud_board.get(db, board_id)
        if board is None or board.project_id != project_id:
            raise BadRequestException("Board does not belong to this project")

    async def _record(
        self, db: AsyncSession, task_list: TaskList, user: User, action: str, kind: str
    ) -> None:
        await activity_service.log(
            db,
            project_id=task_list.project_id,
            user_id=user.id,
            action=action,
            entity_type="list",
            entity_id=task_list.id,
            details={"name": task_list.name},
        )
        await realtime_gateway.broadcast_to_project(
            task_list.project_id,
            "list-updated",
            TaskListRead.model_validate(task_list).model_dump(mode="json"),
            user_id=user.id,
            user_name=user.display_name,
            type=kind,
        )


list_service = ListService()

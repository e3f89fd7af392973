"""
Board service.
Boards are ordered per project and capped at MAX_BOARDS_PER_PROJECT.
"""
from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import BadRequestException, NotFoundException
from app.crud.base import resequence
from app.crud.board import crud_board
from app.models.board import Board
from app.models.user import User
from app.schemas.board import BoardCreate, BoardRead, BoardReorder, BoardUpdate
from app.services.activity_service import activity_service
from app.services.ordering import apply_order
from app.services.project_service import require_member
from app.services.realtime_service import realtime_gateway


class BoardService:

    async def list_boards(
        self, db: AsyncSession, *, project_id: uuid.UUID, current_user: User
    ) -> list[Board]:
        await require_member(db, project_id=project_id, user=current_user)
        return await crud_board.list_by_project(db, project_id=project_id)

    async def get_board(
        self, db: AsyncSession, *, board_id: uuid.UUID, current_user: User
    ) -> Board:
        board = await crud_board.get_with_lists(db, board_id)
        if board is None:
            raise NotFoundException("Board", str(board_id))
        await require_member(db, project_id=board.project_id, user=current_user)
        return board

    async def create_board(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        board_in: BoardCreate,
        current_user: User,
    ) -> Board:
        await require_member(db, project_id=project_id, user=current_user)
        if await crud_board.get_count(db, project_id=project_id) >= settings.MAX_BOARDS_PER_PROJECT:
            raise BadRequestException(
                f"A project can have at most {settings.MAX_BOARDS_PER_PROJECT} boards",
                error_code="BOARD_LIMIT_REACHED",
            )
        position = await crud_board.next_position(db, project_id=project_id)
        board = await crud_board.create_from_dict(
            db,
            obj_in={**board_in.model_dump(), "project_id": project_id, "position": position},
        )
        await self._record(db, board, current_user, "BOARD_CREATED", "board-created")
        return board

    async def update_board(
        self,
        db: AsyncSession,
        *,
        board_id: uuid.UUID,
        board_in: BoardUpdate,
        current_user: User,
    ) -> Board:
        board = await self._get_for_member(db, board_id, current_user)
        updated = await crud_board.update(db, db_obj=board, obj_in=board_in)
        await self._record(
            db,
            updated,
            current_user,
            "BOARD_UPDATED",
            "board-updated",
            details=board_in.model_dump(exclude_unset=True),
        )
        return updated

    async def delete_board(
        self, db: AsyncSession, *, board_id: uuid.UUID, current_user: User
    ) -> None:
        """Delete a board with its lists and tasks, then close the position gap."""
        board = await self._get_for_member(db, board_id, current_user)
        project_id = board.project_id
        await crud_board.remove(db, id=board_id)
        resequence(await crud_board.list_by_project(db, project_id=project_id))
        await db.flush()

        await activity_service.log(
            db,
            project_id=project_id,
            user_id=current_user.id,
            action="BOARD_DELETED",
            entity_type="board",
            entity_id=board_id,
            details={"name": board.name},
        )
        await realtime_gateway.broadcast_to_project(
            project_id,
            "board-updated",
            {"id": str(board_id)},
            user_id=current_user.id,
            user_name=current_user.display_name,
            type="board-deleted",
        )

    async def reorder_boards(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        reorder_in: BoardReorder,
        current_user: User,
    ) -> list[Board]:
        await require_member(db, project_id=project_id, user=current_user)
        boards = await crud_board.list_by_project(db, project_id=project_id)
        ordered = apply_order(boards, reorder_in.board_ids, "board")
        await db.flush()

        await activity_service.log(
            db,
            project_id=project_id,
            user_id=current_user.id,
            action="BOARDS_REORDERED",
            entity_type="project",
            entity_id=project_id,
            details={"board_ids": [str(i) for i in reorder_in.board_ids]},
        )
        await realtime_gateway.broadcast_to_project(
            project_id,
            "board-updated",
            {"board_ids": [str(b.id) for b in ordered]},
            user_id=current_user.id,
            user_name=current_user.display_name,
            type="boards-reordered",
        )
        return ordered

    # ── Private helpers ───────────────────────────────────────────────────────

    async def _get_for_member(
        self, db: AsyncSession, board_id: uuid.UUID, user: User
    ) -> Board:
        board = await crud_board.get(db, board_id)
        if board is None:
            raise NotFoundException("Board", str(board_id))
        await require_member(db, project_id=board.project_id, user=user)
        return board

    async def _record(
        self,
        db: AsyncSession,
        board: Board,
        user: User,
        action: str,
        kind: str,
        details: dict | None = None,
    ) -> None:
        await activity_service.log(
            db,
            project_id=board.project_id,
            user_id=user.id,
            action=action,
            entity_type="board",
            entity_id=board.id,
            details=details or {"name": board.name},
        )
        await realtime_gateway.broadcast_to_project(
            board.project_id,
            "board-updated",
            BoardRead.model_validate(board).model_dump(mode="json"),
            user_id=user.id,
            user_name=user.display_name,
            type=kind,
        )


board_service = BoardService()

"""
Board CRUD operations.
"""
from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.crud.base import CRUDBase
from app.models.board import Board
from app.schemas.board import BoardCreate, BoardUpdate


class CRUDBoard(CRUDBase[Board, BoardCreate, BoardUpdate]):

    async def list_by_project(
        self, db: AsyncSession, *, project_id: uuid.UUID
    ) -> list[Board]:
        result = await db.execute(
            select(Board)
            .where(Board.project_id == project_id)
            .order_by(Board.position.asc(), Board.created_at.asc())
        )
        return list(result.scalars().all())

    async def get_with_lists(
        self, db: AsyncSession, board_id: uuid.UUID
    ) -> Board | None:
        result = await db.execute(
            select(Board)
            .options(selectinload(Board.lists))
            .where(Board.id == board_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def next_position(self, db: AsyncSession, *, project_id: uuid.UUID) -> int:
        """max(position) + 1 within the project, 0 for the first board."""
        result = await db.execute(
            select(func.max(Board.position)).where(Board.project_id == project_id)
        )
        current = result.scalar_one_or_none()
        return 0 if current is None else current + 1


crud_board = CRUDBoard(Board)

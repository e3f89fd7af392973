"""
Label CRUD operations.
"""
from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.label import Label
from app.schemas.board import LabelCreate, LabelUpdate


class CRUDLabel(CRUDBase[Label, LabelCreate, LabelUpdate]):

    async def list_by_project(
        self, db: AsyncSession, *, project_id: uuid.UUID
    ) -> list[Label]:
        result = await db.execute(
            select(Label)
            .where(Label.project_id == project_id)
            .order_by(Label.created_at.asc())
        )
        return list(result.scalars().all())


crud_label = CRUDLabel(Label)

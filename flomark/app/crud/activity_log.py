"""
ActivityLog CRUD operations.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.activity_log import ActivityLog
from app.schemas.activity_log import ActivityLogRead


class CRUDActivityLog(CRUDBase[ActivityLog, ActivityLogRead, ActivityLogRead]):

    async def list_by_project(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[ActivityLog], int]:
        count_result = await db.execute(
            select(func.count())
            .select_from(ActivityLog)
            .where(ActivityLog.project_id == project_id)
        )
        total = count_result.scalar_one()

        result = await db.execute(
            select(ActivityLog)
            .where(ActivityLog.project_id == project_id)
            .order_by(ActivityLog.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def delete_older_than(self, db: AsyncSession, *, cutoff: datetime) -> int:
        result = await db.execute(
            delete(ActivityLog)
            .where(ActivityLog.created_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount  # type: ignore[return-value]


crud_activity_log = CRUDActivityLog(ActivityLog)

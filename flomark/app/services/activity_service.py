"""
Activity logging service.
Writes per-project audit records to the activity_logs table inside the
mutating request's transaction.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.activity_log import crud_activity_log
from app.models.activity_log import ActivityLog

logger = logging.getLogger(__name__)


class ActivityService:

    async def log(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        user_id: uuid.UUID,
        action: str,
        entity_type: str,
        entity_id: uuid.UUID,
        details: dict[str, Any] | None = None,
    ) -> ActivityLog:
        """Create an activity log entry. Failures propagate and roll back the request."""
        try:
            entry = ActivityLog(
                project_id=project_id,
                user_id=user_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                details=details,
            )
            db.add(entry)
            await db.flush()
            return entry
        except Exception as exc:
            logger.error(
                "Failed to write activity log: project_id=%s action=%s entity_type=%s: %s",
                project_id,
                action,
                entity_type,
                exc,
            )
            raise

    async def cleanup(self, db: AsyncSession, *, older_than_days: int) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(days=older_than_days)
        deleted = await crud_activity_log.delete_older_than(db, cutoff=cutoff)
        logger.info(
            "Activity cleanup removed %d entries older than %d days",
            deleted,
            older_than_days,
        )
        return deleted


activity_service = ActivityService()

"""
Admin-only dashboard routes.
"""
from __future__ import annotations

from fastapi import APIRouter, Query
from pydantic import BaseModel

from app.core.config import settings
from app.core.dependencies import AdminUser, DBSession, LiveModeOnly
from app.crud.project import crud_project
from app.crud.task import crud_task
from app.crud.user import crud_user
from app.schemas.activity_log import ActivityCleanupResult
from app.services.activity_service import activity_service
from app.services.realtime_service import realtime_gateway

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[LiveModeOnly])


class AdminStats(BaseModel):
    total_users: int
    active_users: int
    total_projects: int
    total_tasks: int
    completed_tasks: int
    connected_websocket_users: int


@router.get(
    "/stats",
    response_model=AdminStats,
    summary="Dashboard statistics",
)
async def get_stats(
    _admin: AdminUser,
    db: DBSession,
) -> AdminStats:
    return AdminStats(
        total_users=await crud_user.get_count(db),
        active_users=await crud_user.get_count(db, is_active=True),
        total_projects=await crud_project.get_count(db),
        total_tasks=await crud_task.get_count(db),
        completed_tasks=await crud_task.count_completed(db),
        connected_websocket_users=realtime_gateway.connected_user_count,
    )


@router.delete(
    "/activity",
    response_model=ActivityCleanupResult,
    summary="Delete activity entries older than N days",
)
async def cleanup_activity(
    _admin: AdminUser,
    db: DBSession,
    days: int = Query(default=settings.ACTIVITY_RETENTION_DAYS, ge=1, le=3650),
) -> ActivityCleanupResult:
    deleted = await activity_service.cleanup(db, older_than_days=days)
    return ActivityCleanupResult(deleted=deleted, older_than_days=days)

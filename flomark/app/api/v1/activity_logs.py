"""
Activity log routes.
Per-project audit trail, newest first.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query

from app.core.dependencies import CurrentUser, DBSession, LiveModeOnly
from app.crud.activity_log import crud_activity_log
from app.schemas.activity_log import ActivityLogRead
from app.schemas.pagination import PaginatedResponse, page_offset
from app.services.project_service import require_member

router = APIRouter(prefix="/projects", tags=["Activity Logs"], dependencies=[LiveModeOnly])

RECENT_LIMIT = 20


@router.get(
    "/{project_id}/activity",
    response_model=PaginatedResponse[ActivityLogRead],
    summary="Get a project's activity log",
)
async def project_activity(
    project_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
    page: int = Query(default=1, ge=1),
    size: int = Query(default=50, ge=1, le=100),
) -> PaginatedResponse[ActivityLogRead]:
    await require_member(db, project_id=project_id, user=current_user)
    logs, total = await crud_activity_log.list_by_project(
        db, project_id=project_id, skip=page_offset(page, size), limit=size
    )
    return PaginatedResponse(
        items=[ActivityLogRead.model_validate(log) for log in logs],
        total=total,
        page=page,
        size=size,
    )


@router.get(
    "/{project_id}/activity/recent",
    response_model=list[ActivityLogRead],
    summary="The newest entries of a project's activity log",
)
async def recent_activity(
    project_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> list[ActivityLogRead]:
    await require_member(db, project_id=project_id, user=current_user)
    logs, _ = await crud_activity_log.list_by_project(
        db, project_id=project_id, skip=0, limit=RECENT_LIMIT
    )
    return [ActivityLogRead.model_validate(log) for log in logs]

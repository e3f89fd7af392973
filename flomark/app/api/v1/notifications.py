"""
Notification routes.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from app.core.config import settings
from app.core.dependencies import CurrentUser, DBSession, LiveModeOnly
from app.core.exceptions import NotFoundException
from app.crud.notification import crud_notification
from app.schemas.notification import (
    NotificationPage,
    NotificationRead,
    NotificationTestCreate,
    ProjectUnreadCount,
    UnreadCount,
)
from app.schemas.pagination import page_offset
from app.services.notification_service import notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"], dependencies=[LiveModeOnly])


@router.get(
    "/",
    response_model=NotificationPage,
    summary="List my notifications",
)
async def list_notifications(
    current_user: CurrentUser,
    db: DBSession,
    page: int = Query(default=1, ge=1),
    size: int = Query(default=50, ge=1, le=100),
    unread_only: bool = Query(default=False),
) -> NotificationPage:
    notifications, total = await crud_notification.list_by_user(
        db,
        user_id=current_user.id,
        skip=page_offset(page, size),
        limit=size,
        unread_only=unread_only,
    )
    unread = await crud_notification.count_unread(db, user_id=current_user.id)
    return NotificationPage(
        items=[NotificationRead.model_validate(n) for n in notifications],
        total=total,
        page=page,
        size=size,
        unread_count=unread,
    )


@router.get(
    "/unread-count",
    response_model=UnreadCount,
    summary="Number of unread notifications",
)
async def unread_count(current_user: CurrentUser, db: DBSession) -> UnreadCount:
    return UnreadCount(
        unread_count=await crud_notification.count_unread(db, user_id=current_user.id)
    )


@router.get(
    "/unread-count-by-project",
    response_model=list[ProjectUnreadCount],
    summary="Unread notifications grouped by project",
)
async def unread_count_by_project(
    current_user: CurrentUser, db: DBSession
) -> list[ProjectUnreadCount]:
    counts = await crud_notification.count_unread_by_project(db, user_id=current_user.id)
    return [
        ProjectUnreadCount(project_id=project_id, unread_count=count)
        for project_id, count in counts.items()
    ]


@router.put(
    "/read-all",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Mark all notifications as read",
)
async def mark_all_read(
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await notification_service.mark_all_read(db, user_id=current_user.id)


@router.put(
    "/{notification_id}/read",
    response_model=NotificationRead,
    summary="Mark a notification as read",
)
async def mark_as_read(
    notification_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> NotificationRead:
    notification = await notification_service.mark_as_read(
        db, notification_id=notification_id, user_id=current_user.id
    )
    if notification is None:
        raise NotFoundException("Notification", str(notification_id))
    return NotificationRead.model_validate(notification)


@router.delete(
    "/",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete all my notifications",
)
async def delete_all_notifications(current_user: CurrentUser, db: DBSession) -> None:
    await crud_notification.delete_all_for_user(db, user_id=current_user.id)


@router.delete(
    "/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a notification",
)
async def delete_notification(
    notification_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    notification = await crud_notification.get_for_user(
        db, notification_id=notification_id, user_id=current_user.id
    )
    if notification is None:
        raise NotFoundException("Notification", str(notification_id))
    await crud_notification.remove(db, id=notification_id)


@router.post(
    "/test",
    response_model=NotificationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Send myself a SYSTEM notification (DEBUG only)",
)
async def create_test_notification(
    body: NotificationTestCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> NotificationRead:
    if not settings.DEBUG:
        raise NotFoundException("Route")
    notification = await notification_service.notify_user(
        db,
        user_id=current_user.id,
        type="SYSTEM",
        title=body.title,
        message=body.message,
    )
    return NotificationRead.model_validate(notification)

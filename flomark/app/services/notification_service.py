"""
Notification fan-out service.
Creates DB notification records and pushes them to the recipient's
`user:<id>` room.
"""
from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.notification import crud_notification
from app.models.notification import Notification
from app.schemas.notification import NotificationRead
from app.services.realtime_service import realtime_gateway


class NotificationService:

    async def notify_user(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        type: str,
        title: str,
        message: str,
        project_id: uuid.UUID | None = None,
        data: dict[str, Any] | None = None,
    ) -> Notification:
        """
        Persist a notification to the database and push it to the user's
        room if any of their connections is open.
        """
        notification = await crud_notification.create_notification(
            db,
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            project_id=project_id,
            data=data,
        )
        await realtime_gateway.broadcast_to_user(
            user_id,
            "notification",
            NotificationRead.model_validate(notification).model_dump(mode="json"),
        )
        return notification

    async def notify_many(
        self,
        db: AsyncSession,
        *,
        user_ids: Iterable[uuid.UUID],
        exclude: uuid.UUID | None = None,
        **fields: Any,
    ) -> list[Notification]:
        """Notify each distinct recipient once, skipping the actor."""
        seen: set[uuid.UUID] = set()
        created = []
        for user_id in user_ids:
            if user_id == exclude or user_id in seen:
                continue
            seen.add(user_id)
            created.append(await self.notify_user(db, user_id=user_id, **fields))
        return created

    # ── Typed helpers ─────────────────────────────────────────────────────────

    async def notify_task_assigned(
        self,
        db: AsyncSession,
        *,
        assignee_id: uuid.UUID,
        project_id: uuid.UUID,
        task_id: uuid.UUID,
        task_name: str,
        assigner_name: str,
    ) -> Notification:
        return await self.notify_user(
            db,
            user_id=assignee_id,
            type="TASK_ASSIGNED",
            title="New task assigned",
            message=f"{assigner_name} assigned you to task: {task_name!r}",
            project_id=project_id,
            data={"task_id": str(task_id)},
        )

    async def notify_task_changed(
        self,
        db: AsyncSession,
        *,
        assignee_ids: Iterable[uuid.UUID],
        actor_id: uuid.UUID,
        actor_name: str,
        project_id: uuid.UUID,
        task_id: uuid.UUID,
        task_name: str,
        completed: bool,
    ) -> list[Notification]:
        if completed:
            type_, title = "TASK_COMPLETED", "Task completed"
            message = f"{actor_name} completed task: {task_name!r}"
        else:
            type_, title = "TASK_UPDATED", "Task updated"
            message = f"{actor_name} updated task: {task_name!r}"
        return await self.notify_many(
            db,
            user_ids=assignee_ids,
            exclude=actor_id,
            type=type_,
            title=title,
            message=message,
            project_id=project_id,
            data={"task_id": str(task_id)},
        )

    async def notify_mentions(
        self,
        db: AsyncSession,
        *,
        user_ids: Iterable[uuid.UUID],
        author_id: uuid.UUID,
        author_name: str,
        project_id: uuid.UUID,
        task_id: uuid.UUID,
        task_name: str,
        comment_id: uuid.UUID,
    ) -> list[Notification]:
        return await self.notify_many(
            db,
            user_ids=user_ids,
            exclude=author_id,
            type="MENTION",
            title="You were mentioned",
            message=f"{author_name} mentioned you on task: {task_name!r}",
            project_id=project_id,
            data={"task_id": str(task_id), "comment_id": str(comment_id)},
        )

    async def notify_comment_added(
        self,
        db: AsyncSession,
        *,
        user_ids: Iterable[uuid.UUID],
        author_id: uuid.UUID,
        author_name: str,
        project_id: uuid.UUID,
        task_id: uuid.UUID,
        task_name: str,
        comment_id: uuid.UUID,
    ) -> list[Notification]:
        return await self.notify_many(
            db,
            user_ids=user_ids,
            exclude=author_id,
            type="COMMENT_ADDED",
            title="New comment",
            message=f"{author_name} commented on task: {task_name!r}",
            project_id=project_id,
            data={"task_id": str(task_id), "comment_id": str(comment_id)},
        )

    async def notify_project_invitation(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        project_id: uuid.UUID,
        project_name: str,
        inviter_name: str,
    ) -> Notification:
        return await self.notify_user(
            db,
            user_id=user_id,
            type="PROJECT_INVITATION",
            title="Added to project",
            message=f"{inviter_name} added you to project: {project_name!r}",
            project_id=project_id,
        )

    async def notify_member_joined(
        self,
        db: AsyncSession,
        *,
        user_ids: Iterable[uuid.UUID],
        joiner_id: uuid.UUID,
        joiner_name: str,
        project_id: uuid.UUID,
        project_name: str,
    ) -> list[Notification]:
        return await self.notify_many(
            db,
            user_ids=user_ids,
            exclude=joiner_id,
            type="MEMBER_JOINED",
            title="New project member",
            message=f"{joiner_name} joined project: {project_name!r}",
            project_id=project_id,
            data={"user_id": str(joiner_id)},
        )

    async def notify_member_left(
        self,
        db: AsyncSession,
        *,
        user_ids: Iterable[uuid.UUID],
        member_id: uuid.UUID,
        member_name: str,
        project_id: uuid.UUID,
        project_name: str,
        actor_id: uuid.UUID,
    ) -> list[Notification]:
        return await self.notify_many(
            db,
            user_ids=user_ids,
            exclude=actor_id,
            type="MEMBER_LEFT",
            title="Member left project",
            message=f"{member_name} left project: {project_name!r}",
            project_id=project_id,
            data={"user_id": str(member_id)},
        )

    # ── Read state ────────────────────────────────────────────────────────────

    async def mark_as_read(
        self, db: AsyncSession, *, notification_id: uuid.UUID, user_id: uuid.UUID
    ) -> Notification | None:
        notification = await crud_notification.mark_as_read(
            db, notification_id=notification_id, user_id=user_id
        )
        if notification is None:
            return None
        unread = await crud_notification.count_unread(db, user_id=user_id)
        await realtime_gateway.broadcast_to_user(
            user_id,
            "notification-read",
            {"notification_id": str(notification_id), "unread_count": unread},
        )
        return notification

    async def mark_all_read(self, db: AsyncSession, *, user_id: uuid.UUID) -> int:
        updated = await crud_notification.mark_all_read(db, user_id=user_id)
        await realtime_gateway.broadcast_to_user(
            user_id, "notifications-all-read", {"unread_count": 0}
        )
        return updated


notification_service = NotificationService()

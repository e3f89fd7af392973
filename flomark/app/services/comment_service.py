"""
Comment service.
New comments notify @mentioned project members and the task's assignees
and creator; only the author (or a system admin) may edit or delete.
"""
from __future__ import annotations

import re
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenException, NotFoundException
from app.crud.comment import crud_comment
from app.crud.project import crud_project
from app.models.comment import Comment
from app.models.task import Task
from app.models.user import User
from app.schemas.comment import CommentCreate, CommentRead, CommentUpdate
from app.services.notification_service import notification_service
from app.services.realtime_service import realtime_gateway
from app.services.task_service import task_service

MENTION_RE = re.compile(r"@([A-Za-z0-9_\-]+)")


def extract_mentions(content: str) -> set[str]:
    return {name.lower() for name in MENTION_RE.findall(content)}


class CommentService:

    async def list_comments(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        current_user: User,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[Comment], int]:
        await task_service.get_task(db, task_id=task_id, current_user=current_user)
        return await crud_comment.list_by_task(db, task_id=task_id, skip=skip, limit=limit)

    async def create_comment(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        comment_in: CommentCreate,
        current_user: User,
    ) -> Comment:
        task = await task_service.get_task(db, task_id=task_id, current_user=current_user)
        comment = await crud_comment.create_comment(
            db, content=comment_in.content, task_id=task.id, author_id=current_user.id
        )

        mentioned = await self._mentioned_members(db, task, comment.content)
        await notification_service.notify_mentions(
            db,
            user_ids=mentioned,
            author_id=current_user.id,
            author_name=current_user.display_name,
            project_id=task.project_id,
            task_id=task.id,
            task_name=task.name,
            comment_id=comment.id,
        )

        watchers = [m.id for m in task.members]
        if task.created_by_id is not None:
            watchers.append(task.created_by_id)
        await notification_service.notify_comment_added(
            db,
            user_ids=[w for w in watchers if w not in mentioned],
            author_id=current_user.id,
            author_name=current_user.display_name,
            project_id=task.project_id,
            task_id=task.id,
            task_name=task.name,
            comment_id=comment.id,
        )

        await self._broadcast(task.project_id, comment, current_user, "comment-added")
        return comment

    async def update_comment(
        self,
        db: AsyncSession,
        *,
        comment_id: uuid.UUID,
        comment_in: CommentUpdate,
        current_user: User,
    ) -> Comment:
        comment, task = await self._get_for_author(db, comment_id, current_user)
        updated = await crud_comment.update(db, db_obj=comment, obj_in=comment_in)
        await self._broadcast(task.project_id, updated, current_user, "comment-updated")
        return updated

    async def delete_comment(
        self, db: AsyncSession, *, comment_id: uuid.UUID, current_user: User
    ) -> None:
        comment, task = await self._get_for_author(db, comment_id, current_user)
        await crud_comment.remove(db, id=comment_id)
        await realtime_gateway.broadcast_to_project(
            task.project_id,
            "comment-updated",
            {"id": str(comment_id), "task_id": str(task.id)},
            user_id=current_user.id,
            user_name=current_user.display_name,
            type="comment-deleted",
        )

    # ── Private helpers ───────────────────────────────────────────────────────

    async def _mentioned_members(
        self, db: AsyncSession, task: Task, content: str
    ) -> list[uuid.UUID]:
        names = extract_mentions(content)
        if not names:
            return []
        members = await crud_project.list_members(db, project_id=task.project_id)
        return [m.user_id for m in members if m.user.username.lower() in names]

    async def _get_for_author(
        self, db: AsyncSession, comment_id: uuid.UUID, user: User
    ) -> tuple[Comment, Task]:
        comment = await crud_comment.get(db, comment_id)
        if comment is None:
            raise NotFoundException("Comment", str(comment_id))
        task = await task_service.get_task(db, task_id=comment.task_id, current_user=user)
        if comment.author_id != user.id and user.role != "admin":
            raise ForbiddenException("Only the author can modify this comment")
        return comment, task

    async def _broadcast(
        self, project_id: uuid.UUID, comment: Comment, user: User, kind: str
    ) -> None:
        await realtime_gateway.broadcast_to_project(
            project_id,
            "comment-updated",
            CommentRead.model_validate(comment).model_dump(mode="json"),
            user_id=user.id,
            user_name=user.display_name,
            type=kind,
        )


comment_service = CommentService()

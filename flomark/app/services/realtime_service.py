"""
Realtime gateway.
Interprets client events on a WebSocket connection (join/leave project rooms,
relayed project/task updates, presence pings) and exposes the broadcast
helpers the REST services call after a mutation.

Every frame on the wire is {"type": <event>, "data": {...}}.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

from app.core.config import settings
from app.services.presence_service import PresenceTracker, presence_tracker
from app.services.websocket_service import (
    ConnectionManager,
    project_room,
    user_room,
    ws_manager,
)

logger = logging.getLogger(__name__)

MembershipChecker = Callable[[str, str], Awaitable[bool]]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _default_membership_checker(project_id: str, user_id: str) -> bool:
    if settings.DEMO_MODE:
        from app.demo.store import demo_store

        return demo_store.is_member(project_id, user_id)

    from app.crud.project import crud_project
    from app.db.session import AsyncSessionLocal

    try:
        project_uuid = uuid.UUID(project_id)
        user_uuid = uuid.UUID(user_id)
    except ValueError:
        return False
    async with AsyncSessionLocal() as db:
        member = await crud_project.get_member(
            db, project_id=project_uuid, user_id=user_uuid
        )
    return member is not None


class RealtimeGateway:

    def __init__(
        self,
        manager: ConnectionManager,
        presence: PresenceTracker,
        membership_checker: MembershipChecker | None = None,
    ) -> None:
        self.manager = manager
        self.presence = presence
        self.membership_checker = membership_checker or _default_membership_checker
        self._names: dict[str, str] = {}

    # ── Connection lifecycle ──────────────────────────────────────────────────

    async def handle_connect(self, websocket: Any, user_id: str, user_name: str) -> str:
        connection_id = await self.manager.connect(websocket, user_id)
        self._names[connection_id] = user_name
        await self.manager.send_to_connection(
            connection_id,
            {
                "type": "connected",
                "data": {
                    "message": "Successfully connected to server",
                    "connection_id": connection_id,
                    "user": {"id": user_id, "name": user_name},
                },
            },
        )
        return connection_id

    async def handle_disconnect(self, connection_id: str) -> None:
        user_id = self.manager.user_of(connection_id)
        self._names.pop(connection_id, None)
        self.manager.disconnect(connection_id)
        if user_id is None:
            return
        for project_id in self.presence.leave_socket(user_id, connection_id):
            await self.broadcast_active_users(project_id)

    async def handle_event(self, connection_id: str, message: dict[str, Any]) -> None:
        """Dispatch one client frame."""
        event = message.get("type")
        data = message.get("data") or {}
        if not isinstance(data, dict):
            data = {}

        if event == "join-project":
            await self._join_project(connection_id, data)
        elif event == "leave-project":
            await self._leave_project(connection_id, data)
        elif event == "project-update":
            await self._relay_project_update(connection_id, data)
        elif event == "task-update":
            await self._relay_task_update(connection_id, data)
        elif event == "user-presence":
            await self._relay_presence(connection_id, data)
        elif event == "pong":
            logger.debug("Received pong on connection_id=%s", connection_id)
        else:
            await self._error(connection_id, f"Unknown event type: {event!r}")

    # ── Client events ─────────────────────────────────────────────────────────

    async def _join_project(self, connection_id: str, data: dict[str, Any]) -> None:
        project_id = data.get("project_id")
        if not project_id:
            await self._error(connection_id, "Project ID is required")
            return
        project_id = str(project_id)
        user_id = self.manager.user_of(connection_id)
        if user_id is None:
            return
        room = project_room(project_id)
        if self.manager.in_room(connection_id, room):
            logger.debug("connection_id=%s already in %s", connection_id, room)
            return
        if not await self.membership_checker(project_id, user_id):
            await self._error(connection_id, "You are not a member of this project")
            return

        self.manager.join_room(connection_id, room)
        self.presence.join(project_id, user_id, self._name(connection_id), connection_id)
        await self.broadcast_active_users(project_id)

    async def _leave_project(self, connection_id: str, data: dict[str, Any]) -> None:
        project_id = data.get("project_id")
        if not project_id:
            await self._error(connection_id, "Project ID is required")
            return
        project_id = str(project_id)
        user_id = self.manager.user_of(connection_id)
        if user_id is None:
            return
        if not self.manager.leave_room(connection_id, project_room(project_id)):
            logger.debug("connection_id=%s not in project %s", connection_id, project_id)
            return
        self.presence.leave(project_id, user_id, connection_id)
        await self.broadcast_active_users(project_id)

    async def _relay_project_update(
        self, connection_id: str, data: dict[str, Any]
    ) -> None:
        project_id = data.get("project_id")
        if not project_id:
            await self._error(connection_id, "Project ID is required")
            return
        await self.manager.send_to_room(
            project_room(str(project_id)),
            {
                "type": "project-updated",
                "data": {
                    "project_id": str(project_id),
                    "type": data.get("type"),
                    "payload": data.get("payload"),
                    **self._actor(connection_id),
                },
            },
        )

    async def _relay_task_update(self, connection_id: str, data: dict[str, Any]) -> None:
        project_id = data.get("project_id")
        task_id = data.get("task_id")
        if not project_id or not task_id:
            await self._error(connection_id, "Project ID and Task ID are required")
            return
        await self.manager.send_to_room(
            project_room(str(project_id)),
            {
                "type": "task-updated",
                "data": {
                    "project_id": str(project_id),
                    "task_id": str(task_id),
                    "type": data.get("type"),
                    "payload": data.get("payload"),
                    **self._actor(connection_id),
                },
            },
        )

    async def _relay_presence(self, connection_id: str, data: dict[str, Any]) -> None:
        project_id = data.get("project_id")
        if not project_id:
            return
        room = project_room(str(project_id))
        if not self.manager.in_room(connection_id, room):
            return
        frame = {
            "type": "user-presence-changed",
            "data": {
                "project_id": str(project_id),
                "status": data.get("status"),
                **self._actor(connection_id),
            },
        }
        await self.manager.send_to_room(room, frame, exclude=connection_id)
        await self.manager.send_to_connection(connection_id, frame)

    # ── Server-side broadcasts ────────────────────────────────────────────────

    async def broadcast_to_project(
        self,
        project_id: uuid.UUID | str,
        event: str,
        payload: Any,
        *,
        user_id: uuid.UUID | str | None = None,
        user_name: str | None = None,
        type: str | None = None,
    ) -> None:
        """
        Fan a mutation out to everyone in the project room.
        `event` is the frame type; `type` is the inner change kind and
        defaults to the event name.
        """
        await self.manager.send_to_room(
            project_room(str(project_id)),
            {
                "type": event,
                "data": {
                    "project_id": str(project_id),
                    "type": type or event,
                    "payload": payload,
                    "user_id": str(user_id) if user_id is not None else None,
                    "user_name": user_name,
                    "timestamp": _now(),
                },
            },
        )

    async def broadcast_to_user(
        self, user_id: uuid.UUID | str, event: str, data: Any
    ) -> None:
        await self.manager.send_to_room(
            user_room(str(user_id)), {"type": event, "data": data}
        )

    async def broadcast_to_all(self, event: str, data: Any) -> None:
        await self.manager.broadcast({"type": event, "data": data})

    async def broadcast_active_users(self, project_id: str) -> None:
        users = self.presence.active_users(project_id)
        await self.manager.send_to_room(
            project_room(project_id),
            {
                "type": "active-users-updated",
                "data": {
                    "project_id": project_id,
                    "active_users": [u.model_dump(mode="json") for u in users],
                    "timestamp": _now(),
                },
            },
        )

    @property
    def connected_user_count(self) -> int:
        return self.manager.connected_user_count

    def project_user_count(self, project_id: uuid.UUID | str) -> int:
        return self.presence.project_user_count(str(project_id))

    # ── Private helpers ───────────────────────────────────────────────────────

    def _name(self, connection_id: str) -> str:
        return self._names.get(connection_id, "")

    def _actor(self, connection_id: str) -> dict[str, Any]:
        return {
            "user_id": self.manager.user_of(connection_id),
            "user_name": self._name(connection_id),
            "timestamp": _now(),
        }

    async def _error(self, connection_id: str, message: str) -> None:
        await self.manager.send_to_connection(
            connection_id, {"type": "error", "data": {"message": message}}
        )


realtime_gateway = RealtimeGateway(ws_manager, presence_tracker)

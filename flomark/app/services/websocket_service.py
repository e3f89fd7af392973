"""
WebSocket connection manager.
Tracks active connections by connection id and groups them into rooms
(`user:<id>`, `project:<id>`) so messages can be fanned out per room.
"""
from __future__ import annotations

import json
import logging
import uuid
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


def project_room(project_id: str) -> str:
    return f"project:{project_id}"


class ConnectionManager:
    """
    Manages active WebSocket connections.
    A user may hold several connections (one per tab); each connection joins
    its own set of rooms.
    """

    def __init__(self) -> None:
        self._sockets: dict[str, WebSocket] = {}
        self._owners: dict[str, str] = {}
        self._user_connections: dict[str, set[str]] = {}
        self._rooms: dict[str, set[str]] = {}
        self._memberships: dict[str, set[str]] = {}

    async def connect(self, websocket: WebSocket, user_id: str) -> str:
        """Accept the socket, register it and put it in its user room."""
        await websocket.accept()
        connection_id = uuid.uuid4().hex
        self._sockets[connection_id] = websocket
        self._owners[connection_id] = user_id
        self._user_connections.setdefault(user_id, set()).add(connection_id)
        self._memberships[connection_id] = set()
        self.join_room(connection_id, user_room(user_id))
        logger.info(
            "WebSocket connected: user_id=%s connection_id=%s", user_id, connection_id
        )
        return connection_id

    def disconnect(self, connection_id: str) -> list[str]:
        """Forget the connection and return the rooms it was in."""
        rooms = sorted(self._memberships.pop(connection_id, set()))
        for room in rooms:
            members = self._rooms.get(room)
            if members is not None:
                members.discard(connection_id)
                if not members:
                    del self._rooms[room]

        self._sockets.pop(connection_id, None)
        user_id = self._owners.pop(connection_id, None)
        if user_id is not None:
            connections = self._user_connections.get(user_id)
            if connections is not None:
                connections.discard(connection_id)
                if not connections:
                    del self._user_connections[user_id]
            logger.info(
                "WebSocket disconnected: user_id=%s connection_id=%s",
                user_id,
                connection_id,
            )
        return rooms

    # ── Rooms ─────────────────────────────────────────────────────────────────

    def join_room(self, connection_id: str, room: str) -> bool:
        """Add the connection to a room. Returns False if it was already there."""
        joined = self._memberships.setdefault(connection_id, set())
        if room in joined:
            return False
        joined.add(room)
        self._rooms.setdefault(room, set()).add(connection_id)
        return True

    def leave_room(self, connection_id: str, room: str) -> bool:
        joined = self._memberships.get(connection_id)
        if joined is None or room not in joined:
            return False
        joined.discard(room)
        members = self._rooms.get(room)
        if members is not None:
            members.discard(connection_id)
            if not members:
                del self._rooms[room]
        return True

    def in_room(self, connection_id: str, room: str) -> bool:
        return room in self._memberships.get(connection_id, set())

    def room_size(self, room: str) -> int:
        return len(self._rooms.get(room, set()))

    def user_of(self, connection_id: str) -> str | None:
        return self._owners.get(connection_id)

    def is_connected(self, user_id: str) -> bool:
        return bool(self._user_connections.get(user_id))

    # ── Sending ───────────────────────────────────────────────────────────────

    async def _send_many(self, connection_ids: list[str], message: str) -> None:
        dead: list[str] = []
        for connection_id in connection_ids:
            ws = self._sockets.get(connection_id)
            if ws is None:
                continue
            try:
                await ws.send_text(message)
            except Exception:
                dead.append(connection_id)
        for connection_id in dead:
            self.disconnect(connection_id)

    async def send_to_connection(
        self, connection_id: str, data: dict[str, Any]
    ) -> None:
        await self._send_many([connection_id], json.dumps(data, default=str))

    async def send_to_room(
        self,
        room: str,
        data: dict[str, Any],
        *,
        exclude: str | None = None,
    ) -> None:
        """Send a JSON message to every connection in a room, optionally skipping one."""
        targets = [c for c in self._rooms.get(room, set()) if c != exclude]
        if not targets:
            return
        await self._send_many(targets, json.dumps(data, default=str))

    async def send_personal_message(
        self, user_id: str, data: dict[str, Any]
    ) -> None:
        """Send a JSON message to all connections for a specific user."""
        await self.send_to_room(user_room(user_id), data)

    async def broadcast(self, data: dict[str, Any]) -> None:
        """Send a JSON message to every connected client."""
        await self._send_many(list(self._sockets), json.dumps(data, default=str))

    @property
    def connected_user_count(self) -> int:
        return len(self._user_connections)


# Singleton instance shared across the application
ws_manager = ConnectionManager()

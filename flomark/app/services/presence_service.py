"""
Per-process presence tracking.
Maps project_id -> {user_id -> PresenceInfo}. A user stays present in a
project while at least one of their connections has joined it.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class PresenceInfo(BaseModel):
    id: str
    name: str
    socket_id: str
    joined_at: datetime


class PresenceTracker:

    def __init__(self) -> None:
        self._projects: dict[str, dict[str, PresenceInfo]] = {}
        self._sockets: dict[tuple[str, str], set[str]] = {}

    def join(self, project_id: str, user_id: str, name: str, socket_id: str) -> bool:
        """
        Record that socket_id joined project_id on behalf of user_id.
        Returns True when the user was not present before.
        """
        sockets = self._sockets.setdefault((project_id, user_id), set())
        sockets.add(socket_id)
        users = self._projects.setdefault(project_id, {})
        if user_id in users:
            return False
        users[user_id] = PresenceInfo(
            id=user_id,
            name=name,
            socket_id=socket_id,
            joined_at=datetime.now(timezone.utc),
        )
        logger.info("Presence join: project_id=%s user_id=%s", project_id, user_id)
        return True

    def leave(self, project_id: str, user_id: str, socket_id: str) -> bool:
        """
        Drop one socket of the user from the project.
        Returns True when that was the user's last socket there.
        """
        key = (project_id, user_id)
        sockets = self._sockets.get(key)
        if sockets is None:
            return False
        sockets.discard(socket_id)
        if sockets:
            users = self._projects.get(project_id, {})
            info = users.get(user_id)
            if info is not None and info.socket_id == socket_id:
                users[user_id] = info.model_copy(update={"socket_id": next(iter(sockets))})
            return False

        del self._sockets[key]
        users = self._projects.get(project_id)
        if users is not None:
            users.pop(user_id, None)
            if not users:
                del self._projects[project_id]
        logger.info("Presence leave: project_id=%s user_id=%s", project_id, user_id)
        return True

    def leave_socket(self, user_id: str, socket_id: str) -> list[str]:
        """Remove a closed socket everywhere; return projects whose user set changed."""
        changed = []
        for project_id, member in list(self._sockets):
            if member == user_id and socket_id in self._sockets[(project_id, member)]:
                if self.leave(project_id, user_id, socket_id):
                    changed.append(project_id)
        return changed

    def active_users(self, project_id: str) -> list[PresenceInfo]:
        users = self._projects.get(project_id, {})
        return sorted(users.values(), key=lambda info: info.joined_at)

    def project_user_count(self, project_id: str) -> int:
        return len(self._projects.get(project_id, {}))

    def clear(self) -> None:
        self._projects.clear()
        self._sockets.clear()


presence_tracker = PresenceTracker()

"""
Realtime layer tests.
Drive the connection manager, presence tracker and gateway with in-memory
sockets; no network involved.
"""
from __future__ import annotations

import json
from typing import Any

import pytest

from app.services.presence_service import PresenceTracker
from app.services.realtime_service import RealtimeGateway
from app.services.websocket_service import ConnectionManager, project_room, user_room

pytestmark = pytest.mark.asyncio


class FakeWebSocket:
    def __init__(self, *, broken: bool = False) -> None:
        self.accepted = False
        self.broken = broken
        self.sent: list[dict[str, Any]] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, message: str) -> None:
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(message))

    def types(self) -> list[str]:
        return [frame["type"] for frame in self.sent]

    def last(self, event: str) -> dict[str, Any]:
        return [frame for frame in self.sent if frame["type"] == event][-1]


def _gateway(members: set[tuple[str, str]] | None = None) -> RealtimeGateway:
    allowed = members if members is not None else set()

    async def checker(project_id: str, user_id: str) -> bool:
        return (project_id, user_id) in allowed

    return RealtimeGateway(ConnectionManager(), PresenceTracker(), membership_checker=checker)


class TestConnectionManager:

    async def test_connect_joins_user_room(self) -> None:
        manager = ConnectionManager()
        ws = FakeWebSocket()
        connection_id = await manager.connect(ws, "u1")

        assert ws.accepted
        assert manager.in_room(connection_id, user_room("u1"))
        assert manager.is_connected("u1")
        assert manager.connected_user_count == 1

    async def test_rooms_and_exclude(self) -> None:
        manager = ConnectionManager()
        a, b = FakeWebSocket(), FakeWebSocket()
        ca = await manager.connect(a, "u1")
        cb = await manager.connect(b, "u2")
        room = project_room("p1")

        assert manager.join_room(ca, room) is True
        assert manager.join_room(ca, room) is False
        manager.join_room(cb, room)
        assert manager.room_size(room) == 2

        await manager.send_to_room(room, {"type": "hello"}, exclude=ca)
        assert a.sent == []
        assert b.sent == [{"type": "hello"}]

        assert manager.leave_room(cb, room) is True
        assert manager.leave_room(cb, room) is False
        assert manager.room_size(room) == 1

    async def test_disconnect_cleans_up(self) -> None:
        manager = ConnectionManager()
        connection_id = await manager.connect(FakeWebSocket(), "u1")
        manager.join_room(connection_id, project_room("p1"))

        rooms = manager.disconnect(connection_id)
        assert rooms == sorted([project_room("p1"), user_room("u1")])
        assert not manager.is_connected("u1")
        assert manager.room_size(project_room("p1")) == 0

    async def test_dead_socket_is_dropped(self) -> None:
        manager = ConnectionManager()
        await manager.connect(FakeWebSocket(broken=True), "u1")
        await manager.send_personal_message("u1", {"type": "notification"})
        assert not manager.is_connected("u1")

    async def test_multiple_tabs(self) -> None:
        manager = ConnectionManager()
        first, second = FakeWebSocket(), FakeWebSocket()
        c1 = await manager.connect(first, "u1")
        await manager.connect(second, "u1")

        await manager.send_personal_message("u1", {"type": "notification"})
        assert first.sent == second.sent == [{"type": "notification"}]

        manager.disconnect(c1)
        assert manager.is_connected("u1")
        assert manager.connected_user_count == 1


class TestPresenceTracker:

    def _tracker(self) -> PresenceTracker:
        return PresenceTracker()

    async def test_join_and_leave(self) -> None:
        tracker = self._tracker()
        assert tracker.join("p1", "u1", "Ann", "s1") is True
        assert tracker.join("p1", "u1", "Ann", "s2") is False
        assert tracker.project_user_count("p1") == 1

        assert tracker.leave("p1", "u1", "s1") is False
        assert tracker.active_users("p1")[0].socket_id == "s2"
        assert tracker.leave("p1", "u1", "s2") is True
        assert tracker.active_users("p1") == []

    async def test_leave_socket_everywhere(self) -> None:
        tracker = self._tracker()
        tracker.join("p1", "u1", "Ann", "s1")
        tracker.join("p2", "u1", "Ann", "s1")
        tracker.join("p2", "u1", "Ann", "s9")

        assert tracker.leave_socket("u1", "s1") == ["p1"]
        assert tracker.project_user_count("p2") == 1

    async def test_active_users_in_join_order(self) -> None:
        tracker = self._tracker()
        tracker.join("p1", "u1", "Ann", "s1")
        tracker.join("p1", "u2", "Bob", "s2")
        assert [u.name for u in tracker.active_users("p1")] == ["Ann", "Bob"]


class TestGateway:

    async def test_connect_greets(self) -> None:
        gateway = _gateway()
        ws = FakeWebSocket()
        await gateway.handle_connect(ws, "u1", "Ann")

        greeting = ws.last("connected")
        assert greeting["data"]["user"] == {"id": "u1", "name": "Ann"}

    async def test_join_requires_membership(self) -> None:
        gateway = _gateway()
        ws = FakeWebSocket()
        connection_id = await gateway.handle_connect(ws, "u1", "Ann")

        await gateway.handle_event(
            connection_id, {"type": "join-project", "data": {"project_id": "p1"}}
        )
        assert ws.last("error")["data"]["message"] == "You are not a member of this project"
        assert gateway.project_user_count("p1") == 0

    async def test_join_missing_project_id(self) -> None:
        gateway = _gateway()
        ws = FakeWebSocket()
        connection_id = await gateway.handle_connect(ws, "u1", "Ann")
        await gateway.handle_event(connection_id, {"type": "join-project", "data": {}})
        assert ws.last("error")["data"]["message"] == "Project ID is required"

    async def test_join_broadcasts_active_users(self) -> None:
        gateway = _gateway({("p1", "u1"), ("p1", "u2")})
        ann, bob = FakeWebSocket(), FakeWebSocket()
        ca = await gateway.handle_connect(ann, "u1", "Ann")
        cb = await gateway.handle_connect(bob, "u2", "Bob")

        await gateway.handle_event(ca, {"type": "join-project", "data": {"project_id": "p1"}})
        await gateway.handle_event(cb, {"type": "join-project", "data": {"project_id": "p1"}})

        active = ann.last("active-users-updated")["data"]["active_users"]
        assert [u["name"] for u in active] == ["Ann", "Bob"]
        assert gateway.project_user_count("p1") == 2

        await gateway.handle_disconnect(cb)
        active = ann.last("active-users-updated")["data"]["active_users"]
        assert [u["name"] for u in active] == ["Ann"]

    async def test_leave_project(self) -> None:
        gateway = _gateway({("p1", "u1")})
        ws = FakeWebSocket()
        connection_id = await gateway.handle_connect(ws, "u1", "Ann")
        await gateway.handle_event(
            connection_id, {"type": "join-project", "data": {"project_id": "p1"}}
        )
        await gateway.handle_event(
            connection_id, {"type": "leave-project", "data": {"project_id": "p1"}}
        )
        assert gateway.project_user_count("p1") == 0

    async def test_relayed_task_update(self) -> None:
        gateway = _gateway({("p1", "u1"), ("p1", "u2")})
        ann, bob = FakeWebSocket(), FakeWebSocket()
        ca = await gateway.handle_connect(ann, "u1", "Ann")
        cb = await gateway.handle_connect(bob, "u2", "Bob")
        for cid in (ca, cb):
            await gateway.handle_event(cid, {"type": "join-project", "data": {"project_id": "p1"}})

        await gateway.handle_event(
            ca,
            {
                "type": "task-update",
                "data": {"project_id": "p1", "task_id": "t1", "type": "typing"},
            },
        )
        frame = bob.last("task-updated")["data"]
        assert frame["task_id"] == "t1"
        assert frame["user_name"] == "Ann"

    async def test_relayed_task_update_requires_ids(self) -> None:
        gateway = _gateway()
        ws = FakeWebSocket()
        connection_id = await gateway.handle_connect(ws, "u1", "Ann")
        await gateway.handle_event(
            connection_id, {"type": "task-update", "data": {"project_id": "p1"}}
        )
        assert ws.last("error")["data"]["message"] == "Project ID and Task ID are required"

    async def test_presence_only_inside_room(self) -> None:
        gateway = _gateway({("p1", "u1")})
        ws = FakeWebSocket()
        connection_id = await gateway.handle_connect(ws, "u1", "Ann")

        await gateway.handle_event(
            connection_id, {"type": "user-presence", "data": {"project_id": "p1", "status": "away"}}
        )
        assert "user-presence-changed" not in ws.types()

        await gateway.handle_event(
            connection_id, {"type": "join-project", "data": {"project_id": "p1"}}
        )
        await gateway.handle_event(
            connection_id, {"type": "user-presence", "data": {"project_id": "p1", "status": "away"}}
        )
        assert ws.last("user-presence-changed")["data"]["status"] == "away"

    async def test_unknown_event(self) -> None:
        gateway = _gateway()
        ws = FakeWebSocket()
        connection_id = await gateway.handle_connect(ws, "u1", "Ann")
        await gateway.handle_event(connection_id, {"type": "dance"})
        assert "Unknown event type" in ws.last("error")["data"]["message"]

    async def test_server_broadcast_frame(self) -> None:
        gateway = _gateway({("p1", "u1")})
        ws = FakeWebSocket()
        connection_id = await gateway.handle_connect(ws, "u1", "Ann")
        await gateway.handle_event(
            connection_id, {"type": "join-project", "data": {"project_id": "p1"}}
        )

        await gateway.broadcast_to_project(
            "p1", "list-updated", {"id": "l1"}, user_id="u2", user_name="Bob", type="list-deleted"
        )
        frame = ws.last("list-updated")["data"]
        assert frame["project_id"] == "p1"
        assert frame["type"] == "list-deleted"
        assert frame["payload"] == {"id": "l1"}
        assert frame["user_name"] == "Bob"

        await gateway.broadcast_to_user("u1", "notification", {"title": "Hi"})
        assert ws.last("notification")["data"] == {"title": "Hi"}

"""
WebSocket endpoint.
Clients connect with a valid JWT access token as a query parameter, then
exchange {"type": ..., "data": {...}} frames with the realtime gateway.
"""
from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from jose import JWTError

from app.core.config import settings
from app.core.security import decode_access_token
from app.services.realtime_service import realtime_gateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["WebSocket"])


@router.websocket("/ws/{user_id}")
async def websocket_endpoint(websocket: WebSocket, user_id: str) -> None:
    """
    WebSocket endpoint for realtime project sync and notifications.

    Query parameters:
        token: A valid JWT access token whose subject is user_id.

    The server sends:
        - {"type": "connected", "data": {...}} on successful connection.
        - {"type": "ping"} every WS_HEARTBEAT_SECONDS as a heartbeat.
        - project room events such as task-created or active-users-updated.
        - {"type": "notification", "data": {...}} when a notification is created.

    The client joins project rooms with {"type": "join-project", "data":
    {"project_id": "..."}} and should answer pings with {"type": "pong"}.
    """
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=4001, reason="Missing authentication token")
        return

    try:
        payload = decode_access_token(token)
    except JWTError:
        await websocket.close(code=4001, reason="Invalid or expired token")
        return

    # Ensure the token subject matches the path parameter
    if payload.get("sub") != user_id:
        await websocket.close(code=4003, reason="Token user_id mismatch")
        return

    user_name = payload.get("name") or user_id
    connection_id = await realtime_gateway.handle_connect(websocket, user_id, user_name)
    heartbeat_task = asyncio.create_task(_heartbeat(websocket))

    try:
        while True:
            message = await websocket.receive_json()
            if isinstance(message, dict):
                await realtime_gateway.handle_event(connection_id, message)
    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected: user_id=%s", user_id)
    except Exception as exc:
        logger.error("WebSocket error for user_id=%s: %s", user_id, exc)
    finally:
        heartbeat_task.cancel()
        try:
            await heartbeat_task
        except asyncio.CancelledError:
            pass
        await realtime_gateway.handle_disconnect(connection_id)


async def _heartbeat(websocket: WebSocket) -> None:
    """Send periodic ping frames to keep the connection alive."""
    while True:
        await asyncio.sleep(settings.WS_HEARTBEAT_SECONDS)
        try:
            await websocket.send_json({"type": "ping"})
        except Exception:
            break

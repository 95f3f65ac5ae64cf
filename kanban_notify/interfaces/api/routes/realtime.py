"""Websocket endpoint exposing the ephemeral broadcast rooms to clients.

Clients send ``join``/``leave`` with a ``room`` name and ``broadcast`` with a
``room``, ``event`` and ``payload``. Broadcasts are stamped with the sender's
user id and relayed to the other members of the room only.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect

from kanban_notify.infrastructure.database import SessionLocal
from kanban_notify.infrastructure.notifications import RealtimeBroker, WebSocketRoomMember
from kanban_notify.infrastructure.notifications.rooms import SENDER_KEY
from kanban_notify.interfaces.api.dependencies import resolve_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/realtime", tags=["realtime"])


async def _handle_message(
    websocket: WebSocket,
    broker: RealtimeBroker,
    member: WebSocketRoomMember,
    message: dict,
) -> None:
    message_type = message.get("type")
    room = message.get("room")

    if message_type == "ping":
        await websocket.send_json({"type": "pong"})
        return

    if not isinstance(room, str) or not room:
        await websocket.send_json({"type": "error", "detail": "Room required"})
        return

    if message_type == "join":
        broker.join(room, member)
        await websocket.send_json({"type": "joined", "room": room})
    elif message_type == "leave":
        broker.leave(room, member)
        await websocket.send_json({"type": "left", "room": room})
    elif message_type == "broadcast":
        event = message.get("event")
        if not isinstance(event, str) or not event:
            await websocket.send_json({"type": "error", "detail": "Event required"})
            return
        if not broker.is_member(room, member):
            await websocket.send_json({"type": "error", "detail": "Not a member of room"})
            return
        payload = message.get("payload")
        body = dict(payload) if isinstance(payload, dict) else {}
        body[SENDER_KEY] = member.user_id
        await broker.broadcast(room, event, body, sender=member)
    else:
        await websocket.send_json({"type": "error", "detail": "Unknown message type"})


@router.websocket("/ws")
async def realtime_websocket(websocket: WebSocket) -> None:
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=1008)
        return

    session = SessionLocal()
    try:
        user = resolve_current_user(token, session)
    except HTTPException:
        await websocket.close(code=1008)
        return
    finally:
        session.close()

    broker: RealtimeBroker = websocket.app.state.realtime_broker
    member = WebSocketRoomMember(websocket, user.id)
    await websocket.accept()
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except ValueError:
                continue
            if isinstance(message, dict):
                await _handle_message(websocket, broker, member, message)
    except WebSocketDisconnect:
        logger.debug("Realtime socket closed for user %s", user.id)
    finally:
        broker.leave_all(member)

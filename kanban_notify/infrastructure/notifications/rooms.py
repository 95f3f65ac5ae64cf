"""Ephemeral pub/sub rooms for live collaboration signals.

Rooms are keyed by a resource name such as ``typing:{channel_id}`` or
``chat-sync:{channel_id}``. Nothing sent through a room is persisted: delivery
is at-most-once and a member that fails to receive a message is dropped from
the room. Every payload carries the sender's ``userId`` so receivers can
ignore their own echo.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import uuid
from collections import defaultdict
from typing import Any, Awaitable, Callable, DefaultDict, Protocol, Union

from fastapi import WebSocket

logger = logging.getLogger(__name__)

SENDER_KEY = "userId"

RoomHandler = Callable[[dict[str, Any]], Union[Awaitable[None], None]]


class RoomMember(Protocol):
    member_id: str

    async def deliver(self, room: str, event: str, payload: dict[str, Any]) -> None:
        ...


class RealtimeBroker:
    """In-process registry of room members.

    One broker is created per application and handed to whoever needs it;
    nothing in this module keeps a global instance.
    """

    def __init__(self) -> None:
        self._rooms: DefaultDict[str, dict[str, RoomMember]] = defaultdict(dict)

    def join(self, room: str, member: RoomMember) -> None:
        self._rooms[room][member.member_id] = member

    def leave(self, room: str, member: RoomMember) -> None:
        members = self._rooms.get(room)
        if members is None:
            return
        members.pop(member.member_id, None)
        if not members:
            self._rooms.pop(room, None)

    def leave_all(self, member: RoomMember) -> None:
        for room in [name for name, members in self._rooms.items() if member.member_id in members]:
            self.leave(room, member)

    def members(self, room: str) -> list[RoomMember]:
        return list(self._rooms.get(room, {}).values())

    def is_member(self, room: str, member: RoomMember) -> bool:
        return member.member_id in self._rooms.get(room, {})

    async def broadcast(
        self,
        room: str,
        event: str,
        payload: dict[str, Any],
        *,
        sender: RoomMember | None = None,
    ) -> int:
        """Deliver ``event`` to every member of ``room`` except ``sender``.

        Returns the number of members that accepted the message.
        """

        targets = [
            member
            for member in self.members(room)
            if sender is None or member.member_id != sender.member_id
        ]
        if not targets:
            return 0

        results = await asyncio.gather(
            *(member.deliver(room, event, dict(payload)) for member in targets),
            return_exceptions=True,
        )
        delivered = 0
        for member, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.warning(
                    "Dropping member %s from room %s after failed delivery: %s",
                    member.member_id,
                    room,
                    result,
                )
                self.leave(room, member)
            else:
                delivered += 1
        return delivered

    def room(self, name: str, *, user_id: str) -> "RoomChannel":
        """Join ``name`` as ``user_id`` and return the handle for it."""

        channel = RoomChannel(self, name, user_id)
        self.join(name, channel)
        return channel


class RoomChannel:
    """In-process subscription to a single room."""

    def __init__(self, broker: RealtimeBroker, name: str, user_id: str) -> None:
        self.member_id = uuid.uuid4().hex
        self.name = name
        self.user_id = user_id
        self._broker = broker
        self._handlers: DefaultDict[str, list[RoomHandler]] = defaultdict(list)
        self._closed = False

    @property
    def subscribed(self) -> bool:
        return not self._closed and self._broker.is_member(self.name, self)

    def on(self, event: str, handler: RoomHandler) -> "RoomChannel":
        self._handlers[event].append(handler)
        return self

    async def send(self, event: str, payload: dict[str, Any] | None = None) -> int:
        """Broadcast ``event`` to the other members, stamped with our user id."""

        if not self.subscribed:
            return 0
        body = dict(payload or {})
        body[SENDER_KEY] = self.user_id
        return await self._broker.broadcast(self.name, event, body, sender=self)

    def unsubscribe(self) -> None:
        self._closed = True
        self._broker.leave(self.name, self)
        self._handlers.clear()

    async def deliver(self, room: str, event: str, payload: dict[str, Any]) -> None:
        for handler in list(self._handlers.get(event, ())):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Handler for %s on room %s failed", event, room)


class WebSocketRoomMember:
    """Room member backed by a client websocket connection."""

    def __init__(self, websocket: WebSocket, user_id: str) -> None:
        self.member_id = uuid.uuid4().hex
        self.user_id = user_id
        self._websocket = websocket

    async def deliver(self, room: str, event: str, payload: dict[str, Any]) -> None:
        await self._websocket.send_json(
            {"type": "broadcast", "room": room, "event": event, "payload": payload}
        )


__all__ = [
    "RealtimeBroker",
    "RoomChannel",
    "RoomHandler",
    "RoomMember",
    "SENDER_KEY",
    "WebSocketRoomMember",
]

"""Typing indicator protocol on top of realtime rooms."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable

from .rooms import SENDER_KEY, RealtimeBroker

TYPING_EVENT = "typing"
TYPING_DEBOUNCE_SECONDS = 0.5
TYPING_EXPIRY_SECONDS = 3.0


def typing_room(channel_id: str) -> str:
    return f"typing:{channel_id}"


@dataclass(frozen=True)
class TypingUser:
    user_id: str
    user_name: str | None


class TypingIndicator:
    """Send our own typing signals and track who else is typing in a channel.

    Outgoing signals are debounced on the sender side. Each incoming signal
    (re)starts a per-user expiry timer; when it fires the user leaves the
    typing set.
    """

    def __init__(
        self,
        broker: RealtimeBroker,
        channel_id: str,
        user_id: str,
        *,
        debounce: float = TYPING_DEBOUNCE_SECONDS,
        expiry: float = TYPING_EXPIRY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.user_id = user_id
        self._debounce = debounce
        self._expiry = expiry
        self._clock = clock
        self._last_sent: float | None = None
        self._typing: dict[str, TypingUser] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._room = broker.room(typing_room(channel_id), user_id=user_id)
        self._room.on(TYPING_EVENT, self._on_typing)

    @property
    def typing_users(self) -> list[TypingUser]:
        return list(self._typing.values())

    def is_typing(self, user_id: str) -> bool:
        return user_id in self._typing

    async def send_typing(self, user_name: str | None = None) -> bool:
        """Emit a typing signal unless one was sent within the debounce window."""

        now = self._clock()
        if self._last_sent is not None and now - self._last_sent < self._debounce:
            return False
        self._last_sent = now
        await self._room.send(TYPING_EVENT, {"userName": user_name})
        return True

    def _on_typing(self, payload: dict[str, Any]) -> None:
        user_id = payload.get(SENDER_KEY)
        if not user_id or user_id == self.user_id:
            return

        self._typing[user_id] = TypingUser(user_id=user_id, user_name=payload.get("userName"))
        existing = self._timers.pop(user_id, None)
        if existing is not None:
            existing.cancel()
        loop = asyncio.get_running_loop()
        self._timers[user_id] = loop.call_later(self._expiry, self._expire, user_id)

    def _expire(self, user_id: str) -> None:
        self._timers.pop(user_id, None)
        self._typing.pop(user_id, None)

    def close(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._typing.clear()
        self._room.unsubscribe()


__all__ = [
    "TYPING_DEBOUNCE_SECONDS",
    "TYPING_EVENT",
    "TYPING_EXPIRY_SECONDS",
    "TypingIndicator",
    "TypingUser",
    "typing_room",
]

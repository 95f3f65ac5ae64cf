"""Cache-invalidation broadcasts for chat channels."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Union

from .rooms import SENDER_KEY, RealtimeBroker

logger = logging.getLogger(__name__)

NEW_MESSAGE_EVENT = "new_message"
MESSAGE_UPDATED_EVENT = "message_updated"
REACTION_UPDATED_EVENT = "reaction_updated"
SYNC_EVENTS = (NEW_MESSAGE_EVENT, MESSAGE_UPDATED_EVENT, REACTION_UPDATED_EVENT)
INVALIDATE_COALESCE_SECONDS = 0.1

InvalidateCallback = Callable[[str], Union[Awaitable[None], None]]


def chat_sync_room(channel_id: str) -> str:
    return f"chat-sync:{channel_id}"


class ChatSync:
    """Tell other viewers of a channel that its messages changed.

    Signals carry only the sender id. Receivers never read data from them;
    they call ``on_invalidate`` so the view refetches from the database.
    Signals arriving within the coalescing window trigger a single refetch.
    """

    def __init__(
        self,
        broker: RealtimeBroker,
        channel_id: str,
        user_id: str,
        on_invalidate: InvalidateCallback,
        *,
        coalesce: float = INVALIDATE_COALESCE_SECONDS,
    ) -> None:
        self.channel_id = channel_id
        self.user_id = user_id
        self._on_invalidate = on_invalidate
        self._coalesce = coalesce
        self._scheduled: asyncio.Task[None] | None = None
        self._room = broker.room(chat_sync_room(channel_id), user_id=user_id)
        for event in SYNC_EVENTS:
            self._room.on(event, self._on_signal)

    async def broadcast_new_message(self) -> int:
        return await self._room.send(NEW_MESSAGE_EVENT)

    async def broadcast_message_update(self) -> int:
        return await self._room.send(MESSAGE_UPDATED_EVENT)

    async def broadcast_reaction_update(self) -> int:
        return await self._room.send(REACTION_UPDATED_EVENT)

    def _on_signal(self, payload: dict[str, Any]) -> None:
        if payload.get(SENDER_KEY) == self.user_id:
            return
        if self._scheduled is not None and not self._scheduled.done():
            return
        self._scheduled = asyncio.get_running_loop().create_task(self._invalidate_later())

    async def _invalidate_later(self) -> None:
        await asyncio.sleep(self._coalesce)
        # Signals arriving while the refetch runs schedule another one.
        self._scheduled = None
        try:
            result = self._on_invalidate(self.channel_id)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Invalidation callback failed for channel %s", self.channel_id)

    def close(self) -> None:
        if self._scheduled is not None and not self._scheduled.done():
            self._scheduled.cancel()
        self._scheduled = None
        self._room.unsubscribe()


__all__ = [
    "ChatSync",
    "INVALIDATE_COALESCE_SECONDS",
    "MESSAGE_UPDATED_EVENT",
    "NEW_MESSAGE_EVENT",
    "REACTION_UPDATED_EVENT",
    "SYNC_EVENTS",
    "chat_sync_room",
]

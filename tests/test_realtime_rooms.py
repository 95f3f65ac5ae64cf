"""Tests for ephemeral rooms, typing indicators and chat sync signals."""

from __future__ import annotations

import asyncio

import pytest

from kanban_notify.infrastructure.notifications import (
    ChatSync,
    RealtimeBroker,
    TypingIndicator,
)

pytestmark = pytest.mark.anyio


class _FailingMember:
    member_id = "broken"

    async def deliver(self, room, event, payload):
        raise ConnectionError("socket closed")


async def test_send_reaches_other_members_with_sender_id() -> None:
    broker = RealtimeBroker()
    alice = broker.room("typing:c1", user_id="alice")
    bob = broker.room("typing:c1", user_id="bob")
    received: list[dict] = []
    echoed: list[dict] = []
    bob.on("typing", received.append)
    alice.on("typing", echoed.append)

    delivered = await alice.send("typing", {"userName": "Alice"})

    assert delivered == 1
    assert received == [{"userName": "Alice", "userId": "alice"}]
    assert echoed == []


async def test_rooms_are_isolated() -> None:
    broker = RealtimeBroker()
    sender = broker.room("typing:c1", user_id="alice")
    other = broker.room("typing:c2", user_id="bob")
    received: list[dict] = []
    other.on("typing", received.append)

    assert await sender.send("typing") == 0
    assert received == []


async def test_unsubscribed_channel_neither_sends_nor_receives() -> None:
    broker = RealtimeBroker()
    alice = broker.room("chat-sync:c1", user_id="alice")
    bob = broker.room("chat-sync:c1", user_id="bob")
    received: list[dict] = []
    bob.on("new_message", received.append)

    bob.unsubscribe()

    assert await alice.send("new_message") == 0
    assert await bob.send("new_message") == 0
    assert received == []


async def test_failed_member_is_dropped() -> None:
    broker = RealtimeBroker()
    alice = broker.room("chat-sync:c1", user_id="alice")
    broker.join("chat-sync:c1", _FailingMember())

    assert await alice.send("new_message") == 0
    assert len(broker.members("chat-sync:c1")) == 1


async def test_handler_error_does_not_evict_member() -> None:
    broker = RealtimeBroker()
    alice = broker.room("typing:c1", user_id="alice")
    bob = broker.room("typing:c1", user_id="bob")

    def boom(payload):
        raise RuntimeError("bad handler")

    bob.on("typing", boom)

    assert await alice.send("typing") == 1
    assert bob.subscribed


async def test_typing_is_debounced_on_sender() -> None:
    broker = RealtimeBroker()
    now = [100.0]
    sender = TypingIndicator(broker, "c1", "alice", clock=lambda: now[0])
    receiver = TypingIndicator(broker, "c1", "bob")

    assert await sender.send_typing("Alice") is True
    now[0] += 0.2
    assert await sender.send_typing("Alice") is False
    now[0] += 0.4
    assert await sender.send_typing("Alice") is True
    assert [user.user_name for user in receiver.typing_users] == ["Alice"]

    sender.close()
    receiver.close()


async def test_typing_user_expires_after_three_seconds() -> None:
    broker = RealtimeBroker()
    sender = TypingIndicator(broker, "c1", "alice")
    receiver = TypingIndicator(broker, "c1", "bob")

    await sender.send_typing("Alice")
    assert receiver.is_typing("alice")
    assert not sender.is_typing("alice")

    await asyncio.sleep(3.1)

    assert not receiver.is_typing("alice")
    receiver.close()
    sender.close()


async def test_new_typing_signal_resets_expiry() -> None:
    broker = RealtimeBroker()
    sender = TypingIndicator(broker, "c1", "alice", debounce=0.0, expiry=0.3)
    receiver = TypingIndicator(broker, "c1", "bob", expiry=0.3)

    await sender.send_typing("Alice")
    await asyncio.sleep(0.2)
    await sender.send_typing("Alice")
    await asyncio.sleep(0.2)
    assert receiver.is_typing("alice")

    await asyncio.sleep(0.2)
    assert not receiver.is_typing("alice")
    receiver.close()
    sender.close()


async def test_chat_sync_invalidates_other_viewers_once() -> None:
    broker = RealtimeBroker()
    invalidated: list[str] = []
    own: list[str] = []
    sender = ChatSync(broker, "c1", "alice", own.append, coalesce=0.05)
    viewer = ChatSync(broker, "c1", "bob", invalidated.append, coalesce=0.05)

    await sender.broadcast_new_message()
    await sender.broadcast_reaction_update()
    await sender.broadcast_message_update()
    await asyncio.sleep(0.15)

    assert invalidated == ["c1"]
    assert own == []
    sender.close()
    viewer.close()


async def test_chat_sync_signal_during_slow_refetch_schedules_another() -> None:
    broker = RealtimeBroker()
    refetched: list[str] = []

    async def refetch(channel_id: str) -> None:
        refetched.append(channel_id)
        await asyncio.sleep(0.2)

    sender = ChatSync(broker, "c1", "alice", lambda channel_id: None, coalesce=0.05)
    viewer = ChatSync(broker, "c1", "bob", refetch, coalesce=0.05)

    await sender.broadcast_new_message()
    await asyncio.sleep(0.1)
    assert refetched == ["c1"]

    await sender.broadcast_message_update()
    await asyncio.sleep(0.4)

    assert refetched == ["c1", "c1"]
    sender.close()
    viewer.close()

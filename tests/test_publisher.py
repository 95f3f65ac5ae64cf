"""Tests for scheduling websocket delivery of stored notifications."""

from __future__ import annotations

import asyncio
from datetime import datetime

import pytest

from kanban_notify.domain.entities import Notification
from kanban_notify.infrastructure.notifications import NotificationPublisher

pytestmark = pytest.mark.anyio


class _SlowManager:
    def __init__(self) -> None:
        self.delivered: list[tuple[str, dict]] = []

    async def send_to_user(self, user_id: str, message: dict) -> None:
        await asyncio.sleep(0.1)
        self.delivered.append((user_id, message))


def _notification(user_id: str = "u1") -> Notification:
    return Notification(
        id=7,
        user_id=user_id,
        event_type="task_assigned",
        title="You were assigned a task: Ship release",
        message="You've been assigned to \"Ship release\"",
        payload={"task_id": "t1"},
        created_at=datetime(2024, 5, 1, 9, 30),
        read_at=None,
    )


async def test_drain_waits_for_scheduled_deliveries() -> None:
    manager = _SlowManager()
    publisher = NotificationPublisher(manager)

    publisher.dispatch(_notification("u1"))
    publisher.dispatch(_notification("u2"))
    assert publisher.pending == 2

    await publisher.drain()

    assert publisher.pending == 0
    assert sorted(user_id for user_id, _ in manager.delivered) == ["u1", "u2"]
    (_, message) = manager.delivered[0]
    assert message["type"] == "notification"
    assert message["data"]["id"] == 7
    assert message["data"]["read_at"] is None


async def test_drain_with_nothing_pending_returns() -> None:
    publisher = NotificationPublisher(_SlowManager())

    await publisher.drain()

    assert publisher.pending == 0

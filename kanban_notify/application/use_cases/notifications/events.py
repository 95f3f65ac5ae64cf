"""Classify board mutations and hand the results to the fan-out engine."""

from __future__ import annotations

import asyncio
from typing import Iterable

from kanban_notify.domain.entities import FanOutReport, TaskSnapshot, User

from .classifier import ClassifiedEvent, classify_comment, classify_task_change
from .fan_out import NotificationFanOut


def dispatch_classified(
    fan_out: NotificationFanOut, classified: Iterable[ClassifiedEvent]
) -> list[asyncio.Task[FanOutReport]]:
    """Schedule every classified event and return the handles."""

    return [fan_out.dispatch(item.event, item.recipients) for item in classified]


def notify_task_changed(
    fan_out: NotificationFanOut,
    *,
    before: TaskSnapshot | None,
    after: TaskSnapshot,
    actor_id: str,
    actor_name: str | None = None,
) -> list[asyncio.Task[FanOutReport]]:
    return dispatch_classified(
        fan_out,
        classify_task_change(before, after, actor_id=actor_id, actor_name=actor_name),
    )


def notify_comment_added(
    fan_out: NotificationFanOut,
    *,
    task: TaskSnapshot,
    actor_id: str,
    commenter_name: str,
    text: str,
    users: Iterable[User],
) -> list[asyncio.Task[FanOutReport]]:
    return dispatch_classified(
        fan_out,
        classify_comment(
            task,
            actor_id=actor_id,
            commenter_name=commenter_name,
            text=text,
            users=users,
        ),
    )


__all__ = ["dispatch_classified", "notify_comment_added", "notify_task_changed"]

"""Snapshot of a task as seen before or after a mutation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TaskSnapshot:
    """Task attributes the notification classifier compares."""

    id: str
    title: str
    board_id: str
    board_name: str | None = None
    assignee_id: str | None = None
    creator_id: str | None = None
    status: str | None = None
    priority: str | None = None
    due_date: str | None = None
    collaborator_ids: tuple[str, ...] = ()


__all__ = ["TaskSnapshot"]

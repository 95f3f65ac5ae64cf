"""Domain entity representing a persisted in-app notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class Notification:
    """Information message delivered to a specific user's inbox."""

    id: int | None
    user_id: str
    event_type: str
    title: str
    message: str
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    read_at: datetime | None = None


__all__ = ["Notification"]

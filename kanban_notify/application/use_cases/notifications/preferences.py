"""Use cases for reading and updating notification preferences."""

from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy.orm import Session

from kanban_notify.domain.entities import PREFERENCE_FLAGS, NotificationPreference
from kanban_notify.infrastructure.repositories import NotificationPreferenceRepository


def get_preferences(session: Session, *, user_id: str) -> NotificationPreference:
    """Return the user's preferences, creating the all-enabled row on first read."""

    return NotificationPreferenceRepository(session).get_or_create(user_id)


def update_preferences(
    session: Session, *, user_id: str, changes: Mapping[str, Any]
) -> NotificationPreference:
    """Apply the known boolean flags in ``changes``.

    Unknown keys and non-boolean values are ignored; when nothing usable is
    left a ``ValueError`` is raised.
    """

    flags = {
        key: value
        for key, value in changes.items()
        if key in PREFERENCE_FLAGS and isinstance(value, bool)
    }
    if not flags:
        raise ValueError("No valid fields to update")
    return NotificationPreferenceRepository(session).upsert(user_id, flags)


__all__ = ["get_preferences", "update_preferences"]

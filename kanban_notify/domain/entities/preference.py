"""Domain entity for per-user notification preferences."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Final

from .notification_event import NotificationEventType, PushCategory

EMAIL_PREFERENCE_FLAGS: Final[dict[NotificationEventType, str]] = {
    NotificationEventType.TASK_ASSIGNED: "email_task_assigned",
    NotificationEventType.TASK_UNASSIGNED: "email_task_unassigned",
    NotificationEventType.STATUS_CHANGED: "email_status_changed",
    NotificationEventType.PRIORITY_CHANGED: "email_priority_changed",
    NotificationEventType.NEW_COMMENT: "email_new_comment",
    NotificationEventType.DUE_DATE_CHANGED: "email_due_date_changed",
    NotificationEventType.COLLABORATOR_ADDED: "email_collaborator_added",
    NotificationEventType.COLLABORATOR_REMOVED: "email_collaborator_removed",
    NotificationEventType.MENTION: "email_mention",
    NotificationEventType.NEW_SUBMISSION: "email_new_submission",
}

PUSH_PREFERENCE_FLAGS: Final[dict[PushCategory, str]] = {
    PushCategory.NOTIFICATION: "push_enabled",
    PushCategory.CHAT: "push_chat_enabled",
}

PREFERENCE_FLAGS: Final[tuple[str, ...]] = (
    *EMAIL_PREFERENCE_FLAGS.values(),
    *PUSH_PREFERENCE_FLAGS.values(),
)


def default_preference_flags() -> dict[str, bool]:
    """Return every flag enabled."""

    return {flag: True for flag in PREFERENCE_FLAGS}


@dataclass
class NotificationPreference:
    """Channel toggles chosen by one user.

    A user without a stored row behaves exactly like a row with every flag
    enabled, so lookups go through :meth:`is_enabled` rather than the dict.
    """

    user_id: str
    flags: dict[str, bool] = field(default_factory=default_preference_flags)
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_enabled(self, flag: str) -> bool:
        return self.flags.get(flag) is not False

    def email_enabled(self, event_type: NotificationEventType) -> bool:
        return self.is_enabled(EMAIL_PREFERENCE_FLAGS[event_type])

    def push_enabled(self, category: PushCategory) -> bool:
        return self.is_enabled(PUSH_PREFERENCE_FLAGS[category])


__all__ = [
    "EMAIL_PREFERENCE_FLAGS",
    "NotificationPreference",
    "PREFERENCE_FLAGS",
    "PUSH_PREFERENCE_FLAGS",
    "default_preference_flags",
]

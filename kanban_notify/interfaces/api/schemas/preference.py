"""Schemas for notification preferences."""

from __future__ import annotations

from pydantic import BaseModel

from kanban_notify.domain.entities import NotificationPreference


class NotificationPreferenceRead(BaseModel):
    email_task_assigned: bool = True
    email_task_unassigned: bool = True
    email_status_changed: bool = True
    email_priority_changed: bool = True
    email_new_comment: bool = True
    email_due_date_changed: bool = True
    email_collaborator_added: bool = True
    email_collaborator_removed: bool = True
    email_mention: bool = True
    email_new_submission: bool = True
    push_enabled: bool = True
    push_chat_enabled: bool = True

    @classmethod
    def from_entity(cls, preference: NotificationPreference) -> "NotificationPreferenceRead":
        return cls(**preference.flags)


__all__ = ["NotificationPreferenceRead"]

"""Domain events describing board mutations that notify users."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class NotificationEventType(str, Enum):
    """Closed set of state changes that fan out to users."""

    TASK_ASSIGNED = "task_assigned"
    TASK_UNASSIGNED = "task_unassigned"
    STATUS_CHANGED = "status_changed"
    PRIORITY_CHANGED = "priority_changed"
    NEW_COMMENT = "new_comment"
    DUE_DATE_CHANGED = "due_date_changed"
    COLLABORATOR_ADDED = "collaborator_added"
    COLLABORATOR_REMOVED = "collaborator_removed"
    MENTION = "mention"
    NEW_SUBMISSION = "new_submission"


class RecipientRole(str, Enum):
    """Relationship between a candidate recipient and the event subject."""

    ASSIGNEE = "assignee"
    CREATOR = "creator"
    COLLABORATOR = "collaborator"
    MENTIONED = "mentioned"


class PushCategory(str, Enum):
    """Push preference bucket a message belongs to."""

    NOTIFICATION = "notification"
    CHAT = "chat"


@dataclass(frozen=True)
class RecipientCandidate:
    """User that may receive an event, before filtering."""

    user_id: str
    role: RecipientRole


@dataclass(frozen=True)
class NotificationEvent:
    """Immutable description of one state change on a task or board."""

    type: NotificationEventType
    subject_id: str
    subject_title: str
    board_id: str
    actor_id: str
    board_name: str | None = None
    metadata: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", NotificationEventType(self.type))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def push_category(self) -> PushCategory:
        return PushCategory.NOTIFICATION

    def to_payload(self) -> dict[str, object]:
        """Return the JSON payload stored with in-app notifications."""

        return {
            "task_id": self.subject_id,
            "task_title": self.subject_title,
            "board_id": self.board_id,
            "board_name": self.board_name,
            "actor_id": self.actor_id,
            "metadata": dict(self.metadata),
        }


__all__ = [
    "NotificationEvent",
    "NotificationEventType",
    "PushCategory",
    "RecipientCandidate",
    "RecipientRole",
]

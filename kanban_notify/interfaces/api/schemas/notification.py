"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from kanban_notify.domain.entities import (
    DeliveryOutcome,
    FanOutReport,
    NotificationEventType,
)


class NotificationMarkReadRequest(BaseModel):
    """Payload used to mark a batch of notifications as read."""

    ids: list[int] = Field(..., min_length=1, description="Notification identifiers")

    def unique_ids(self) -> list[int]:
        """Return the list of identifiers without duplicates preserving order."""

        return list(dict.fromkeys(self.ids))


class NotificationMarkReadResponse(BaseModel):
    updated: int


class UnreadCountRead(BaseModel):
    count: int


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: int
    user_id: str
    event_type: str
    title: str
    message: str
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    read_at: datetime | None = None


class NotificationEmailRequest(BaseModel):
    """Ask for the external channels of one event to run for one recipient."""

    model_config = ConfigDict(populate_by_name=True)

    type: NotificationEventType
    task_id: str = Field(..., alias="taskId", min_length=1)
    task_title: str = Field(..., alias="taskTitle", min_length=1)
    board_id: str = Field(..., alias="boardId", min_length=1)
    board_name: str | None = Field(default=None, alias="boardName")
    recipient_id: str = Field(..., alias="recipientId", min_length=1)
    metadata: dict[str, Any] = Field(default_factory=dict)


class DeliveryOutcomeRead(BaseModel):
    user_id: str
    channel: str
    status: str
    reason: str | None = None
    error: str | None = None
    sent_count: int = 0

    @classmethod
    def from_outcome(cls, outcome: DeliveryOutcome) -> "DeliveryOutcomeRead":
        return cls(**outcome.as_dict())


class FanOutReportRead(BaseModel):
    event_type: str
    outcomes: list[DeliveryOutcomeRead]

    @classmethod
    def from_report(cls, report: FanOutReport) -> "FanOutReportRead":
        return cls(
            event_type=report.event_type.value,
            outcomes=[DeliveryOutcomeRead.from_outcome(outcome) for outcome in report.outcomes],
        )


__all__ = [
    "DeliveryOutcomeRead",
    "FanOutReportRead",
    "NotificationEmailRequest",
    "NotificationMarkReadRequest",
    "NotificationMarkReadResponse",
    "NotificationRead",
    "UnreadCountRead",
]

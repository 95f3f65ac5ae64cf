"""Per-recipient, per-channel delivery results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .notification_event import NotificationEventType


class DeliveryChannel(str, Enum):
    IN_APP = "in_app"
    EMAIL = "email"
    PUSH = "push"


class DeliveryStatus(str, Enum):
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


class SkipReason(str, Enum):
    SELF = "self"
    PREFERENCE_DISABLED = "preference_disabled"
    NO_SUBSCRIPTIONS = "no_subscriptions"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of one channel for one recipient."""

    user_id: str
    channel: DeliveryChannel
    status: DeliveryStatus
    reason: SkipReason | None = None
    error: str | None = None
    sent_count: int = 0

    @classmethod
    def sent(
        cls, user_id: str, channel: DeliveryChannel, *, sent_count: int = 1
    ) -> "DeliveryOutcome":
        return cls(user_id, channel, DeliveryStatus.SENT, sent_count=sent_count)

    @classmethod
    def skipped(
        cls, user_id: str, channel: DeliveryChannel, reason: SkipReason
    ) -> "DeliveryOutcome":
        return cls(user_id, channel, DeliveryStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(
        cls, user_id: str, channel: DeliveryChannel, error: str
    ) -> "DeliveryOutcome":
        return cls(user_id, channel, DeliveryStatus.FAILED, error=error)

    def as_dict(self) -> dict[str, object]:
        return {
            "user_id": self.user_id,
            "channel": self.channel.value,
            "status": self.status.value,
            "reason": self.reason.value if self.reason else None,
            "error": self.error,
            "sent_count": self.sent_count,
        }


@dataclass
class FanOutReport:
    """Every outcome recorded while fanning out a single event."""

    event_type: NotificationEventType
    outcomes: list[DeliveryOutcome] = field(default_factory=list)

    def extend(self, outcomes: list[DeliveryOutcome]) -> None:
        self.outcomes.extend(outcomes)

    def for_user(self, user_id: str) -> list[DeliveryOutcome]:
        return [outcome for outcome in self.outcomes if outcome.user_id == user_id]

    def outcome(
        self, user_id: str, channel: DeliveryChannel
    ) -> DeliveryOutcome | None:
        """Return the processed outcome for ``user_id`` on ``channel``.

        Duplicate skips are only returned when nothing else was recorded.
        """

        matches = [
            outcome
            for outcome in self.outcomes
            if outcome.user_id == user_id and outcome.channel == channel
        ]
        for outcome in matches:
            if outcome.reason is not SkipReason.DUPLICATE:
                return outcome
        return matches[0] if matches else None

    def count(self, channel: DeliveryChannel, status: DeliveryStatus) -> int:
        return sum(
            1
            for outcome in self.outcomes
            if outcome.channel == channel and outcome.status == status
        )


__all__ = [
    "DeliveryChannel",
    "DeliveryOutcome",
    "DeliveryStatus",
    "FanOutReport",
    "SkipReason",
]

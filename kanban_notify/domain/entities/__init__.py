"""Domain entities exposed by the application."""

from .delivery import (
    DeliveryChannel,
    DeliveryOutcome,
    DeliveryStatus,
    FanOutReport,
    SkipReason,
)
from .notification import Notification
from .notification_event import (
    NotificationEvent,
    NotificationEventType,
    PushCategory,
    RecipientCandidate,
    RecipientRole,
)
from .preference import (
    EMAIL_PREFERENCE_FLAGS,
    PREFERENCE_FLAGS,
    PUSH_PREFERENCE_FLAGS,
    NotificationPreference,
    default_preference_flags,
)
from .push_subscription import PushSubscription
from .task import TaskSnapshot
from .user import User

__all__ = [
    "DeliveryChannel",
    "DeliveryOutcome",
    "DeliveryStatus",
    "FanOutReport",
    "SkipReason",
    "Notification",
    "NotificationEvent",
    "NotificationEventType",
    "PushCategory",
    "RecipientCandidate",
    "RecipientRole",
    "EMAIL_PREFERENCE_FLAGS",
    "PREFERENCE_FLAGS",
    "PUSH_PREFERENCE_FLAGS",
    "NotificationPreference",
    "default_preference_flags",
    "PushSubscription",
    "TaskSnapshot",
    "User",
]

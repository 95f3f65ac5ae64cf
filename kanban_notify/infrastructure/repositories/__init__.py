"""Repository implementations for infrastructure layer."""

from .notification_repository import NotificationRepository
from .preference_repository import NotificationPreferenceRepository
from .push_subscription_repository import PushSubscriptionRepository
from .user_repository import UserRepository

__all__ = [
    "NotificationRepository",
    "NotificationPreferenceRepository",
    "PushSubscriptionRepository",
    "UserRepository",
]

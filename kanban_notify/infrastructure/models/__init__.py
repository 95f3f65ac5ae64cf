"""ORM models used by the application infrastructure."""

from .notification import NotificationModel
from .preference import NotificationPreferenceModel
from .push_subscription import PushSubscriptionModel
from .user import UserModel

__all__ = [
    "NotificationModel",
    "NotificationPreferenceModel",
    "PushSubscriptionModel",
    "UserModel",
]

from .event import (
    CommentEventRequest,
    EventDispatchResponse,
    TaskChangeRequest,
    TaskSnapshotPayload,
)
from .notification import (
    DeliveryOutcomeRead,
    FanOutReportRead,
    NotificationEmailRequest,
    NotificationMarkReadRequest,
    NotificationMarkReadResponse,
    NotificationRead,
    UnreadCountRead,
)
from .preference import NotificationPreferenceRead
from .push import (
    PushKeys,
    PushSendRequest,
    PushSendResponse,
    PushSubscriptionRead,
    PushSubscriptionRequest,
    PushUnsubscribeRequest,
    VapidPublicKeyRead,
)

__all__ = [
    "CommentEventRequest",
    "EventDispatchResponse",
    "TaskChangeRequest",
    "TaskSnapshotPayload",
    "DeliveryOutcomeRead",
    "FanOutReportRead",
    "NotificationEmailRequest",
    "NotificationMarkReadRequest",
    "NotificationMarkReadResponse",
    "NotificationRead",
    "UnreadCountRead",
    "NotificationPreferenceRead",
    "PushKeys",
    "PushSendRequest",
    "PushSendResponse",
    "PushSubscriptionRead",
    "PushSubscriptionRequest",
    "PushUnsubscribeRequest",
    "VapidPublicKeyRead",
]

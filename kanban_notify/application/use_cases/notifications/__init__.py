"""Use cases that classify, fan out and deliver notifications."""

from .classifier import (
    ClassifiedEvent,
    build_event,
    classify_comment,
    classify_submission,
    classify_task_change,
    extract_mentioned_user_ids,
    normalize_metadata,
    stakeholder_recipients,
)
from .events import dispatch_classified, notify_comment_added, notify_task_changed
from .fan_out import NotificationFanOut, dedupe_recipients
from .preferences import get_preferences, update_preferences
from .push_delivery import PushMessage, deliver_push, load_preference
from .subscriptions import subscribe, unsubscribe

__all__ = [
    "ClassifiedEvent",
    "build_event",
    "classify_comment",
    "classify_submission",
    "classify_task_change",
    "extract_mentioned_user_ids",
    "normalize_metadata",
    "stakeholder_recipients",
    "dispatch_classified",
    "notify_comment_added",
    "notify_task_changed",
    "NotificationFanOut",
    "dedupe_recipients",
    "get_preferences",
    "update_preferences",
    "PushMessage",
    "deliver_push",
    "load_preference",
    "subscribe",
    "unsubscribe",
]

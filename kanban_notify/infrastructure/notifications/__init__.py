"""Realtime notification helpers for the infrastructure layer."""

from .chat_sync import ChatSync, chat_sync_room
from .manager import NotificationConnectionManager
from .publisher import NotificationPublisher, serialize_notification
from .rooms import RealtimeBroker, RoomChannel, WebSocketRoomMember
from .typing_indicator import TypingIndicator, TypingUser, typing_room

__all__ = [
    "ChatSync",
    "chat_sync_room",
    "NotificationConnectionManager",
    "NotificationPublisher",
    "serialize_notification",
    "RealtimeBroker",
    "RoomChannel",
    "WebSocketRoomMember",
    "TypingIndicator",
    "TypingUser",
    "typing_room",
]

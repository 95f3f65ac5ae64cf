"""Schemas for Web Push subscription management and direct sends."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from kanban_notify.domain.entities import PushCategory


class PushKeys(BaseModel):
    p256dh: str | None = None
    auth: str | None = None


class PushSubscriptionRequest(BaseModel):
    """Subscription object as produced by ``PushManager.subscribe`` in browsers."""

    endpoint: str | None = None
    keys: PushKeys = Field(default_factory=PushKeys)


class PushUnsubscribeRequest(BaseModel):
    endpoint: str | None = None


class PushSubscriptionRead(BaseModel):
    id: int
    endpoint: str
    created_at: datetime | None = None


class PushSendRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1)
    title: str = Field(..., min_length=1)
    body: str = ""
    url: str | None = None
    tag: str | None = None
    type: PushCategory = PushCategory.NOTIFICATION


class VapidPublicKeyRead(BaseModel):
    public_key: str = Field(..., serialization_alias="publicKey")


class PushSendResponse(BaseModel):
    success: bool
    skipped: bool | None = None
    reason: str | None = None
    sent: int | None = None
    error: str | None = None


__all__ = [
    "PushKeys",
    "PushSendRequest",
    "PushSendResponse",
    "PushSubscriptionRead",
    "PushSubscriptionRequest",
    "PushUnsubscribeRequest",
    "VapidPublicKeyRead",
]

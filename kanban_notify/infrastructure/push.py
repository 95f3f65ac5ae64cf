"""Web Push delivery through pywebpush."""

from __future__ import annotations

from typing import Protocol

from pywebpush import WebPushException, webpush

from kanban_notify.config import get_settings
from kanban_notify.domain.entities import PushSubscription

PUSH_TTL_SECONDS = 86400
EXPIRED_STATUS_CODES = frozenset({404, 410})


class PushDeliveryError(Exception):
    """Raised when the push service rejects a message."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PushSubscriptionExpiredError(PushDeliveryError):
    """The endpoint answered 404/410 and will never accept messages again."""


class PushSender(Protocol):
    def send(self, subscription: PushSubscription, payload: str) -> None:
        ...


class WebPushSender:
    """Send JSON payloads to browser endpoints signed with VAPID credentials."""

    def __init__(
        self,
        *,
        vapid_private_key: str | None = None,
        vapid_subject: str | None = None,
    ) -> None:
        settings = get_settings()
        self.vapid_private_key = vapid_private_key or settings.vapid_private_key
        self.vapid_claims = {"sub": vapid_subject or settings.vapid_subject}

    def send(self, subscription: PushSubscription, payload: str) -> None:
        if not self.vapid_private_key:
            raise PushDeliveryError("Web Push is not configured")

        try:
            webpush(
                subscription_info=subscription.subscription_info(),
                data=payload,
                vapid_private_key=self.vapid_private_key,
                vapid_claims=dict(self.vapid_claims),
                ttl=PUSH_TTL_SECONDS,
            )
        except WebPushException as exc:
            response = getattr(exc, "response", None)
            status_code = getattr(response, "status_code", None)
            if status_code in EXPIRED_STATUS_CODES:
                raise PushSubscriptionExpiredError(
                    f"Push endpoint gone ({status_code})", status_code=status_code
                ) from exc
            raise PushDeliveryError(str(exc), status_code=status_code) from exc


def is_expired_error(exc: BaseException) -> bool:
    """Return ``True`` when ``exc`` signals a permanently invalid endpoint."""

    if isinstance(exc, PushSubscriptionExpiredError):
        return True
    return getattr(exc, "status_code", None) in EXPIRED_STATUS_CODES


__all__ = [
    "EXPIRED_STATUS_CODES",
    "PushDeliveryError",
    "PushSender",
    "PushSubscriptionExpiredError",
    "WebPushSender",
    "is_expired_error",
]

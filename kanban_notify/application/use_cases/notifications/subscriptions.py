"""Use cases for registering browser push subscriptions."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from kanban_notify.domain.entities import PushSubscription
from kanban_notify.infrastructure.repositories import PushSubscriptionRepository

logger = logging.getLogger(__name__)


def subscribe(
    session: Session,
    *,
    user_id: str,
    endpoint: str | None,
    p256dh: str | None,
    auth: str | None,
) -> PushSubscription:
    """Store the subscription, replacing the keys of a known endpoint."""

    if not endpoint or not p256dh or not auth:
        raise ValueError("Invalid subscription")
    subscription = PushSubscriptionRepository(session).upsert(
        user_id, endpoint, p256dh=p256dh, auth=auth
    )
    logger.info("Stored push subscription %s for user %s", subscription.id, user_id)
    return subscription


def unsubscribe(session: Session, *, user_id: str, endpoint: str | None) -> int:
    """Remove the caller's subscription for ``endpoint``; unknown endpoints are a no-op."""

    if not endpoint:
        raise ValueError("Endpoint required")
    return PushSubscriptionRepository(session).delete_by_endpoint(user_id, endpoint)


__all__ = ["subscribe", "unsubscribe"]

"""Send one Web Push message to every subscription a user owns."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from anyio import to_thread
from sqlalchemy.orm import Session

from kanban_notify.domain.entities import (
    DeliveryChannel,
    DeliveryOutcome,
    NotificationPreference,
    PushCategory,
    PushSubscription,
    SkipReason,
)
from kanban_notify.infrastructure.push import PushSender, is_expired_error
from kanban_notify.infrastructure.repositories import (
    NotificationPreferenceRepository,
    PushSubscriptionRepository,
)
from kanban_notify.utils import epoch_millis

logger = logging.getLogger(__name__)

DEFAULT_PUSH_URL = "/"
_LOOKUP = object()

SessionFactory = Callable[[], Session]


@dataclass(frozen=True)
class PushMessage:
    title: str
    body: str
    url: str = DEFAULT_PUSH_URL
    tag: str | None = None

    def to_json(self, category: PushCategory) -> str:
        return json.dumps(
            {
                "title": self.title,
                "body": self.body,
                "url": self.url or DEFAULT_PUSH_URL,
                "tag": self.tag or f"{PushCategory(category).value}-{epoch_millis()}",
            }
        )


def load_preference(
    session_factory: SessionFactory, user_id: str
) -> NotificationPreference | None:
    """Read ``user_id``'s preferences; a failed read counts as no row.

    Blocking; async callers run it in a worker thread.
    """

    with session_factory() as session:
        try:
            return NotificationPreferenceRepository(session).get(user_id)
        except Exception:
            logger.exception("Could not read notification preferences for user %s", user_id)
            session.rollback()
            return None


def _list_subscriptions(
    session_factory: SessionFactory, user_id: str
) -> list[PushSubscription]:
    with session_factory() as session:
        return list(PushSubscriptionRepository(session).list_for_user(user_id))


def _prune_subscriptions(session_factory: SessionFactory, subscription_ids: Sequence[int]) -> None:
    with session_factory() as session:
        try:
            PushSubscriptionRepository(session).delete_many(subscription_ids)
        except Exception:
            logger.exception(
                "Could not prune expired push subscriptions %s", list(subscription_ids)
            )
            session.rollback()


async def deliver_push(
    session_factory: SessionFactory,
    sender: PushSender,
    *,
    user_id: str,
    message: PushMessage,
    category: PushCategory = PushCategory.NOTIFICATION,
    preference: NotificationPreference | None | object = _LOOKUP,
) -> DeliveryOutcome:
    """Deliver ``message`` to all of ``user_id``'s subscriptions.

    Every subscription is attempted concurrently and the call waits for all of
    them to settle. Subscriptions answering 404/410 are removed afterwards in
    a single batch. Pass ``preference`` when the caller already read it.
    Database work and sends run in worker threads, never on the event loop.
    """

    if preference is _LOOKUP:
        preference = await to_thread.run_sync(load_preference, session_factory, user_id)
    if preference is not None and not preference.push_enabled(category):
        logger.info("Push %s disabled for user %s", category.value, user_id)
        return DeliveryOutcome.skipped(
            user_id, DeliveryChannel.PUSH, SkipReason.PREFERENCE_DISABLED
        )

    subscriptions = await to_thread.run_sync(_list_subscriptions, session_factory, user_id)
    if not subscriptions:
        logger.info("No push subscriptions for user %s", user_id)
        return DeliveryOutcome.skipped(
            user_id, DeliveryChannel.PUSH, SkipReason.NO_SUBSCRIPTIONS
        )

    payload = message.to_json(category)
    results = await asyncio.gather(
        *(
            to_thread.run_sync(sender.send, subscription, payload)
            for subscription in subscriptions
        ),
        return_exceptions=True,
    )

    sent = 0
    expired: list[int] = []
    errors: list[str] = []
    for subscription, result in zip(subscriptions, results):
        if not isinstance(result, BaseException):
            sent += 1
            continue
        if is_expired_error(result):
            expired.append(subscription.id)
            logger.info(
                "Push subscription %s for user %s expired", subscription.id, user_id
            )
        else:
            errors.append(str(result) or result.__class__.__name__)
            logger.warning(
                "Push to subscription %s for user %s failed: %s",
                subscription.id,
                user_id,
                result,
            )

    if expired:
        await to_thread.run_sync(_prune_subscriptions, session_factory, expired)

    if sent:
        return DeliveryOutcome.sent(user_id, DeliveryChannel.PUSH, sent_count=sent)
    if errors:
        return DeliveryOutcome.failed(user_id, DeliveryChannel.PUSH, "; ".join(errors))
    return DeliveryOutcome.failed(
        user_id, DeliveryChannel.PUSH, "All push subscriptions expired"
    )


__all__ = [
    "DEFAULT_PUSH_URL",
    "PushMessage",
    "SessionFactory",
    "deliver_push",
    "load_preference",
]

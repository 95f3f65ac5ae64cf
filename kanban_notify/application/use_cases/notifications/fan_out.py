"""Deliver one notification event to its recipients over every channel."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable

from anyio import to_thread
from sqlalchemy.orm import Session

from kanban_notify.config import get_settings
from kanban_notify.domain.entities import (
    DeliveryChannel,
    DeliveryOutcome,
    FanOutReport,
    Notification,
    NotificationEvent,
    NotificationPreference,
    RecipientCandidate,
    RecipientRole,
    SkipReason,
)
from kanban_notify.infrastructure.email import EmailSender
from kanban_notify.infrastructure.email_templates import (
    render_email,
    render_short,
    task_path,
)
from kanban_notify.infrastructure.notifications import NotificationPublisher
from kanban_notify.infrastructure.push import PushSender
from kanban_notify.infrastructure.repositories import NotificationRepository, UserRepository
from kanban_notify.utils import now_in_app_timezone

from .push_delivery import PushMessage, deliver_push, load_preference

logger = logging.getLogger(__name__)

ALL_CHANNELS = (DeliveryChannel.IN_APP, DeliveryChannel.EMAIL, DeliveryChannel.PUSH)
EXTERNAL_CHANNELS = (DeliveryChannel.EMAIL, DeliveryChannel.PUSH)


def dedupe_recipients(
    recipients: Iterable[RecipientCandidate],
) -> tuple[list[RecipientCandidate], list[RecipientCandidate]]:
    """Split ``recipients`` into unique candidates and dropped duplicates.

    The first occurrence of a user id wins, so its role is the one kept.
    """

    unique: list[RecipientCandidate] = []
    duplicates: list[RecipientCandidate] = []
    seen: set[str] = set()
    for candidate in recipients:
        if candidate.user_id in seen:
            duplicates.append(candidate)
            continue
        seen.add(candidate.user_id)
        unique.append(candidate)
    return unique, duplicates


def _skipped_everywhere(
    user_id: str, reason: SkipReason, channels: Iterable[DeliveryChannel]
) -> list[DeliveryOutcome]:
    return [DeliveryOutcome.skipped(user_id, channel, reason) for channel in channels]


class NotificationFanOut:
    """Fan events out to in-app, email and push for each recipient.

    Every recipient is handled independently and every channel inside a
    recipient is independent: a failure is recorded as a ``failed`` outcome
    and logged, never raised. Database work runs in worker threads, each
    opening its own session, so a slow query never stalls the event loop.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        email_sender: EmailSender,
        push_sender: PushSender,
        publisher: NotificationPublisher | None = None,
        app_url: str | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._email_sender = email_sender
        self._push_sender = push_sender
        self._publisher = publisher
        self._app_url = app_url or get_settings().app_url
        self._pending: set[asyncio.Task[FanOutReport]] = set()

    def dispatch(
        self, event: NotificationEvent, recipients: Iterable[RecipientCandidate]
    ) -> asyncio.Task[FanOutReport]:
        """Start fanning out ``event`` and return a handle to the running work.

        Must be called from a running event loop. Callers may await the handle
        to observe the report or drop it; the work keeps running either way.
        """

        task = asyncio.get_running_loop().create_task(self.fan_out(event, list(recipients)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait until every dispatched fan-out has settled."""

        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def fan_out(
        self, event: NotificationEvent, recipients: Iterable[RecipientCandidate]
    ) -> FanOutReport:
        report = FanOutReport(event_type=event.type)
        unique, duplicates = dedupe_recipients(recipients)
        for candidate in duplicates:
            logger.info(
                "Skipping duplicate recipient %s for %s on task %s",
                candidate.user_id,
                event.type.value,
                event.subject_id,
            )
            report.extend(_skipped_everywhere(candidate.user_id, SkipReason.DUPLICATE, ALL_CHANNELS))

        results = await asyncio.gather(
            *(self._deliver_to(event, candidate) for candidate in unique),
            return_exceptions=True,
        )
        for candidate, result in zip(unique, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Fan-out of %s to user %s failed: %s",
                    event.type.value,
                    candidate.user_id,
                    result,
                )
                report.extend(
                    [
                        DeliveryOutcome.failed(candidate.user_id, channel, str(result))
                        for channel in ALL_CHANNELS
                    ]
                )
            else:
                report.extend(result)
        return report

    async def deliver_external(
        self, event: NotificationEvent, recipient_id: str
    ) -> FanOutReport:
        """Run only the email and push channels for a single recipient."""

        report = FanOutReport(event_type=event.type)
        if recipient_id == event.actor_id:
            logger.info("Skipping %s for actor %s", event.type.value, recipient_id)
            report.extend(_skipped_everywhere(recipient_id, SkipReason.SELF, EXTERNAL_CHANNELS))
            return report

        preference = await to_thread.run_sync(
            load_preference, self._session_factory, recipient_id
        )
        report.extend(await self._deliver_external(event, recipient_id, None, preference))
        return report

    async def _deliver_to(
        self, event: NotificationEvent, candidate: RecipientCandidate
    ) -> list[DeliveryOutcome]:
        user_id = candidate.user_id
        if user_id == event.actor_id:
            logger.info("Skipping %s for actor %s", event.type.value, user_id)
            return _skipped_everywhere(user_id, SkipReason.SELF, ALL_CHANNELS)

        outcomes = [await self._deliver_in_app(event, user_id, candidate.role)]
        preference = await to_thread.run_sync(load_preference, self._session_factory, user_id)
        outcomes.extend(
            await self._deliver_external(event, user_id, candidate.role, preference)
        )
        return outcomes

    async def _deliver_external(
        self,
        event: NotificationEvent,
        user_id: str,
        role: RecipientRole | None,
        preference: NotificationPreference | None,
    ) -> list[DeliveryOutcome]:
        email, push = await asyncio.gather(
            self._deliver_email(event, user_id, role, preference),
            self._deliver_push(event, user_id, preference),
        )
        return [email, push]

    def _store_in_app(
        self, event: NotificationEvent, user_id: str, role: RecipientRole | None
    ) -> Notification:
        rendered = render_short(event)
        payload = event.to_payload()
        if role is not None:
            payload["role"] = role.value
        notification = Notification(
            id=None,
            user_id=user_id,
            event_type=event.type.value,
            title=rendered.subject,
            message=rendered.body,
            payload=payload,
            created_at=now_in_app_timezone(),
            read_at=None,
        )
        with self._session_factory() as session:
            try:
                return NotificationRepository(session).create(notification)
            except Exception:
                session.rollback()
                raise

    async def _deliver_in_app(
        self, event: NotificationEvent, user_id: str, role: RecipientRole | None
    ) -> DeliveryOutcome:
        try:
            saved = await to_thread.run_sync(self._store_in_app, event, user_id, role)
        except Exception as exc:
            logger.exception(
                "Could not store %s notification for user %s", event.type.value, user_id
            )
            return DeliveryOutcome.failed(user_id, DeliveryChannel.IN_APP, str(exc))

        if self._publisher is not None:
            try:
                self._publisher.dispatch(saved)
            except Exception:
                logger.exception("Could not publish notification %s", saved.id)
        return DeliveryOutcome.sent(user_id, DeliveryChannel.IN_APP)

    def _email_address(self, user_id: str) -> str | None:
        with self._session_factory() as session:
            user = UserRepository(session).get(user_id)
        return user.email if user is not None else None

    async def _deliver_email(
        self,
        event: NotificationEvent,
        user_id: str,
        role: RecipientRole | None,
        preference: NotificationPreference | None,
    ) -> DeliveryOutcome:
        if preference is not None and not preference.email_enabled(event.type):
            logger.info("Email %s disabled for user %s", event.type.value, user_id)
            return DeliveryOutcome.skipped(
                user_id, DeliveryChannel.EMAIL, SkipReason.PREFERENCE_DISABLED
            )

        try:
            address = await to_thread.run_sync(self._email_address, user_id)
            if not address:
                logger.warning("No email address for user %s", user_id)
                return DeliveryOutcome.failed(
                    user_id, DeliveryChannel.EMAIL, "Recipient not found"
                )
            rendered = render_email(event, app_url=self._app_url, role=role)
            result = await to_thread.run_sync(
                self._email_sender.send, address, rendered.subject, rendered.body
            )
        except Exception as exc:
            logger.exception("Email %s to user %s failed", event.type.value, user_id)
            return DeliveryOutcome.failed(user_id, DeliveryChannel.EMAIL, str(exc))

        if not result.success:
            logger.warning(
                "Email %s to user %s failed: %s", event.type.value, user_id, result.error
            )
            return DeliveryOutcome.failed(
                user_id, DeliveryChannel.EMAIL, result.error or "Email delivery failed"
            )
        return DeliveryOutcome.sent(user_id, DeliveryChannel.EMAIL)

    async def _deliver_push(
        self,
        event: NotificationEvent,
        user_id: str,
        preference: NotificationPreference | None,
    ) -> DeliveryOutcome:
        rendered = render_short(event)
        message = PushMessage(
            title=rendered.subject,
            body=rendered.body,
            url=task_path(event.board_id, event.subject_id),
        )
        try:
            return await deliver_push(
                self._session_factory,
                self._push_sender,
                user_id=user_id,
                message=message,
                category=event.push_category,
                preference=preference,
            )
        except Exception as exc:
            logger.exception("Push %s to user %s failed", event.type.value, user_id)
            return DeliveryOutcome.failed(user_id, DeliveryChannel.PUSH, str(exc))


__all__ = [
    "ALL_CHANNELS",
    "EXTERNAL_CHANNELS",
    "NotificationFanOut",
    "dedupe_recipients",
]

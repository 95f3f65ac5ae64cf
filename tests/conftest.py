"""Shared fixtures: a throwaway SQLite database and in-memory delivery adapters."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

_DB_DIR = Path(tempfile.mkdtemp(prefix="kanban-notify-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'test.db'}"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("APP_URL", "https://boards.example.com")
os.environ.pop("SENDGRID_API_KEY", None)
os.environ.pop("SENDGRID_SENDER", None)

import pytest  # noqa: E402

from kanban_notify.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from kanban_notify.domain.entities import PushSubscription, User  # noqa: E402
from kanban_notify.infrastructure.database import (  # noqa: E402
    Base,
    SessionLocal,
    engine,
    initialize_database,
)
from kanban_notify.infrastructure.email import EmailDeliveryResult  # noqa: E402
from kanban_notify.infrastructure.push import (  # noqa: E402
    PushDeliveryError,
    PushSubscriptionExpiredError,
)
from kanban_notify.infrastructure.repositories import UserRepository  # noqa: E402


class RecordingEmailSender:
    """Email adapter that records messages instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.result = EmailDeliveryResult(success=True)
        self.error: Exception | None = None

    def send(self, recipient_email: str, subject: str, body: str) -> EmailDeliveryResult:
        if self.error is not None:
            raise self.error
        self.sent.append((recipient_email, subject, body))
        return self.result


class RecordingPushSender:
    """Push adapter whose behaviour is configured per endpoint."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.status_by_endpoint: dict[str, int] = {}

    def send(self, subscription: PushSubscription, payload: str) -> None:
        status_code = self.status_by_endpoint.get(subscription.endpoint)
        if status_code in (404, 410):
            raise PushSubscriptionExpiredError("gone", status_code=status_code)
        if status_code is not None:
            raise PushDeliveryError(f"push service returned {status_code}", status_code=status_code)
        self.sent.append((subscription.endpoint, payload))


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def session_factory():
    """Recreate every table and return the session factory bound to it."""

    Base.metadata.drop_all(bind=engine)
    initialize_database()
    yield SessionLocal


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(session_factory):
    def _make_user(user_id: str, name: str, *, email: str | None = None, custom_name: str | None = None) -> User:
        with session_factory() as session:
            return UserRepository(session).create(
                User(
                    id=user_id,
                    name=name,
                    email=email if email is not None else f"{user_id}@example.com",
                    custom_name=custom_name,
                )
            )

    return _make_user


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def push_sender() -> RecordingPushSender:
    return RecordingPushSender()

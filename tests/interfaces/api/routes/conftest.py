from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from kanban_notify.infrastructure.security import create_access_token
from kanban_notify.main import create_app


@pytest.fixture
def app(session_factory, email_sender, push_sender):
    return create_app(
        email_sender=email_sender,
        push_sender=push_sender,
        session_factory=session_factory,
    )


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers

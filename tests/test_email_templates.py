"""Tests for email and short-message rendering."""

from __future__ import annotations

import pytest

from kanban_notify.domain.entities import NotificationEvent, NotificationEventType, RecipientRole
from kanban_notify.infrastructure.email_templates import render_email, render_short


def _event(event_type: NotificationEventType, **metadata) -> NotificationEvent:
    return NotificationEvent(
        type=event_type,
        subject_id="t1",
        subject_title="Fix <login>",
        board_id="b1",
        actor_id="u1",
        metadata=metadata,
    )


@pytest.mark.parametrize("event_type", list(NotificationEventType))
def test_every_type_has_an_email(event_type: NotificationEventType) -> None:
    rendered = render_email(_event(event_type), app_url="https://boards.example.com/")

    assert rendered.subject.endswith("Fix <login>")
    assert "https://boards.example.com/board/b1?task=t1" in rendered.body


def test_email_escapes_user_content() -> None:
    rendered = render_email(
        _event(NotificationEventType.NEW_COMMENT, commenter_name="Eve", comment_preview="<script>x</script>"),
        app_url="https://boards.example.com",
    )

    assert "<script>" not in rendered.body
    assert "&lt;script&gt;" in rendered.body
    assert "Fix &lt;login&gt;" in rendered.body
    assert "Board: Board" in rendered.body


def test_status_email_shows_transition() -> None:
    rendered = render_email(
        _event(NotificationEventType.STATUS_CHANGED, old_status="todo", new_status="done"),
        app_url="https://boards.example.com",
    )

    assert "todo &rarr; done" in rendered.body


def test_short_message_fills_missing_values() -> None:
    rendered = render_short(_event(NotificationEventType.PRIORITY_CHANGED, new_priority="high"))

    assert rendered.subject == "Priority changed: Fix <login>"
    assert rendered.body == '"Fix <login>" priority changed from Unknown to high'


def test_email_explains_recipient_role() -> None:
    event = _event(NotificationEventType.MENTION, mentioner_name="Ana")

    mentioned = render_email(event, app_url="https://boards.example.com", role=RecipientRole.MENTIONED)
    anonymous = render_email(event, app_url="https://boards.example.com")

    assert "You are receiving this because you were mentioned." in mentioned.body
    assert "You are receiving this because" not in anonymous.body

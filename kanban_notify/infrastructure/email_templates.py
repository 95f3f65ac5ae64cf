"""Subjects and HTML bodies for notification emails."""

from __future__ import annotations

from dataclasses import dataclass
from html import escape
from typing import Callable, Mapping

from kanban_notify.domain.entities import NotificationEvent, NotificationEventType, RecipientRole

DEFAULT_BOARD_NAME = "Board"
UNKNOWN_VALUE = "Unknown"
DEFAULT_ACTOR_NAME = "Someone"


@dataclass(frozen=True)
class RenderedMessage:
    """Text of a notification rendered for one channel."""

    subject: str
    body: str


def task_path(board_id: str, task_id: str) -> str:
    return f"/board/{board_id}?task={task_id}"


def task_url(app_url: str, board_id: str, task_id: str) -> str:
    return f"{app_url.rstrip('/')}{task_path(board_id, task_id)}"


_SUBJECTS: Mapping[NotificationEventType, str] = {
    NotificationEventType.TASK_ASSIGNED: "You were assigned a task: {title}",
    NotificationEventType.TASK_UNASSIGNED: "You were removed from a task: {title}",
    NotificationEventType.STATUS_CHANGED: "Status changed: {title}",
    NotificationEventType.PRIORITY_CHANGED: "Priority changed: {title}",
    NotificationEventType.NEW_COMMENT: "New comment: {title}",
    NotificationEventType.DUE_DATE_CHANGED: "Due date changed: {title}",
    NotificationEventType.COLLABORATOR_ADDED: "You were added as a collaborator: {title}",
    NotificationEventType.COLLABORATOR_REMOVED: "You were removed as a collaborator: {title}",
    NotificationEventType.MENTION: "You were mentioned in a task: {title}",
    NotificationEventType.NEW_SUBMISSION: "New submission: {title}",
}


def render_subject(event: NotificationEvent) -> str:
    template = _SUBJECTS.get(event.type, "Notification: {title}")
    return template.format(title=event.subject_title)


def _meta(event: NotificationEvent, key: str, default: str = UNKNOWN_VALUE) -> str:
    return escape(event.metadata.get(key) or default)


_ROLE_REASONS: Mapping[RecipientRole, str] = {
    RecipientRole.ASSIGNEE: "You are receiving this because you are assigned to this task.",
    RecipientRole.CREATOR: "You are receiving this because you created this task.",
    RecipientRole.COLLABORATOR: "You are receiving this because you collaborate on this task.",
    RecipientRole.MENTIONED: "You are receiving this because you were mentioned.",
}


def _wrap_html(heading: str, content: str, link: str, reason: str = "") -> str:
    return "".join(
        (
            "<!DOCTYPE html><html><body>",
            f"<h1>{heading}</h1>",
            content,
            f"<p><em>{escape(reason)}</em></p>" if reason else "",
            f'<p><a href="{escape(link, quote=True)}">Open task</a></p>',
            "<hr>",
            "<p>This message was generated automatically. "
            "You can manage notification preferences in your settings.</p>",
            "</body></html>",
        )
    )


def _card(event: NotificationEvent, *extra: str) -> str:
    board_name = escape(event.board_name or DEFAULT_BOARD_NAME)
    return "".join(
        (
            f"<p><strong>{escape(event.subject_title)}</strong></p>",
            f"<p>Board: {board_name}</p>",
            *extra,
        )
    )


def _by(event: NotificationEvent, key: str, label: str) -> str:
    name = event.metadata.get(key)
    return f"<p>{label} {escape(name)}</p>" if name else ""


def _task_assigned(event: NotificationEvent) -> tuple[str, str]:
    return "A new task was assigned to you", _card(event, _by(event, "assigner_name", "Assigned by"))


def _task_unassigned(event: NotificationEvent) -> tuple[str, str]:
    return "You were removed from a task", _card(
        event,
        _by(event, "unassigner_name", "Removed by"),
        "<p>You are no longer assigned to this task. You can still follow it on the board.</p>",
    )


def _status_changed(event: NotificationEvent) -> tuple[str, str]:
    return "Task status changed", _card(
        event,
        f"<p>{_meta(event, 'old_status')} &rarr; {_meta(event, 'new_status')}</p>",
    )


def _priority_changed(event: NotificationEvent) -> tuple[str, str]:
    return "Task priority changed", _card(
        event,
        f"<p>{_meta(event, 'old_priority')} &rarr; {_meta(event, 'new_priority')}</p>",
    )


def _new_comment(event: NotificationEvent) -> tuple[str, str]:
    preview = escape(event.metadata.get("comment_preview") or "")
    return "New comment on a task", _card(
        event,
        f"<p>{_meta(event, 'commenter_name', 'A user')} wrote:</p>",
        f"<blockquote>{preview}</blockquote>",
    )


def _due_date_changed(event: NotificationEvent) -> tuple[str, str]:
    return "Task due date changed", _card(
        event, f"<p>New due date: {_meta(event, 'new_due_date')}</p>"
    )


def _collaborator_added(event: NotificationEvent) -> tuple[str, str]:
    return "You were added as a collaborator", _card(event, _by(event, "adder_name", "Added by"))


def _collaborator_removed(event: NotificationEvent) -> tuple[str, str]:
    return "You were removed as a collaborator", _card(
        event, _by(event, "remover_name", "Removed by")
    )


def _mention(event: NotificationEvent) -> tuple[str, str]:
    preview = event.metadata.get("comment_preview")
    return "You were mentioned", _card(
        event,
        _by(event, "mentioner_name", "Mentioned by"),
        f"<blockquote>{escape(preview)}</blockquote>" if preview else "",
    )


def _new_submission(event: NotificationEvent) -> tuple[str, str]:
    description = event.metadata.get("submission_description")
    return "New submission received", _card(
        event,
        _by(event, "client_name", "Submitted by"),
        f"<blockquote>{escape(description)}</blockquote>" if description else "",
    )


_BODIES: Mapping[NotificationEventType, Callable[[NotificationEvent], tuple[str, str]]] = {
    NotificationEventType.TASK_ASSIGNED: _task_assigned,
    NotificationEventType.TASK_UNASSIGNED: _task_unassigned,
    NotificationEventType.STATUS_CHANGED: _status_changed,
    NotificationEventType.PRIORITY_CHANGED: _priority_changed,
    NotificationEventType.NEW_COMMENT: _new_comment,
    NotificationEventType.DUE_DATE_CHANGED: _due_date_changed,
    NotificationEventType.COLLABORATOR_ADDED: _collaborator_added,
    NotificationEventType.COLLABORATOR_REMOVED: _collaborator_removed,
    NotificationEventType.MENTION: _mention,
    NotificationEventType.NEW_SUBMISSION: _new_submission,
}


def render_email(
    event: NotificationEvent, *, app_url: str, role: RecipientRole | None = None
) -> RenderedMessage:
    """Render the email for ``event``.

    ``role`` adds a line telling the recipient why they got the message.

    Raises ``ValueError`` for event types without a template.
    """

    builder = _BODIES.get(event.type)
    if builder is None:
        raise ValueError("Unknown notification type")
    heading, content = builder(event)
    link = task_url(app_url, event.board_id, event.subject_id)
    return RenderedMessage(
        subject=render_subject(event),
        body=_wrap_html(heading, content, link, _ROLE_REASONS.get(role, "")),
    )


_SHORT_MESSAGES: Mapping[NotificationEventType, str] = {
    NotificationEventType.TASK_ASSIGNED: "You've been assigned to \"{title}\"",
    NotificationEventType.TASK_UNASSIGNED: "You've been unassigned from \"{title}\"",
    NotificationEventType.STATUS_CHANGED: "\"{title}\" moved from {old_status} to {new_status}",
    NotificationEventType.PRIORITY_CHANGED: "\"{title}\" priority changed from {old_priority} to {new_priority}",
    NotificationEventType.NEW_COMMENT: "{commenter_name} commented on \"{title}\"",
    NotificationEventType.DUE_DATE_CHANGED: "\"{title}\" is now due {new_due_date}",
    NotificationEventType.COLLABORATOR_ADDED: "You've been added as a collaborator on \"{title}\"",
    NotificationEventType.COLLABORATOR_REMOVED: "You've been removed as a collaborator on \"{title}\"",
    NotificationEventType.MENTION: "{mentioner_name} mentioned you in \"{title}\"",
    NotificationEventType.NEW_SUBMISSION: "New submission on \"{title}\"",
}


class _MetadataDefaults(dict):
    def __missing__(self, key: str) -> str:
        return UNKNOWN_VALUE


def render_short(event: NotificationEvent) -> RenderedMessage:
    """Plain-text title and one-line message for in-app and push delivery."""

    values = _MetadataDefaults(event.metadata)
    values["title"] = event.subject_title
    message = _SHORT_MESSAGES.get(event.type, "{title}").format_map(values)
    return RenderedMessage(subject=render_subject(event), body=message)


__all__ = [
    "RenderedMessage",
    "render_email",
    "render_short",
    "render_subject",
    "task_path",
    "task_url",
]

"""Utility helpers for sending transactional email notifications via SendGrid."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from kanban_notify.config import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailDeliveryResult:
    """Outcome reported by an email transport."""

    success: bool
    error: str | None = None


class EmailSender(Protocol):
    def send(self, recipient_email: str, subject: str, body: str) -> EmailDeliveryResult:
        ...


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages: list[str] = []
            for item in errors:
                if not isinstance(item, dict):
                    continue
                message = item.get("message")
                help_link = item.get("help")
                if message and help_link:
                    messages.append(f"{message} (help: {help_link})")
                elif message:
                    messages.append(str(message))
            if messages:
                return "; ".join(messages)
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    if isinstance(parsed, list):
        return "; ".join(str(item) for item in parsed)

    return None


def _describe_failure(status_code: Any, details: str | None) -> str:
    if status_code and details:
        return f"SendGrid request failed with status {status_code}: {details}"
    if status_code:
        return f"SendGrid request failed with status {status_code}"
    if details:
        return f"SendGrid request failed: {details}"
    return "SendGrid request failed"


def send_email(recipient: str, subject: str, html_content: str) -> EmailDeliveryResult:
    """Send an email using the configured SendGrid credentials."""

    settings = get_settings()
    if not (settings.sendgrid_api_key and settings.sendgrid_sender):
        logger.info("SendGrid configuration incomplete; skipping email delivery")
        return EmailDeliveryResult(success=False, error="Email delivery is not configured")

    message = Mail(
        from_email=settings.sendgrid_sender,
        to_emails=recipient,
        subject=subject,
        html_content=html_content,
    )

    try:
        client = SendGridAPIClient(settings.sendgrid_api_key)
        response = client.send(message)
    except Exception as exc:  # pragma: no cover - network failures depend on environment
        description = _describe_failure(
            getattr(exc, "status_code", None),
            _extract_sendgrid_error_details(getattr(exc, "body", None)),
        )
        if description == "SendGrid request failed":
            logger.exception("Error sending email via SendGrid: %s", exc)
            description = f"{description}: {exc}"
        else:
            logger.error(description)
        return EmailDeliveryResult(success=False, error=description)

    status_code = getattr(response, "status_code", None)
    if not isinstance(status_code, int) or not 200 <= status_code < 300:
        description = _describe_failure(
            status_code, _extract_sendgrid_error_details(getattr(response, "body", None))
        )
        logger.error(description)
        return EmailDeliveryResult(success=False, error=description)

    return EmailDeliveryResult(success=True)


class SendGridEmailSender:
    """:class:`EmailSender` backed by :func:`send_email`."""

    def send(self, recipient_email: str, subject: str, body: str) -> EmailDeliveryResult:
        return send_email(recipient_email, subject, body)


__all__ = [
    "EmailDeliveryResult",
    "EmailSender",
    "SendGridEmailSender",
    "send_email",
]

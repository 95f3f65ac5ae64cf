"""Turn task mutations into notification events and recipient candidates.

Everything here is pure: no database access and no delivery. Malformed input
never raises; the offending event is dropped and a warning is logged.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from kanban_notify.domain.entities import (
    NotificationEvent,
    NotificationEventType,
    RecipientCandidate,
    RecipientRole,
    TaskSnapshot,
    User,
)

logger = logging.getLogger(__name__)

MENTION_PATTERN = re.compile(r"@\{([^}]+)\}")
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

UNKNOWN_VALUE = "Unknown"
NO_DUE_DATE = "No due date"
COMMENT_PREVIEW_LENGTH = 200

REQUIRED_METADATA: Mapping[NotificationEventType, tuple[str, ...]] = {
    NotificationEventType.STATUS_CHANGED: ("old_status", "new_status"),
    NotificationEventType.PRIORITY_CHANGED: ("old_priority", "new_priority"),
    NotificationEventType.DUE_DATE_CHANGED: ("new_due_date",),
    NotificationEventType.NEW_COMMENT: ("commenter_name",),
    NotificationEventType.MENTION: ("mentioner_name",),
}


@dataclass(frozen=True)
class ClassifiedEvent:
    """An event together with the raw candidates that may receive it."""

    event: NotificationEvent
    recipients: tuple[RecipientCandidate, ...]


def normalize_metadata(metadata: Mapping[str, object] | None) -> dict[str, str]:
    """Return ``metadata`` with snake_case keys and string values.

    ``None`` values are dropped so that a missing value and an explicit null
    are treated the same by validation.
    """

    normalized: dict[str, str] = {}
    for key, value in (metadata or {}).items():
        if value is None:
            continue
        normalized[_CAMEL_BOUNDARY.sub("_", str(key)).lower()] = str(value)
    return normalized


def build_event(
    event_type: NotificationEventType | str,
    *,
    subject_id: str | None,
    subject_title: str | None,
    board_id: str | None,
    actor_id: str | None,
    board_name: str | None = None,
    metadata: Mapping[str, object] | None = None,
) -> NotificationEvent | None:
    """Validate the inputs and build an event, or return ``None``."""

    try:
        resolved_type = NotificationEventType(event_type)
    except ValueError:
        logger.warning("Dropping notification with unknown type %r", event_type)
        return None

    missing = [
        name
        for name, value in (
            ("subject_id", subject_id),
            ("subject_title", subject_title),
            ("board_id", board_id),
            ("actor_id", actor_id),
        )
        if not value
    ]
    normalized = normalize_metadata(metadata)
    missing.extend(
        f"metadata.{key}"
        for key in REQUIRED_METADATA.get(resolved_type, ())
        if not normalized.get(key)
    )
    if missing:
        logger.warning(
            "Dropping %s notification for %s: missing %s",
            resolved_type.value,
            subject_id or "<unknown subject>",
            ", ".join(missing),
        )
        return None

    return NotificationEvent(
        type=resolved_type,
        subject_id=str(subject_id),
        subject_title=str(subject_title),
        board_id=str(board_id),
        actor_id=str(actor_id),
        board_name=board_name,
        metadata=normalized,
    )


def stakeholder_recipients(
    event_type: NotificationEventType,
    *,
    assignee_id: str | None,
    creator_id: str | None,
    actor_id: str,
) -> list[RecipientCandidate]:
    """Recipients derived from the task's assignee and creator.

    Status changes go to the assignee plus a distinct creator; the actor is
    left in and suppressed during fan-out. Every other type drops the actor.
    """

    candidates: list[RecipientCandidate] = []
    if event_type is NotificationEventType.STATUS_CHANGED:
        if assignee_id:
            candidates.append(RecipientCandidate(assignee_id, RecipientRole.ASSIGNEE))
        if creator_id and creator_id != assignee_id:
            candidates.append(RecipientCandidate(creator_id, RecipientRole.CREATOR))
        return candidates

    if assignee_id and assignee_id != actor_id:
        candidates.append(RecipientCandidate(assignee_id, RecipientRole.ASSIGNEE))
    if creator_id and creator_id != actor_id and creator_id != assignee_id:
        candidates.append(RecipientCandidate(creator_id, RecipientRole.CREATOR))
    return candidates


def extract_mentioned_user_ids(text: str, users: Iterable[User]) -> list[str]:
    """Resolve ``@{Name}`` tokens in ``text`` to user ids.

    A token matches a user whose custom name or name is equal to it, ignoring
    case. Tokens that match nobody, and bare ``@Name`` words, are ignored.
    """

    candidates = list(users)
    mentioned: list[str] = []
    for match in MENTION_PATTERN.finditer(text or ""):
        wanted = match.group(1).lower()
        for user in candidates:
            if (user.custom_name and user.custom_name.lower() == wanted) or (
                user.name and user.name.lower() == wanted
            ):
                if user.id not in mentioned:
                    mentioned.append(user.id)
                break
    return mentioned


def _classified(
    event: NotificationEvent | None, recipients: Sequence[RecipientCandidate]
) -> list[ClassifiedEvent]:
    if event is None or not recipients:
        return []
    return [ClassifiedEvent(event=event, recipients=tuple(recipients))]


def _task_event(
    task: TaskSnapshot,
    event_type: NotificationEventType,
    actor_id: str,
    metadata: Mapping[str, object],
) -> NotificationEvent | None:
    return build_event(
        event_type,
        subject_id=task.id,
        subject_title=task.title,
        board_id=task.board_id,
        board_name=task.board_name,
        actor_id=actor_id,
        metadata=metadata,
    )


def classify_task_change(
    before: TaskSnapshot | None,
    after: TaskSnapshot,
    *,
    actor_id: str,
    actor_name: str | None = None,
) -> list[ClassifiedEvent]:
    """Compare two snapshots of a task and describe who should hear about it.

    ``before`` is ``None`` for a newly created task.
    """

    results: list[ClassifiedEvent] = []
    actor_meta = {"actor_name": actor_name}

    previous_assignee = before.assignee_id if before else None
    if after.assignee_id != previous_assignee:
        if after.assignee_id:
            event_type = NotificationEventType.TASK_ASSIGNED
            results += _classified(
                _task_event(after, event_type, actor_id, {**actor_meta, "assigner_name": actor_name}),
                stakeholder_recipients(
                    event_type,
                    assignee_id=after.assignee_id,
                    creator_id=after.creator_id,
                    actor_id=actor_id,
                ),
            )
        if previous_assignee:
            event_type = NotificationEventType.TASK_UNASSIGNED
            results += _classified(
                _task_event(after, event_type, actor_id, {**actor_meta, "unassigner_name": actor_name}),
                stakeholder_recipients(
                    event_type,
                    assignee_id=previous_assignee,
                    creator_id=after.creator_id,
                    actor_id=actor_id,
                ),
            )

    if before is None:
        return results

    if after.status != before.status:
        event_type = NotificationEventType.STATUS_CHANGED
        results += _classified(
            _task_event(
                after,
                event_type,
                actor_id,
                {
                    **actor_meta,
                    "old_status": before.status or UNKNOWN_VALUE,
                    "new_status": after.status or UNKNOWN_VALUE,
                },
            ),
            stakeholder_recipients(
                event_type,
                assignee_id=after.assignee_id,
                creator_id=after.creator_id,
                actor_id=actor_id,
            ),
        )

    if after.priority != before.priority:
        event_type = NotificationEventType.PRIORITY_CHANGED
        results += _classified(
            _task_event(
                after,
                event_type,
                actor_id,
                {
                    **actor_meta,
                    "old_priority": before.priority or UNKNOWN_VALUE,
                    "new_priority": after.priority or UNKNOWN_VALUE,
                },
            ),
            stakeholder_recipients(
                event_type,
                assignee_id=after.assignee_id,
                creator_id=after.creator_id,
                actor_id=actor_id,
            ),
        )

    if after.due_date != before.due_date:
        event_type = NotificationEventType.DUE_DATE_CHANGED
        results += _classified(
            _task_event(
                after,
                event_type,
                actor_id,
                {**actor_meta, "new_due_date": after.due_date or NO_DUE_DATE},
            ),
            stakeholder_recipients(
                event_type,
                assignee_id=after.assignee_id,
                creator_id=after.creator_id,
                actor_id=actor_id,
            ),
        )

    previous = set(before.collaborator_ids)
    current = set(after.collaborator_ids)
    for user_id in [uid for uid in after.collaborator_ids if uid not in previous]:
        results += _classified(
            _task_event(
                after,
                NotificationEventType.COLLABORATOR_ADDED,
                actor_id,
                {**actor_meta, "adder_name": actor_name},
            ),
            [RecipientCandidate(user_id, RecipientRole.COLLABORATOR)],
        )
    for user_id in [uid for uid in before.collaborator_ids if uid not in current]:
        results += _classified(
            _task_event(
                after,
                NotificationEventType.COLLABORATOR_REMOVED,
                actor_id,
                {**actor_meta, "remover_name": actor_name},
            ),
            [RecipientCandidate(user_id, RecipientRole.COLLABORATOR)],
        )

    return results


def classify_comment(
    task: TaskSnapshot,
    *,
    actor_id: str,
    commenter_name: str,
    text: str,
    users: Iterable[User],
) -> list[ClassifiedEvent]:
    """Events for a new comment: stakeholders hear about it, mentions get pinged."""

    preview = (text or "")[:COMMENT_PREVIEW_LENGTH]
    results = _classified(
        _task_event(
            task,
            NotificationEventType.NEW_COMMENT,
            actor_id,
            {"commenter_name": commenter_name, "comment_preview": preview},
        ),
        stakeholder_recipients(
            NotificationEventType.NEW_COMMENT,
            assignee_id=task.assignee_id,
            creator_id=task.creator_id,
            actor_id=actor_id,
        ),
    )
    mentioned = extract_mentioned_user_ids(text, users)
    results += _classified(
        _task_event(
            task,
            NotificationEventType.MENTION,
            actor_id,
            {"mentioner_name": commenter_name, "comment_preview": preview},
        ),
        [RecipientCandidate(user_id, RecipientRole.MENTIONED) for user_id in mentioned],
    )
    return results


def classify_submission(
    task: TaskSnapshot,
    *,
    actor_id: str,
    client_name: str | None = None,
    description: str | None = None,
) -> list[ClassifiedEvent]:
    """Event for a ticket submitted through the public board form."""

    return _classified(
        _task_event(
            task,
            NotificationEventType.NEW_SUBMISSION,
            actor_id,
            {"client_name": client_name, "submission_description": description},
        ),
        stakeholder_recipients(
            NotificationEventType.NEW_SUBMISSION,
            assignee_id=task.assignee_id,
            creator_id=task.creator_id,
            actor_id=actor_id,
        ),
    )


__all__ = [
    "ClassifiedEvent",
    "MENTION_PATTERN",
    "REQUIRED_METADATA",
    "build_event",
    "classify_comment",
    "classify_submission",
    "classify_task_change",
    "extract_mentioned_user_ids",
    "normalize_metadata",
    "stakeholder_recipients",
]

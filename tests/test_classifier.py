"""Tests for turning task mutations into notification events."""

from __future__ import annotations

import logging

import pytest

from kanban_notify.application.use_cases.notifications import (
    build_event,
    classify_comment,
    classify_submission,
    classify_task_change,
    extract_mentioned_user_ids,
    normalize_metadata,
    stakeholder_recipients,
)
from kanban_notify.domain.entities import (
    NotificationEventType,
    RecipientRole,
    TaskSnapshot,
    User,
)


def _task(**overrides) -> TaskSnapshot:
    values = dict(
        id="t1",
        title="Ship release",
        board_id="b1",
        board_name="Launch",
        assignee_id="u1",
        creator_id="u2",
        status="todo",
        priority="low",
        due_date=None,
        collaborator_ids=(),
    )
    values.update(overrides)
    return TaskSnapshot(**values)


def _ids(classified) -> list[str]:
    return [candidate.user_id for candidate in classified.recipients]


def test_status_change_targets_assignee_and_creator_including_actor() -> None:
    results = classify_task_change(_task(), _task(status="done"), actor_id="u1")

    assert len(results) == 1
    result = results[0]
    assert result.event.type is NotificationEventType.STATUS_CHANGED
    assert result.event.metadata["old_status"] == "todo"
    assert result.event.metadata["new_status"] == "done"
    assert _ids(result) == ["u1", "u2"]
    assert [c.role for c in result.recipients] == [RecipientRole.ASSIGNEE, RecipientRole.CREATOR]


def test_status_change_does_not_repeat_creator_who_is_assignee() -> None:
    before = _task(creator_id="u1")
    results = classify_task_change(before, _task(creator_id="u1", status="done"), actor_id="u3")

    assert _ids(results[0]) == ["u1"]


def test_priority_change_excludes_actor() -> None:
    results = classify_task_change(_task(), _task(priority="high"), actor_id="u2")

    assert len(results) == 1
    assert results[0].event.type is NotificationEventType.PRIORITY_CHANGED
    assert _ids(results[0]) == ["u1"]


def test_change_made_by_only_stakeholder_produces_no_event() -> None:
    before = _task(creator_id="u1")
    after = _task(creator_id="u1", priority="high")

    assert classify_task_change(before, after, actor_id="u1") == []


def test_missing_old_status_falls_back_to_unknown() -> None:
    results = classify_task_change(_task(status=None), _task(status="done"), actor_id="u9")

    assert results[0].event.metadata["old_status"] == "Unknown"


def test_new_task_with_assignee_emits_assignment() -> None:
    results = classify_task_change(None, _task(), actor_id="u2", actor_name="Ana")

    assert [r.event.type for r in results] == [NotificationEventType.TASK_ASSIGNED]
    assert _ids(results[0]) == ["u1"]
    assert results[0].event.metadata["assigner_name"] == "Ana"


def test_reassignment_notifies_new_and_previous_assignee() -> None:
    results = classify_task_change(_task(), _task(assignee_id="u3"), actor_id="u2")

    by_type = {r.event.type: r for r in results}
    assert _ids(by_type[NotificationEventType.TASK_ASSIGNED]) == ["u3"]
    assert _ids(by_type[NotificationEventType.TASK_UNASSIGNED]) == ["u1"]


def test_collaborator_changes_emit_one_event_per_user() -> None:
    before = _task(collaborator_ids=("c1", "c2"))
    after = _task(collaborator_ids=("c2", "c3", "c4"))

    results = classify_task_change(before, after, actor_id="u2")

    added = [r for r in results if r.event.type is NotificationEventType.COLLABORATOR_ADDED]
    removed = [r for r in results if r.event.type is NotificationEventType.COLLABORATOR_REMOVED]
    assert [_ids(r) for r in added] == [["c3"], ["c4"]]
    assert [_ids(r) for r in removed] == [["c1"]]
    assert all(r.recipients[0].role is RecipientRole.COLLABORATOR for r in added + removed)


def test_due_date_cleared_uses_placeholder() -> None:
    results = classify_task_change(_task(due_date="2026-01-01"), _task(), actor_id="u2")

    assert results[0].event.type is NotificationEventType.DUE_DATE_CHANGED
    assert results[0].event.metadata["new_due_date"] == "No due date"


def test_build_event_drops_missing_required_metadata(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        event = build_event(
            NotificationEventType.STATUS_CHANGED,
            subject_id="t1",
            subject_title="Ship release",
            board_id="b1",
            actor_id="u1",
            metadata={"old_status": "todo"},
        )

    assert event is None
    assert "metadata.new_status" in caplog.text


def test_build_event_rejects_unknown_type(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        event = build_event(
            "task_archived",
            subject_id="t1",
            subject_title="Ship release",
            board_id="b1",
            actor_id="u1",
        )

    assert event is None
    assert "task_archived" in caplog.text


def test_build_event_accepts_camel_case_metadata() -> None:
    event = build_event(
        "priority_changed",
        subject_id="t1",
        subject_title="Ship release",
        board_id="b1",
        actor_id="u1",
        metadata={"oldPriority": "low", "newPriority": "high"},
    )

    assert event is not None
    assert event.metadata == {"old_priority": "low", "new_priority": "high"}


def test_event_metadata_is_read_only() -> None:
    event = build_event(
        "new_comment",
        subject_id="t1",
        subject_title="Ship release",
        board_id="b1",
        actor_id="u1",
        metadata={"commenterName": "Ana"},
    )

    with pytest.raises(TypeError):
        event.metadata["commenter_name"] = "Bob"  # type: ignore[index]


def test_normalize_metadata_drops_none_and_stringifies() -> None:
    assert normalize_metadata({"rowCount": 3, "skipped": None}) == {"row_count": "3"}


def test_stakeholder_default_rule_removes_actor() -> None:
    recipients = stakeholder_recipients(
        NotificationEventType.NEW_COMMENT, assignee_id="u1", creator_id="u1", actor_id="u2"
    )

    assert [c.user_id for c in recipients] == ["u1"]


def test_priority_change_notifies_assignee_who_created_task_once() -> None:
    before = _task(assignee_id="u1", creator_id="u1", priority="low")
    after = _task(assignee_id="u1", creator_id="u1", priority="high")

    (classified,) = classify_task_change(before, after, actor_id="u2")

    assert [(c.user_id, c.role) for c in classified.recipients] == [("u1", RecipientRole.ASSIGNEE)]


USERS = [
    User(id="u9", name="Jane Doe", email="jane@example.com"),
    User(id="u7", name="Robert", email="bob@example.com", custom_name="Bob"),
]


def test_mentions_resolve_braced_names_case_insensitively() -> None:
    assert extract_mentioned_user_ids("hi @{Jane Doe}", USERS) == ["u9"]
    assert extract_mentioned_user_ids("ping @{bob} and @{JANE DOE} and @{Bob}", USERS) == ["u7", "u9"]


def test_unmatched_and_legacy_mentions_are_ignored() -> None:
    assert extract_mentioned_user_ids("hi @UnknownName", USERS) == []
    assert extract_mentioned_user_ids("hi @Jane and @{Nobody}", USERS) == []


def test_comment_emits_stakeholder_and_mention_events() -> None:
    results = classify_comment(
        _task(),
        actor_id="u2",
        commenter_name="Ana",
        text="Could @{Jane Doe} take a look?",
        users=USERS,
    )

    by_type = {r.event.type: r for r in results}
    assert _ids(by_type[NotificationEventType.NEW_COMMENT]) == ["u1"]
    mention = by_type[NotificationEventType.MENTION]
    assert _ids(mention) == ["u9"]
    assert mention.recipients[0].role is RecipientRole.MENTIONED
    assert mention.event.metadata["mentioner_name"] == "Ana"


def test_comment_without_mentions_emits_only_comment_event() -> None:
    results = classify_comment(
        _task(), actor_id="u2", commenter_name="Ana", text="Looks good", users=USERS
    )

    assert [r.event.type for r in results] == [NotificationEventType.NEW_COMMENT]


def test_submission_notifies_board_stakeholders() -> None:
    results = classify_submission(
        _task(assignee_id=None, creator_id="u2"),
        actor_id="public-form",
        client_name="Acme",
        description="Printer is on fire",
    )

    (result,) = results
    assert result.event.type is NotificationEventType.NEW_SUBMISSION
    assert _ids(result) == ["u2"]
    assert result.event.metadata["client_name"] == "Acme"

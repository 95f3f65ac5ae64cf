"""Tests for the preference and push subscription stores."""

from __future__ import annotations

from kanban_notify.domain.entities import PREFERENCE_FLAGS
from kanban_notify.infrastructure.repositories import (
    NotificationPreferenceRepository,
    PushSubscriptionRepository,
)


def test_get_or_create_creates_all_enabled_row(db_session) -> None:
    repository = NotificationPreferenceRepository(db_session)

    assert repository.get("u1") is None
    preference = repository.get_or_create("u1")

    assert preference.id is not None
    assert preference.flags == {flag: True for flag in PREFERENCE_FLAGS}
    assert repository.get_or_create("u1").id == preference.id


def test_upsert_applies_partial_flags_and_ignores_unknown(db_session) -> None:
    repository = NotificationPreferenceRepository(db_session)

    repository.upsert("u1", {"email_mention": False, "sms_enabled": False})
    preference = repository.upsert("u1", {"push_enabled": False})

    assert preference.flags["email_mention"] is False
    assert preference.flags["push_enabled"] is False
    assert preference.flags["email_task_assigned"] is True
    assert "sms_enabled" not in preference.flags


def test_subscription_upsert_is_idempotent_per_endpoint(db_session) -> None:
    repository = PushSubscriptionRepository(db_session)

    first = repository.upsert("u1", "https://push/a", p256dh="k1", auth="a1")
    second = repository.upsert("u1", "https://push/a", p256dh="k2", auth="a2")

    subscriptions = repository.list_for_user("u1")
    assert second.id == first.id
    assert len(subscriptions) == 1
    assert subscriptions[0].p256dh == "k2"
    assert subscriptions[0].auth == "a2"


def test_same_endpoint_may_belong_to_different_users(db_session) -> None:
    repository = PushSubscriptionRepository(db_session)

    repository.upsert("u1", "https://push/a", p256dh="k", auth="a")
    repository.upsert("u2", "https://push/a", p256dh="k", auth="a")

    assert len(repository.list_for_user("u1")) == 1
    assert len(repository.list_for_user("u2")) == 1


def test_delete_many_ignores_missing_ids(db_session) -> None:
    repository = PushSubscriptionRepository(db_session)
    kept = repository.upsert("u1", "https://push/a", p256dh="k", auth="a")
    dropped = repository.upsert("u1", "https://push/b", p256dh="k", auth="a")

    assert repository.delete_many([dropped.id, dropped.id, 9999]) == 1
    assert repository.delete_many([dropped.id]) == 0
    assert [s.id for s in repository.list_for_user("u1")] == [kept.id]


def test_delete_by_endpoint_only_touches_owner(db_session) -> None:
    repository = PushSubscriptionRepository(db_session)
    repository.upsert("u1", "https://push/a", p256dh="k", auth="a")
    repository.upsert("u2", "https://push/a", p256dh="k", auth="a")

    assert repository.delete_by_endpoint("u1", "https://push/a") == 1
    assert repository.list_for_user("u1") == []
    assert len(repository.list_for_user("u2")) == 1

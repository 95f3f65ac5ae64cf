"""API tests for push subscription management and direct sends."""

from __future__ import annotations

from kanban_notify.infrastructure.repositories import PushSubscriptionRepository

SUBSCRIPTION = {"endpoint": "https://push/s1", "keys": {"p256dh": "key", "auth": "secret"}}


def test_subscribe_and_unsubscribe(client, make_user, auth_headers, session_factory) -> None:
    make_user("u1", "Uma")
    headers = auth_headers("u1")

    first = client.post("/push/subscribe", json=SUBSCRIPTION, headers=headers)
    again = client.post("/push/subscribe", json=SUBSCRIPTION, headers=headers)

    assert first.status_code == 201
    assert again.json()["id"] == first.json()["id"]

    response = client.request(
        "DELETE", "/push/subscribe", json={"endpoint": "https://push/s1"}, headers=headers
    )
    assert response.status_code == 204
    with session_factory() as session:
        assert PushSubscriptionRepository(session).list_for_user("u1") == []


def test_subscribe_rejects_missing_keys(client, make_user, auth_headers) -> None:
    make_user("u1", "Uma")

    response = client.post(
        "/push/subscribe",
        json={"endpoint": "https://push/s1", "keys": {"p256dh": "key"}},
        headers=auth_headers("u1"),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid subscription"


def test_send_without_subscriptions_is_skipped(client, make_user, auth_headers) -> None:
    make_user("u1", "Uma")
    make_user("u2", "Uri")

    response = client.post(
        "/push/send",
        json={"userId": "u2", "title": "Hello", "body": "there"},
        headers=auth_headers("u1"),
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "skipped": True, "reason": "no_subscriptions"}


def test_send_prunes_expired_subscription(client, make_user, auth_headers, session_factory, push_sender) -> None:
    make_user("u1", "Uma")
    make_user("u2", "Uri")
    with session_factory() as session:
        repository = PushSubscriptionRepository(session)
        repository.upsert("u2", "https://push/s1", p256dh="k", auth="a")
        repository.upsert("u2", "https://push/s2", p256dh="k", auth="a")
    push_sender.status_by_endpoint["https://push/s1"] = 410

    response = client.post(
        "/push/send",
        json={"userId": "u2", "title": "New message", "body": "hey", "type": "chat"},
        headers=auth_headers("u1"),
    )

    assert response.json() == {"success": True, "sent": 1}
    with session_factory() as session:
        remaining = PushSubscriptionRepository(session).list_for_user("u2")
    assert [s.endpoint for s in remaining] == ["https://push/s2"]


def test_send_respects_chat_preference(client, make_user, auth_headers) -> None:
    make_user("u1", "Uma")
    client.put("/users/preferences", json={"push_chat_enabled": False}, headers=auth_headers("u1"))

    response = client.post(
        "/push/send",
        json={"userId": "u1", "title": "New message", "type": "chat"},
        headers=auth_headers("u1"),
    )

    assert response.json() == {"success": True, "skipped": True, "reason": "preference_disabled"}


def test_vapid_public_key(client, monkeypatch) -> None:
    from kanban_notify.interfaces.api.routes import push as push_routes

    class Configured:
        vapid_public_key = "BPublicKey"

    assert client.get("/push/vapid-public-key").status_code == 404

    monkeypatch.setattr(push_routes, "get_settings", lambda: Configured())
    assert client.get("/push/vapid-public-key").json() == {"publicKey": "BPublicKey"}

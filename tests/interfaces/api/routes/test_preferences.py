"""API tests for the notification preference endpoints."""

from __future__ import annotations


def test_get_creates_default_preferences(client, make_user, auth_headers) -> None:
    make_user("u1", "Uma")

    response = client.get("/users/preferences", headers=auth_headers("u1"))

    assert response.status_code == 200
    body = response.json()
    assert len(body) == 12
    assert all(value is True for value in body.values())


def test_put_applies_partial_update(client, make_user, auth_headers) -> None:
    make_user("u1", "Uma")

    response = client.put(
        "/users/preferences",
        json={"email_mention": False, "push_chat_enabled": False, "favourite_colour": "red"},
        headers=auth_headers("u1"),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["email_mention"] is False
    assert body["push_chat_enabled"] is False
    assert body["email_task_assigned"] is True
    assert "favourite_colour" not in body


def test_put_without_valid_fields_is_rejected(client, make_user, auth_headers) -> None:
    make_user("u1", "Uma")

    response = client.put(
        "/users/preferences",
        json={"email_mention": "no", "unknown": True},
        headers=auth_headers("u1"),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "No valid fields to update"


def test_requires_authentication(client) -> None:
    assert client.get("/users/preferences").status_code == 401
    assert client.get(
        "/users/preferences", headers={"Authorization": "Bearer not-a-token"}
    ).status_code == 401

"""Tests for self-service profile edits on the portal blueprints."""

import pytest

from models import db
from models.account import Account


def _stored(app, account_id) -> Account:
    with app.app_context():
        account = db.session.get(Account, account_id)
        db.session.expunge(account)
    return account


@pytest.mark.parametrize(
    "raw, expected",
    [
        (["politics", " crime "], ["politics", "crime"]),
        ('["health", "science"]', ["health", "science"]),
        ("a, b", ["a", "b"]),
        ("", []),
    ],
)
def test_journalist_updates_profile_with_any_interests_encoding(
    app, client, make_account, auth_headers, raw, expected
):
    account_id = make_account("writer@example.com", role="journalist")

    response = client.put(
        "/journalist/profile",
        json={"bio": "Covers city hall", "interests": raw},
        headers=auth_headers(account_id),
    )

    assert response.status_code == 200
    user = response.get_json()["data"]["user"]
    assert user["bio"] == "Covers city hall"
    assert user["interests"] == expected
    assert _stored(app, account_id).interests == expected


def test_identity_and_lifecycle_fields_in_body_are_ignored(app, client, make_account, auth_headers):
    account_id = make_account("writer@example.com", role="journalist", status="pending")

    response = client.put(
        "/journalist/profile",
        json={
            "position": "Editor",
            "role": "admin",
            "status": "active",
            "email": "hijack@example.com",
            "is_email_verified": False,
            "password": "NewPass456",
        },
        headers=auth_headers(account_id),
    )

    assert response.status_code == 200
    stored = _stored(app, account_id)
    assert stored.position == "Editor"
    assert stored.role == "journalist"
    assert stored.status == "pending"
    assert stored.email == "writer@example.com"
    assert stored.is_email_verified is True
    assert stored.check_password("Secret123")


def test_omitted_fields_are_left_alone(app, client, make_account, auth_headers):
    account_id = make_account(
        "pr@example.com", role="comms", bio="Original bio", interests=["media"]
    )

    response = client.put(
        "/comms/profile",
        json={"phone_number": "+44 20 7946 0958", "country": "UK"},
        headers=auth_headers(account_id),
    )

    assert response.status_code == 200
    stored = _stored(app, account_id)
    assert stored.phone_number == "+44 20 7946 0958"
    assert stored.country == "UK"
    assert stored.bio == "Original bio"
    assert stored.interests == ["media"]


@pytest.mark.parametrize(
    "body, field",
    [
        ({"phone_number": "12"}, "phone_number"),
        ({"bio": "x" * 501}, "bio"),
        ({"position": "x" * 101}, "position"),
        ({"interests": [1, 2]}, "interests"),
    ],
)
def test_invalid_profile_edits_are_rejected(app, client, make_account, auth_headers, body, field):
    account_id = make_account("writer@example.com", role="journalist", bio="Kept")

    response = client.put("/journalist/profile", json=body, headers=auth_headers(account_id))

    assert response.status_code == 400
    assert field in response.get_json()["errors"]
    assert _stored(app, account_id).bio == "Kept"


def test_profile_update_is_role_gated(client, make_account, auth_headers):
    comms_id = make_account("pr@example.com", role="comms")
    journalist_id = make_account("writer@example.com", role="journalist")

    assert client.put(
        "/journalist/profile", json={"bio": "x"}, headers=auth_headers(comms_id)
    ).status_code == 403
    assert client.put(
        "/comms/profile", json={"bio": "x"}, headers=auth_headers(journalist_id)
    ).status_code == 403
    assert client.put("/comms/profile", json={"bio": "x"}).status_code == 401

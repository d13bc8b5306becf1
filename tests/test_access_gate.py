"""Tests for bearer-token authentication and role enforcement."""

from datetime import datetime, timedelta

import pytest
from flask_jwt_extended import create_access_token

from models import db
from models.account import Account
from services import tokens


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_missing_token_is_rejected(client):
    response = client.get("/auth/me")

    assert response.status_code == 401
    body = response.get_json()
    assert body["success"] is False
    assert body["message"] == "Not authorized to access this route"


@pytest.mark.parametrize("header", ["Bearer garbage", "Bearer a.b.c", "Token abc"])
def test_malformed_tokens_are_rejected(client, header):
    response = client.get("/auth/me", headers={"Authorization": header})

    assert response.status_code == 401
    assert response.get_json()["success"] is False


def test_expired_token_is_rejected(client, make_account, auth_headers):
    account_id = make_account("old@example.com")

    response = client.get(
        "/auth/me", headers=auth_headers(account_id, expires_delta=timedelta(seconds=-5))
    )

    assert response.status_code == 401
    assert response.get_json()["message"] == "Token has expired"


def test_token_for_deleted_account_is_rejected(app, client, make_account, auth_headers):
    account_id = make_account("gone@example.com")
    headers = auth_headers(account_id)
    with app.app_context():
        db.session.delete(db.session.get(Account, account_id))
        db.session.commit()

    response = client.get("/auth/me", headers=headers)

    assert response.status_code == 401
    assert response.get_json()["message"] == "User not found"


def test_non_numeric_identity_is_rejected(app, client):
    with app.app_context():
        token = create_access_token(identity="not-a-number")

    response = client.get("/auth/me", headers=_bearer(token))

    assert response.status_code == 401


def test_refresh_token_cannot_be_used_as_bearer(app, client, make_account):
    account_id = make_account("swap@example.com")
    with app.app_context():
        refresh = tokens.issue_refresh_token(db.session.get(Account, account_id))

    response = client.get("/auth/me", headers=_bearer(refresh))

    assert response.status_code == 401


def test_wrong_role_is_forbidden(client, make_account, auth_headers):
    account_id = make_account("pr@example.com", role="comms")

    response = client.get("/journalist/dashboard", headers=auth_headers(account_id))

    assert response.status_code == 403
    assert response.get_json()["message"] == (
        "User role comms is not authorized to access this route"
    )


@pytest.mark.parametrize(
    "path, role",
    [
        ("/journalist/profile", "journalist"),
        ("/journalist/dashboard", "journalist"),
        ("/comms/profile", "comms"),
        ("/comms/dashboard", "comms"),
        ("/admin/users", "admin"),
    ],
)
def test_active_accounts_reach_their_area(client, make_account, auth_headers, path, role):
    account_id = make_account(f"{role}@example.com", role=role)

    response = client.get(path, headers=auth_headers(account_id))

    assert response.status_code == 200
    assert response.get_json()["success"] is True


def test_status_change_revokes_existing_tokens(app, client, make_account, auth_headers):
    account_id = make_account("flip@example.com", role="comms")
    headers = auth_headers(account_id)
    assert client.get("/comms/profile", headers=headers).status_code == 200

    with app.app_context():
        db.session.get(Account, account_id).status = "suspended"
        db.session.commit()

    response = client.get("/comms/profile", headers=headers)
    assert response.status_code == 401
    assert "Please contact support" in response.get_json()["message"]


def test_unverified_account_cannot_use_a_token(client, make_account, auth_headers):
    account_id = make_account("new@example.com", role="comms", verified=False)

    response = client.get("/auth/me", headers=auth_headers(account_id))

    assert response.status_code == 401
    assert "Please verify your email" in response.get_json()["message"]


def test_pending_journalist_has_degraded_access(client, make_account, auth_headers):
    account_id = make_account("waiting@example.com", role="journalist", status="pending")
    headers = auth_headers(account_id)

    profile = client.get("/journalist/profile", headers=headers)
    assert profile.status_code == 200
    assert profile.get_json()["data"]["pending_approval"] is True

    dashboard = client.get("/journalist/dashboard", headers=headers)
    assert dashboard.status_code == 403
    assert "pending admin approval" in dashboard.get_json()["message"]


def test_lock_state_does_not_block_existing_sessions(app, client, make_account, auth_headers):
    account_id = make_account(
        "locked@example.com",
        role="comms",
        login_attempts=5,
        lock_until=datetime.utcnow() + timedelta(hours=1),
    )

    response = client.get("/comms/profile", headers=auth_headers(account_id))

    assert response.status_code == 200

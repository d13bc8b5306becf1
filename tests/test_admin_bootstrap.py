"""Tests for the default administrator bootstrap."""

from models.account import Account
from services.lifecycle import ensure_default_admin


def _configure(app, email="root@example.com", password="LongEnough1"):
    app.config["DEFAULT_ADMIN_EMAIL"] = email
    app.config["DEFAULT_ADMIN_PASSWORD"] = password


def test_creates_admin_once(app, app_context):
    _configure(app, email=" Root@Example.com ")

    first = ensure_default_admin()
    second = ensure_default_admin()

    assert first.created is True
    assert first.account.email == "root@example.com"
    assert first.account.role == "admin"
    assert first.account.status == "active"
    assert first.account.is_email_verified is True
    assert first.account.registration_method == "system"
    assert first.account.check_password("LongEnough1")

    assert second.created is False
    assert second.reason == "Already exists"
    assert second.account.id == first.account.id
    assert Account.query.filter_by(role="admin").count() == 1


def test_missing_credentials_skip_creation(app, app_context):
    _configure(app, email="", password="LongEnough1")

    result = ensure_default_admin()

    assert result.created is False
    assert result.reason == "Missing credentials"
    assert Account.query.count() == 0


def test_short_password_is_refused(app, app_context):
    _configure(app, password="short")

    result = ensure_default_admin()

    assert result.created is False
    assert Account.query.count() == 0


def test_email_used_by_another_role_is_left_alone(app, app_context, make_account):
    make_account("root@example.com", role="comms")
    _configure(app)

    result = ensure_default_admin()

    assert result.created is False
    assert result.reason == "Email in use"
    assert result.account.role == "comms"


def test_init_admin_cli_command(app):
    _configure(app)
    runner = app.test_cli_runner()

    created = runner.invoke(args=["init-admin"])
    repeated = runner.invoke(args=["init-admin"])

    assert created.exit_code == 0
    assert "Default admin created: root@example.com" in created.output
    assert "Already exists" in repeated.output

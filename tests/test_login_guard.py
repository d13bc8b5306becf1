"""Unit tests for the per-account lockout counter."""

from datetime import datetime, timedelta

import pytest

from models.account import Account
from services import login_guard
from utils.errors import AuthenticationError

NOW = datetime(2026, 3, 1, 9, 0, 0)


def _account(**fields) -> Account:
    account = Account(email="guard@example.com", role="journalist", login_attempts=0)
    for key, value in fields.items():
        setattr(account, key, value)
    return account


def test_failures_count_down_remaining_attempts(app_context):
    account = _account()

    messages = [login_guard.record_failure(account, NOW) for _ in range(4)]

    assert messages == [
        "Invalid email or password. 4 attempts left.",
        "Invalid email or password. 3 attempts left.",
        "Invalid email or password. 2 attempts left.",
        "Invalid email or password. 1 attempts left.",
    ]
    assert account.login_attempts == 4
    assert account.lock_until is None


def test_fifth_failure_locks_for_configured_duration(app, app_context):
    account = _account(login_attempts=4)

    message = login_guard.record_failure(account, NOW)

    assert message.startswith("Account locked due to too many failed attempts")
    assert account.login_attempts == 5
    assert account.lock_until == NOW + app.config["LOCKOUT_DURATION"]
    assert account.lock_until == NOW + timedelta(hours=2)


def test_counter_never_exceeds_threshold(app_context):
    account = _account(login_attempts=5)

    login_guard.record_failure(account, NOW)

    assert account.login_attempts == 5


def test_ensure_not_locked_reports_remaining_minutes(app_context):
    account = _account(login_attempts=5, lock_until=NOW + timedelta(minutes=90, seconds=1))

    with pytest.raises(AuthenticationError) as excinfo:
        login_guard.ensure_not_locked(account, NOW)

    assert excinfo.value.description == "Account temporarily locked. Try again in 91 minutes."
    assert account.login_attempts == 5


def test_ensure_not_locked_passes_after_lock_elapses(app_context):
    account = _account(login_attempts=5, lock_until=NOW - timedelta(seconds=1))

    login_guard.ensure_not_locked(account, NOW)


def test_failure_after_elapsed_lock_restarts_count(app_context):
    account = _account(login_attempts=5, lock_until=NOW - timedelta(minutes=1))

    message = login_guard.record_failure(account, NOW)

    assert account.login_attempts == 1
    assert account.lock_until is None
    assert message == "Invalid email or password. 4 attempts left."


def test_success_resets_counter_and_stamps_login(app_context):
    account = _account(login_attempts=3, lock_until=NOW - timedelta(minutes=1))

    login_guard.record_success(account, NOW)

    assert account.login_attempts == 0
    assert account.lock_until is None
    assert account.last_login == NOW


def test_concurrent_failures_are_last_write_wins(app_context):
    """Two requests reading the same counter both write the same next value.

    There is no row locking around the counter, so one failure is lost.
    """

    first_read = _account(login_attempts=2)
    second_read = _account(login_attempts=2)

    login_guard.record_failure(first_read, NOW)
    login_guard.record_failure(second_read, NOW)

    assert first_read.login_attempts == second_read.login_attempts == 3


def test_threshold_follows_configuration(app, app_context):
    app.config["MAX_LOGIN_ATTEMPTS"] = 2
    account = _account()

    assert login_guard.record_failure(account, NOW) == "Invalid email or password. 1 attempts left."
    assert login_guard.record_failure(account, NOW).startswith("Account locked")


def test_elapsed_lock_relocks_when_threshold_is_one(app, app_context):
    app.config["MAX_LOGIN_ATTEMPTS"] = 1
    account = _account(login_attempts=1, lock_until=NOW - timedelta(minutes=1))

    message = login_guard.record_failure(account, NOW)

    assert message.startswith("Account locked")
    assert account.login_attempts == 1
    assert account.lock_until == NOW + app.config["LOCKOUT_DURATION"]

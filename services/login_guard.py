"""Per-account brute-force protection for the login flow.

The counter is updated with a plain read-modify-write on the loaded row, so
two concurrent failures for the same account can overwrite each other (last
write wins). Per-IP throttling is handled separately by Flask-Limiter.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta

from flask import current_app

from models.account import Account
from utils.errors import AuthenticationError

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_LOCKOUT = timedelta(hours=2)


def _max_attempts() -> int:
    return int(current_app.config.get("MAX_LOGIN_ATTEMPTS", DEFAULT_MAX_ATTEMPTS))


def _lockout_duration() -> timedelta:
    return current_app.config.get("LOCKOUT_DURATION", DEFAULT_LOCKOUT)


def remaining_lock_minutes(account: Account, now: datetime) -> int:
    if account.lock_until is None:
        return 0
    seconds = (account.lock_until - now).total_seconds()
    return max(math.ceil(seconds / 60), 0)


def ensure_not_locked(account: Account, now: datetime) -> None:
    """Reject the attempt while a lockout is in force.

    No attempt is consumed and the password is not looked at.
    """

    if account.is_locked(now):
        minutes = remaining_lock_minutes(account, now)
        raise AuthenticationError(
            f"Account temporarily locked. Try again in {minutes} minutes."
        )


def record_failure(account: Account, now: datetime) -> str:
    """Count a failed password check and return the message for the caller."""

    threshold = _max_attempts()

    if account.lock_until is not None and account.lock_until <= now:
        # An elapsed lock restarts the count with this failure.
        attempts = 1
        account.lock_until = None
    else:
        attempts = (account.login_attempts or 0) + 1

    account.login_attempts = min(attempts, threshold)
    if attempts >= threshold:
        account.lock_until = now + _lockout_duration()
        current_app.logger.warning(
            "Account %s locked after %d failed login attempts",
            account.id,
            attempts,
        )
        return "Account locked due to too many failed attempts. Try again later."

    remaining = threshold - account.login_attempts
    return f"Invalid email or password. {remaining} attempts left."


def record_success(account: Account, now: datetime) -> None:
    """Clear the counter and lock, and stamp the login time."""

    account.login_attempts = 0
    account.lock_until = None
    account.last_login = now

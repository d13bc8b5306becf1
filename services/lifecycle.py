"""Account lifecycle: registration, verification, approval, login and reset.

State per account is ``(role, status, is_email_verified)`` plus the lockout
fields. Every operation here works on the current Flask-SQLAlchemy session
and commits its own changes. Failures are raised as the typed errors from
``utils.errors``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from flask import current_app
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from models import db
from models.account import ROLES, Account
from services import login_guard, tokens
from services.notifications import get_notifier
from utils.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from utils.request_validation import (
    clean_text,
    normalize_email,
    validate_email,
    validate_max_lengths,
    validate_password_pair,
    validate_phone,
)

GENERIC_RESET_MESSAGE = (
    "If an account with that email exists, password reset instructions have been sent."
)
VERIFY_EMAIL_MESSAGE = (
    "Please verify your email before logging in. "
    "Check your inbox for the verification link."
)
ADMIN_SETTABLE_STATUSES = ("pending", "active", "suspended")
REVIEWABLE_ROLES = ("journalist", "comms")

_NAME_LIMITS = {"first_name": 50, "surname": 50, "last_name": 50}
_PROFILE_LIMITS = {"position": 100, "bio": 500, "country": 50}


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of the eligibility policy for one account."""

    allowed: bool
    pending_approval: bool = False
    message: str = ""


@dataclass(frozen=True)
class LoginResult:
    account: Account
    access_token: str
    refresh_token: str
    pending_approval: bool
    message: str


# ---------------------------------------------------------------------------
# Eligibility policy
# ---------------------------------------------------------------------------


def access_decision(account: Account) -> AccessDecision:
    """Decide whether an account may hold a session, and with what privileges.

    Depends only on role, status and the verification flag.
    """

    if not account.is_email_verified:
        return AccessDecision(False, message=VERIFY_EMAIL_MESSAGE)

    if account.status == "active":
        return AccessDecision(True)

    prefix = "Your account is not active. "
    if account.status == "pending":
        if account.role == "journalist":
            return AccessDecision(
                True,
                pending_approval=True,
                message=prefix
                + "Your journalist account is pending admin approval. You have limited access.",
            )
        if account.role == "comms":
            return AccessDecision(
                False,
                message=prefix
                + "Your comms account is pending approval. Please contact support.",
            )
    return AccessDecision(False, message=prefix + "Please contact support.")


def login_decision(account: Account, now: Optional[datetime] = None) -> AccessDecision:
    """``access_decision`` with the lockout state taken into account."""

    now = now or datetime.utcnow()
    if account.is_locked(now):
        minutes = login_guard.remaining_lock_minutes(account, now)
        return AccessDecision(
            False, message=f"Account temporarily locked. Try again in {minutes} minutes."
        )
    return access_decision(account)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def find_by_email(email: Any) -> Optional[Account]:
    normalized = normalize_email(email)
    if not normalized:
        return None
    return Account.query.filter(func.lower(Account.email) == normalized).first()


def get_account(account_id: Any) -> Account:
    try:
        key = int(account_id)
    except (TypeError, ValueError):
        raise NotFoundError("User not found.") from None
    account = db.session.get(Account, key)
    if account is None:
        raise NotFoundError("User not found.")
    return account


def _require_admin(actor: Optional[Account]) -> None:
    if actor is None or actor.role != "admin":
        raise AuthorizationError("Admin privileges required.")


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def _validate_common(payload: Mapping[str, Any], email: str, email_field: str) -> dict:
    errors: dict[str, str] = {}
    values = {
        key: clean_text(payload, key)
        for key in (
            "first_name",
            "surname",
            "last_name",
            "phone_number",
            "country",
            "position",
            "bio",
        )
    }
    for key in _NAME_LIMITS:
        if not values[key]:
            errors[key] = f"{key} is required."
    validate_email(email, errors, field=email_field)
    validate_password_pair(
        payload.get("password"), payload.get("confirm_password"), errors
    )
    validate_phone(values["phone_number"], errors)
    validate_max_lengths(values, {**_NAME_LIMITS, **_PROFILE_LIMITS}, errors)
    return {"values": values, "errors": errors}


def _create_account(account: Account, password: str) -> Account:
    if find_by_email(account.email) is not None:
        raise ConflictError("User already exists with this email")

    account.set_password(password)
    token, expires = tokens.generate_single_use_token(
        current_app.config["EMAIL_VERIFICATION_TTL"]
    )
    account.set_verification_token(token, expires)

    db.session.add(account)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Email already exists") from None

    current_app.logger.info(
        "Registered %s account %s", account.role, account.id
    )
    get_notifier().send_verification_email(account, token)
    return account


def register_journalist(
    payload: Mapping[str, Any],
    interests: Optional[list[str]] = None,
    license_file: Optional[dict] = None,
) -> Account:
    """Create a journalist awaiting verification and admin approval."""

    email = normalize_email(payload.get("email"))
    checked = _validate_common(payload, email, "email")
    errors, values = checked["errors"], checked["values"]
    publication = clean_text(payload, "publication")
    if not publication:
        errors["publication"] = "publication is required."
    if errors:
        raise ValidationError(errors=errors)

    account = Account(
        first_name=values["first_name"],
        surname=values["surname"],
        last_name=values["last_name"],
        email=email,
        role="journalist",
        registration_method="email",
        status="pending",
        is_email_verified=False,
        publication=publication,
        phone_number=values["phone_number"],
        country=values["country"],
        position=values["position"],
        bio=values["bio"],
        interests=list(interests or []),
        license_file=license_file,
    )
    return _create_account(account, payload["password"])


def register_comms(
    payload: Mapping[str, Any], interests: Optional[list[str]] = None
) -> Account:
    """Create a communications professional awaiting verification."""

    raw_email = payload.get("org_email") or payload.get("email")
    email = normalize_email(raw_email)
    email_field = "org_email" if payload.get("org_email") else "email"
    checked = _validate_common(payload, email, email_field)
    errors, values = checked["errors"], checked["values"]
    org_name = clean_text(payload, "org_name")
    if not org_name:
        errors["org_name"] = "org_name is required."
    if errors:
        raise ValidationError(errors=errors)

    account = Account(
        first_name=values["first_name"],
        surname=values["surname"],
        last_name=values["last_name"],
        email=email,
        role="comms",
        registration_method="email",
        status="pending",
        is_email_verified=False,
        org_name=org_name,
        position=values["position"],
        bio=values["bio"],
        phone_number=values["phone_number"],
        country=values["country"],
        interests=list(interests or []),
    )
    return _create_account(account, payload["password"])


# ---------------------------------------------------------------------------
# Email verification
# ---------------------------------------------------------------------------


_STATUS_AFTER_VERIFICATION = {
    "journalist": "pending",
    "comms": "active",
    "admin": "active",
}


def verify_email(token: Any, now: Optional[datetime] = None) -> tuple[Account, str]:
    """Redeem a verification token and return the account and a message."""

    if not isinstance(token, str) or not token.strip():
        raise ValidationError(errors={"token": "Verification token is required"})
    token = token.strip()
    now = now or datetime.utcnow()

    account = Account.query.filter_by(email_verification_token=token).first()
    if account is None:
        raise AuthenticationError("Invalid verification token")

    if account.email_verification_expires is None or account.email_verification_expires <= now:
        new_token, expires = tokens.generate_single_use_token(
            current_app.config["EMAIL_VERIFICATION_TTL"], now
        )
        account.set_verification_token(new_token, expires)
        db.session.commit()
        current_app.logger.info(
            "Verification token expired for account %s; issued a new one", account.id
        )
        get_notifier().send_verification_email(account, new_token)
        raise AuthenticationError(
            "Verification token expired. A new verification email has been sent."
        )

    account.is_email_verified = True
    account.clear_verification_token()
    if account.status == "pending":
        account.status = _STATUS_AFTER_VERIFICATION[account.role]
    db.session.commit()
    current_app.logger.info(
        "Account %s verified its email (status=%s)", account.id, account.status
    )

    message = "Email verified successfully! "
    if account.role == "journalist" and account.status == "pending":
        get_notifier().send_approval_request(account)
        message += "Your journalist account is pending admin approval."
    elif account.status == "active":
        message += "You can now login to your account."
    else:
        message += "Your account is not active. Please contact support."
    return account, message


# ---------------------------------------------------------------------------
# Login and session refresh
# ---------------------------------------------------------------------------


def login(email: Any, password: Any, now: Optional[datetime] = None) -> LoginResult:
    """Authenticate and issue an access/refresh token pair.

    Checks run in this order: existence, lock, password, verification,
    status/role eligibility. Only a wrong password counts toward lockout.
    """

    normalized = normalize_email(email)
    errors: dict[str, str] = {}
    if not normalized:
        errors["email"] = "Email is required."
    if not isinstance(password, str) or not password:
        errors["password"] = "Password is required."
    if errors:
        raise ValidationError("Please provide email and password", errors=errors)

    now = now or datetime.utcnow()
    account = find_by_email(normalized)
    if account is None:
        raise AuthenticationError("Invalid email or password")

    login_guard.ensure_not_locked(account, now)

    if not account.check_password(password):
        message = login_guard.record_failure(account, now)
        db.session.commit()
        raise AuthenticationError(message)

    decision = access_decision(account)
    if not decision.allowed:
        raise AuthenticationError(decision.message)

    login_guard.record_success(account, now)
    db.session.commit()

    return LoginResult(
        account=account,
        access_token=tokens.issue_access_token(account),
        refresh_token=tokens.issue_refresh_token(account),
        pending_approval=decision.pending_approval,
        message=decision.message or "Login successful",
    )


def refresh_session(refresh_token: Any) -> tuple[Account, str]:
    """Exchange a refresh token for a new access token."""

    if not refresh_token:
        raise ValidationError(errors={"refresh_token": "Refresh token is required"})
    claims = tokens.decode_refresh_token(refresh_token)

    try:
        account = get_account(claims.get("sub"))
    except NotFoundError:
        raise AuthenticationError("Invalid refresh token") from None

    decision = access_decision(account)
    if not decision.allowed:
        raise AuthenticationError(decision.message)
    return account, tokens.issue_access_token(account)


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------


def request_password_reset(email: Any) -> str:
    """Issue a reset token when the account exists; the reply never says."""

    normalized = normalize_email(email)
    if not normalized:
        raise ValidationError(errors={"email": "Email is required"})

    account = find_by_email(normalized)
    if account is not None:
        token, expires = tokens.generate_single_use_token(
            current_app.config["PASSWORD_RESET_TTL"]
        )
        account.set_reset_token(token, expires)
        db.session.commit()
        get_notifier().send_password_reset_email(account, token)
    return GENERIC_RESET_MESSAGE


def reset_password(
    token: Any,
    password: Any,
    confirm_password: Any,
    now: Optional[datetime] = None,
) -> Account:
    """Replace the credential using a valid reset token."""

    errors: dict[str, str] = {}
    if not isinstance(token, str) or not token.strip():
        errors["token"] = "Reset token is required."
    validate_password_pair(password, confirm_password, errors)
    if errors:
        raise ValidationError(errors=errors)

    now = now or datetime.utcnow()
    account = Account.query.filter_by(password_reset_token=token.strip()).first()
    if account is None:
        raise AuthenticationError("Invalid reset token")

    if account.password_reset_expires is None or account.password_reset_expires <= now:
        new_token, expires = tokens.generate_single_use_token(
            current_app.config["PASSWORD_RESET_TTL"], now
        )
        account.set_reset_token(new_token, expires)
        db.session.commit()
        get_notifier().send_password_reset_email(account, new_token)
        raise AuthenticationError(
            "Reset token expired. A new password reset email has been sent."
        )

    account.set_password(password)
    account.clear_reset_token()
    db.session.commit()
    current_app.logger.info("Password reset for account %s", account.id)
    return account


# ---------------------------------------------------------------------------
# Self-service profile
# ---------------------------------------------------------------------------


PROFILE_FIELDS = ("phone_number", "bio", "position", "country")


def update_profile(
    account: Account,
    payload: Mapping[str, Any],
    interests: Optional[list[str]] = None,
) -> Account:
    """Apply the caller's own edits to the free-form profile fields.

    Only keys present in ``payload`` change. Identity, role, status and
    credentials are never taken from the body. ``interests`` is the already
    normalised list, or ``None`` to leave the stored value alone.
    """

    values = {key: clean_text(payload, key) for key in PROFILE_FIELDS if key in payload}
    errors: dict[str, str] = {}
    if "phone_number" in values:
        validate_phone(values["phone_number"], errors)
    validate_max_lengths(values, {**_PROFILE_LIMITS, "phone_number": 32}, errors)
    if errors:
        raise ValidationError(errors=errors)

    for key, value in values.items():
        setattr(account, key, value)
    if interests is not None:
        account.interests = list(interests)
    db.session.commit()
    current_app.logger.info(
        "Account %s updated profile fields %s",
        account.id,
        sorted(values) + (["interests"] if interests is not None else []),
    )
    return account


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------


def _reviewable(actor: Account, account_id: Any, expected_role: Optional[str]) -> Account:
    _require_admin(actor)
    try:
        account = get_account(account_id)
    except NotFoundError:
        if expected_role == "journalist":
            raise NotFoundError("Journalist not found") from None
        raise
    if expected_role is not None and account.role != expected_role:
        raise NotFoundError(f"{expected_role.capitalize()} not found")
    if account.role not in REVIEWABLE_ROLES:
        raise ConflictError("Only journalist and comms accounts can be reviewed.")
    if account.status != "pending":
        raise ConflictError(f"Account is {account.status}; only pending accounts can be reviewed.")
    return account


def approve_account(
    actor: Account, account_id: Any, expected_role: Optional[str] = None
) -> Account:
    account = _reviewable(actor, account_id, expected_role)
    account.status = "active"
    db.session.commit()
    current_app.logger.info("Admin %s approved account %s", actor.id, account.id)
    get_notifier().send_review_outcome(account, approved=True)
    return account


def reject_account(
    actor: Account, account_id: Any, expected_role: Optional[str] = None
) -> Account:
    account = _reviewable(actor, account_id, expected_role)
    account.status = "rejected"
    db.session.commit()
    current_app.logger.info("Admin %s rejected account %s", actor.id, account.id)
    get_notifier().send_review_outcome(account, approved=False)
    return account


def set_role(actor: Account, account_id: Any, role: Any) -> Account:
    _require_admin(actor)
    if role not in ROLES:
        raise ValidationError(
            errors={"role": "Invalid role. Must be journalist, comms, or admin"}
        )
    account = get_account(account_id)
    account.role = role
    db.session.commit()
    current_app.logger.info("Admin %s set role of account %s to %s", actor.id, account.id, role)
    return account


def set_status(actor: Account, account_id: Any, status: Any) -> Account:
    _require_admin(actor)
    if status not in ADMIN_SETTABLE_STATUSES:
        raise ValidationError(
            errors={"status": "Invalid status. Must be pending, active, or suspended"}
        )
    account = get_account(account_id)
    account.status = status
    db.session.commit()
    current_app.logger.info(
        "Admin %s set status of account %s to %s", actor.id, account.id, status
    )
    return account


def delete_account(actor: Account, account_id: Any) -> None:
    _require_admin(actor)
    account = get_account(account_id)
    if account.id == actor.id:
        raise ValidationError("Cannot delete your own account")
    db.session.delete(account)
    db.session.commit()
    current_app.logger.info("Admin %s deleted account %s", actor.id, account_id)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def list_accounts(
    *,
    page: int = 1,
    per_page: int = 50,
    role: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
):
    """Return a Flask-SQLAlchemy pagination of accounts, newest first."""

    query = Account.query
    if role:
        query = query.filter(Account.role == role)
    if status:
        query = query.filter(Account.status == status)
    if search:
        like = f"%{_escape_like(search.lower())}%"
        query = query.filter(
            or_(
                func.lower(Account.email).like(like, escape="\\"),
                func.lower(Account.first_name).like(like, escape="\\"),
                func.lower(Account.last_name).like(like, escape="\\"),
                func.lower(Account.surname).like(like, escape="\\"),
                func.lower(Account.org_name).like(like, escape="\\"),
                func.lower(Account.publication).like(like, escape="\\"),
            )
        )
    query = query.order_by(Account.created_at.desc(), Account.id.desc())
    return query.paginate(page=page, per_page=per_page, error_out=False)


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AdminBootstrapResult:
    created: bool
    account: Optional[Account] = None
    reason: str = ""


def ensure_default_admin() -> AdminBootstrapResult:
    """Find or create the configured bootstrap administrator.

    Idempotent: the unique email column decides who wins a concurrent race.
    """

    config = current_app.config
    email = normalize_email(config.get("DEFAULT_ADMIN_EMAIL"))
    password = config.get("DEFAULT_ADMIN_PASSWORD") or ""
    if not email:
        current_app.logger.warning("DEFAULT_ADMIN_EMAIL is not configured")
        return AdminBootstrapResult(False, reason="Missing credentials")
    if len(password) < 8:
        current_app.logger.warning("DEFAULT_ADMIN_PASSWORD must be at least 8 characters")
        return AdminBootstrapResult(False, reason="Missing credentials")

    existing = find_by_email(email)
    if existing is not None:
        if existing.role != "admin":
            current_app.logger.warning(
                "Bootstrap admin email %s belongs to a %s account", email, existing.role
            )
            return AdminBootstrapResult(False, existing, reason="Email in use")
        return AdminBootstrapResult(False, existing, reason="Already exists")

    admin = Account(
        first_name=config.get("DEFAULT_ADMIN_FIRSTNAME", "System"),
        surname=config.get("DEFAULT_ADMIN_SURNAME", "Administrator"),
        last_name=config.get("DEFAULT_ADMIN_LASTNAME", "Admin"),
        email=email,
        role="admin",
        status="active",
        is_email_verified=True,
        registration_method="system",
        org_name=config.get("DEFAULT_ADMIN_ORG", "System Administration"),
        position=config.get("DEFAULT_ADMIN_POSITION", "System Administrator"),
    )
    admin.set_password(password)
    db.session.add(admin)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return AdminBootstrapResult(False, find_by_email(email), reason="Already exists")

    current_app.logger.info("Default admin account %s created", admin.id)
    return AdminBootstrapResult(True, admin)

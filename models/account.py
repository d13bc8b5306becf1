"""Account model definition."""

from datetime import datetime
from typing import Any, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from . import db


ROLES = ("journalist", "comms", "admin")
STATUSES = ("pending", "active", "suspended", "rejected")
REGISTRATION_METHODS = ("email", "endorsement", "invite", "system")


class Account(db.Model):
    """A registered identity with a role and a lifecycle status."""

    __tablename__ = "accounts"
    __table_args__ = (db.Index("ix_accounts_role_status", "role", "status"),)

    id = db.Column(db.Integer, primary_key=True)

    first_name = db.Column(db.String(50), nullable=False)
    surname = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)

    password_hash = db.Column(db.String(255), nullable=True)

    role = db.Column(db.Enum(*ROLES, name="account_role"), nullable=False)
    registration_method = db.Column(
        db.Enum(*REGISTRATION_METHODS, name="registration_method"),
        nullable=False,
        default="email",
        server_default=db.text("'email'"),
    )
    status = db.Column(
        db.Enum(*STATUSES, name="account_status"),
        nullable=False,
        default="pending",
        server_default=db.text("'pending'"),
    )

    # Role specific profile
    publication = db.Column(db.String(255), nullable=True)
    license_file = db.Column(db.JSON, nullable=True)
    org_name = db.Column(db.String(255), nullable=True)
    position = db.Column(db.String(100), nullable=False, default="")
    bio = db.Column(db.String(500), nullable=False, default="")
    phone_number = db.Column(db.String(32), nullable=False, default="")
    country = db.Column(db.String(50), nullable=False, default="")
    interests = db.Column(db.JSON, nullable=False, default=list)

    is_email_verified = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.false(),
    )
    email_verification_token = db.Column(db.String(128), unique=True, nullable=True)
    email_verification_expires = db.Column(db.DateTime, nullable=True)
    password_reset_token = db.Column(db.String(128), unique=True, nullable=True)
    password_reset_expires = db.Column(db.DateTime, nullable=True)

    login_attempts = db.Column(db.Integer, nullable=False, default=0)
    lock_until = db.Column(db.DateTime, nullable=True)
    last_login = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.surname} {self.last_name}".strip()

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def is_locked(self, now: Optional[datetime] = None) -> bool:
        """Return True while a lockout is in force."""

        now = now or datetime.utcnow()
        return self.lock_until is not None and self.lock_until > now

    def set_verification_token(self, token: str, expires: datetime) -> None:
        self.email_verification_token = token
        self.email_verification_expires = expires

    def clear_verification_token(self) -> None:
        self.email_verification_token = None
        self.email_verification_expires = None

    def set_reset_token(self, token: str, expires: datetime) -> None:
        self.password_reset_token = token
        self.password_reset_expires = expires

    def clear_reset_token(self) -> None:
        self.password_reset_token = None
        self.password_reset_expires = None

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<Account {self.email} role={self.role} status={self.status}>"


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _license_view(reference: Optional[dict]) -> Optional[dict]:
    if not reference:
        return None
    return {
        "filename": reference.get("filename"),
        "original_name": reference.get("original_name"),
        "mimetype": reference.get("mimetype"),
        "size": reference.get("size"),
        "url": reference.get("url"),
    }


def account_view(account: Account) -> dict[str, Any]:
    """Project an account onto the fields that may leave the server.

    Credentials, single-use tokens, lockout counters and the stored path of
    the license artifact are never part of the result.
    """

    return {
        "id": account.id,
        "first_name": account.first_name,
        "surname": account.surname,
        "last_name": account.last_name,
        "full_name": account.full_name,
        "email": account.email,
        "role": account.role,
        "status": account.status,
        "is_email_verified": bool(account.is_email_verified),
        "registration_method": account.registration_method,
        "publication": account.publication,
        "license_file": _license_view(account.license_file),
        "org_name": account.org_name,
        "position": account.position or "",
        "bio": account.bio or "",
        "phone_number": account.phone_number or "",
        "country": account.country or "",
        "interests": list(account.interests or []),
        "last_login": _isoformat(account.last_login),
        "created_at": _isoformat(account.created_at),
        "updated_at": _isoformat(account.updated_at),
    }

"""Session token issuance and single-use secret generation.

Access tokens are produced by Flask-JWT-Extended and verified by the access
gate through ``jwt_required``-style checks. Refresh tokens are plain PyJWT
tokens signed with ``JWT_REFRESH_SECRET_KEY`` so a leaked refresh secret
cannot mint access tokens.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from flask import current_app
from flask_jwt_extended import create_access_token

from models.account import Account
from utils.errors import AuthenticationError

REFRESH_TOKEN_TYPE = "refresh"
REFRESH_ALGORITHM = "HS256"
SINGLE_USE_TOKEN_BYTES = 32


def issue_access_token(account: Account) -> str:
    """Return a short-lived access token carrying the account id and role."""

    return create_access_token(
        identity=str(account.id),
        additional_claims={"role": account.role},
    )


def issue_refresh_token(account: Account) -> str:
    """Return a long-lived refresh token signed with the refresh secret."""

    now = datetime.now(timezone.utc)
    lifetime: timedelta = current_app.config["JWT_REFRESH_TOKEN_EXPIRES"]
    payload = {
        "sub": str(account.id),
        "role": account.role,
        "type": REFRESH_TOKEN_TYPE,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(
        payload,
        current_app.config["JWT_REFRESH_SECRET_KEY"],
        algorithm=REFRESH_ALGORITHM,
    )


def decode_refresh_token(token: Any) -> dict[str, Any]:
    """Validate a refresh token and return its claims.

    Any malformed, tampered, expired or wrongly typed token fails closed.
    """

    if not isinstance(token, str) or not token:
        raise AuthenticationError("Invalid or expired refresh token")
    try:
        claims = jwt.decode(
            token,
            current_app.config["JWT_REFRESH_SECRET_KEY"],
            algorithms=[REFRESH_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.PyJWTError as exc:
        current_app.logger.info("Rejected refresh token: %s", exc.__class__.__name__)
        raise AuthenticationError("Invalid or expired refresh token") from exc

    if claims.get("type") != REFRESH_TOKEN_TYPE:
        raise AuthenticationError("Invalid or expired refresh token")
    return claims


def generate_single_use_token(
    ttl: timedelta, now: datetime | None = None
) -> tuple[str, datetime]:
    """Return a random token and its (naive UTC) expiry."""

    now = now or datetime.utcnow()
    return secrets.token_hex(SINGLE_USE_TOKEN_BYTES), now + ttl

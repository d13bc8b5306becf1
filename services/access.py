"""Per-request authentication and role enforcement.

``account_required`` resolves the bearer token to an account, applies the
lifecycle access policy and then the route's role whitelist. Token problems
are turned into 401 responses by the JWT manager callbacks registered in
``init_access``.
"""

from __future__ import annotations

from functools import wraps
from typing import Callable, Optional

from flask import Flask, g, jsonify
from flask_jwt_extended import JWTManager, get_current_user, verify_jwt_in_request

from models import db
from models.account import Account
from services.lifecycle import access_decision
from utils.errors import AuthenticationError, AuthorizationError

jwt = JWTManager()


def _auth_error(message: str):
    response = jsonify(
        {
            "success": False,
            "error": "Unauthorized",
            "message": message,
            "request_id": g.get("request_id"),
        }
    )
    response.status_code = 401
    return response


@jwt.user_lookup_loader
def _load_account(_jwt_header: dict, jwt_data: dict) -> Optional[Account]:
    try:
        account_id = int(jwt_data["sub"])
    except (KeyError, TypeError, ValueError):
        return None
    return db.session.get(Account, account_id)


@jwt.unauthorized_loader
def _missing_token(reason: str):
    return _auth_error("Not authorized to access this route")


@jwt.invalid_token_loader
def _invalid_token(reason: str):
    return _auth_error("Invalid token")


@jwt.expired_token_loader
def _expired_token(_jwt_header: dict, _jwt_data: dict):
    return _auth_error("Token has expired")


@jwt.user_lookup_error_loader
def _unknown_account(_jwt_header: dict, _jwt_data: dict):
    return _auth_error("User not found")


def init_access(app: Flask) -> None:
    jwt.init_app(app)


def current_account() -> Account:
    """Return the account attached by ``account_required``."""

    return g.current_account


def account_required(*roles: str, allow_pending: bool = False) -> Callable:
    """Protect a view with authentication, the access policy and a role list.

    Accounts in degraded (pending approval) mode only reach views declared
    with ``allow_pending=True``.
    """

    def decorator(view: Callable) -> Callable:
        @wraps(view)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            account = get_current_user()

            decision = access_decision(account)
            if not decision.allowed:
                raise AuthenticationError(decision.message)

            g.current_account = account
            g.pending_approval = decision.pending_approval

            if roles and account.role not in roles:
                raise AuthorizationError(
                    f"User role {account.role} is not authorized to access this route"
                )
            if decision.pending_approval and not allow_pending:
                raise AuthorizationError(
                    "Your account is pending admin approval. This feature is not available yet."
                )
            return view(*args, **kwargs)

        return wrapper

    return decorator

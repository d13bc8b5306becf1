"""Error taxonomy shared by services and blueprints.

Every error is a Werkzeug ``HTTPException`` so the application's JSON error
handler renders it with the right status code. Services raise these directly;
blueprints never translate them.
"""

from __future__ import annotations

from typing import Mapping

from werkzeug.exceptions import (
    BadRequest,
    Conflict,
    Forbidden,
    InternalServerError,
    NotFound,
    Unauthorized,
)


class ValidationError(BadRequest):
    """Missing or malformed input, optionally with per-field messages."""

    def __init__(
        self,
        description: str | None = None,
        errors: Mapping[str, str] | None = None,
    ) -> None:
        self.errors = dict(errors or {})
        if description is None:
            description = (
                "; ".join(self.errors.values()) if self.errors else "Invalid request."
            )
        super().__init__(description)


class ConflictError(Conflict):
    """The request conflicts with stored state (duplicate email, wrong status)."""


class AuthenticationError(Unauthorized):
    """Bad credentials, invalid single-use or session token, or a locked account."""


class AuthorizationError(Forbidden):
    """The authenticated account may not perform this action."""


class NotFoundError(NotFound):
    """Unknown account id."""


class ServerError(InternalServerError):
    """Storage or other unexpected failure."""

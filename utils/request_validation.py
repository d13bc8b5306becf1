"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

import json
import re
from typing import Any, Iterable, Mapping

from flask import Request

from utils.errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]{10,}$")
MIN_PASSWORD_LENGTH = 6
MAX_INTEREST_LENGTH = 50


def parse_json_request(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON body or raise a 400 error."""

    if not req.is_json:
        raise ValidationError("Request content type must be application/json.")

    data = req.get_json(silent=True)
    if data is None:
        raise ValidationError("Request JSON body is required.")

    if not isinstance(data, dict):
        raise ValidationError("Request JSON payload must be an object.")

    if not data and not allow_empty:
        raise ValidationError("Request JSON body must not be empty.")

    if required_keys:
        missing = sorted(key for key in required_keys if not data.get(key))
        if missing:
            raise ValidationError(
                "Missing required fields: {}.".format(", ".join(missing)),
                errors={key: f"{key} is required." for key in missing},
            )

    return data


def parse_form_or_json(req: Request) -> dict:
    """Accept either a JSON object or a (multipart) form body."""

    if req.is_json:
        return parse_json_request(req)
    if req.form:
        return req.form.to_dict()
    raise ValidationError(
        "Request content type must be application/json or multipart/form-data."
    )


def normalize_email(raw_email: Any) -> str:
    """Normalize an email string by stripping whitespace and lowering case."""

    if not isinstance(raw_email, str):
        return ""
    return raw_email.strip().lower()


def normalize_interests(raw: Any) -> list[str]:
    """Turn a list, a JSON array string or a comma-separated string into a list.

    Order is preserved and blank entries are dropped.
    """

    if raw is None or raw == "":
        return []

    if isinstance(raw, str):
        text = raw.strip()
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            raw = parsed
        elif isinstance(parsed, str):
            raw = [parsed]
        else:
            raw = text.split(",")

    if not isinstance(raw, (list, tuple)):
        raise ValidationError(errors={"interests": "Interests must be a list of strings."})

    interests: list[str] = []
    for item in raw:
        if not isinstance(item, str):
            raise ValidationError(
                errors={"interests": "Interests must be a list of strings."}
            )
        value = item.strip()
        if not value:
            continue
        if len(value) > MAX_INTEREST_LENGTH:
            raise ValidationError(
                errors={
                    "interests": f"Each interest must be at most {MAX_INTEREST_LENGTH} characters."
                }
            )
        interests.append(value)
    return interests


def clean_text(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    return value.strip()


def validate_password_pair(
    password: Any, confirm_password: Any, errors: dict[str, str]
) -> None:
    """Collect password errors into ``errors``."""

    if not isinstance(password, str) or not password:
        errors["password"] = "Password is required."
        return
    if len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = (
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
        )
    if password != confirm_password:
        errors["confirm_password"] = "Passwords do not match."


def validate_max_lengths(
    values: Mapping[str, str], limits: Mapping[str, int], errors: dict[str, str]
) -> None:
    for field, limit in limits.items():
        value = values.get(field) or ""
        if len(value) > limit and field not in errors:
            errors[field] = f"{field} must be at most {limit} characters."


def validate_email(email: str, errors: dict[str, str], field: str = "email") -> None:
    if not email:
        errors[field] = "Email is required."
    elif not EMAIL_PATTERN.match(email):
        errors[field] = "Please provide a valid email."


def validate_phone(phone: str, errors: dict[str, str]) -> None:
    if phone and not PHONE_PATTERN.match(phone):
        errors["phone_number"] = "Please provide a valid phone number."


def parse_positive_int(value: Any, default: int, *, maximum: int | None = None) -> int:
    """Parse a query-string integer, falling back to ``default``."""

    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < 1:
        return default
    if maximum is not None:
        number = min(number, maximum)
    return number

"""Application configuration module."""

import os
from datetime import timedelta
from pathlib import Path


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


class Config:
    """Base configuration for the Flask application."""

    # Core
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    APP_ENV = os.getenv("APP_ENV", "development")
    SHOW_ERROR_DETAILS = _env_flag("SHOW_ERROR_DETAILS", APP_ENV != "production")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///app.db")
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session tokens; access and refresh tokens are signed with different keys.
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me-access")
    JWT_REFRESH_SECRET_KEY = os.getenv("JWT_REFRESH_SECRET_KEY", "change-me-refresh")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(
        seconds=int(os.getenv("JWT_ACCESS_TOKEN_SECONDS", 60 * 60))
    )
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(
        seconds=int(os.getenv("JWT_REFRESH_TOKEN_SECONDS", 7 * 24 * 60 * 60))
    )

    # Single-use secrets
    EMAIL_VERIFICATION_TTL = timedelta(hours=24)
    PASSWORD_RESET_TTL = timedelta(hours=1)

    # Login guard
    MAX_LOGIN_ATTEMPTS = int(os.getenv("MAX_LOGIN_ATTEMPTS", 5))
    LOCKOUT_DURATION = timedelta(
        seconds=int(os.getenv("LOCKOUT_SECONDS", 2 * 60 * 60))
    )

    # Uploads
    UPLOAD_DIR = os.getenv("UPLOAD_DIR", str(Path("workspace") / "uploads"))
    MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", 10 * 1024 * 1024))
    ALLOWED_UPLOAD_TYPES = os.getenv("ALLOWED_UPLOAD_TYPES", "pdf,jpg,jpeg,png")

    # CORS
    _raw_origins = os.getenv("ORIGINS", "*")
    if _raw_origins.strip() == "*":
        CORS_ORIGINS = "*"
    else:
        CORS_ORIGINS = [o.strip() for o in _raw_origins.split(",") if o.strip()]

    # Rate limiting
    RATE_LIMIT = os.getenv("RATE_LIMIT", "60 per minute")
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_KEY_PREFIX = os.getenv("RATELIMIT_KEY_PREFIX", "")

    # Email delivery (Resend)
    RESEND_API_KEY = os.getenv("RESEND_API_KEY")
    EMAIL_FROM = os.getenv("EMAIL_FROM", "Press Portal <no-reply@example.com>")
    CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:3000")
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")

    # Bootstrap administrator
    DEFAULT_ADMIN_EMAIL = os.getenv("DEFAULT_ADMIN_EMAIL", "")
    DEFAULT_ADMIN_PASSWORD = os.getenv("DEFAULT_ADMIN_PASSWORD", "")
    DEFAULT_ADMIN_FIRSTNAME = os.getenv("DEFAULT_ADMIN_FIRSTNAME", "System")
    DEFAULT_ADMIN_SURNAME = os.getenv("DEFAULT_ADMIN_SURNAME", "Administrator")
    DEFAULT_ADMIN_LASTNAME = os.getenv("DEFAULT_ADMIN_LASTNAME", "Admin")
    DEFAULT_ADMIN_ORG = os.getenv("DEFAULT_ADMIN_ORG", "System Administration")
    DEFAULT_ADMIN_POSITION = os.getenv("DEFAULT_ADMIN_POSITION", "System Administrator")

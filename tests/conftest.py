"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path

import pytest
from flask import Flask, has_app_context
from flask.testing import FlaskClient
from flask_jwt_extended import create_access_token

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402
from models.account import Account  # noqa: E402
from services.notifications import NotificationSender  # noqa: E402

DEFAULT_PASSWORD = "Secret123"


class _BaseTestConfig(Config):
    TESTING = True
    APP_ENV = "testing"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = "test-access-secret"
    JWT_REFRESH_SECRET_KEY = "test-refresh-secret"
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=7)
    RATE_LIMIT = "1000 per minute"
    RESEND_API_KEY = None
    ADMIN_EMAIL = "editors@example.com"
    CLIENT_URL = "https://portal.example.com"
    DEFAULT_ADMIN_EMAIL = ""
    DEFAULT_ADMIN_PASSWORD = ""


class RecordingSender(NotificationSender):
    """Notification sender that keeps messages instead of delivering them."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.outbox: list[dict[str, str]] = []

    def send(self, recipient: str, subject: str, html: str, text: str) -> bool:
        self.outbox.append(
            {"to": recipient, "subject": subject, "html": html, "text": text}
        )
        return True

    def to(self, recipient: str) -> list[dict[str, str]]:
        return [message for message in self.outbox if message["to"] == recipient]


@pytest.fixture()
def app(tmp_path) -> Flask:
    """Create a Flask application instance for tests."""

    upload_dir = tmp_path / "uploads"

    class TestConfig(_BaseTestConfig):
        UPLOAD_DIR = str(upload_dir)

    application = create_app(TestConfig)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def outbox(app: Flask) -> RecordingSender:
    """Replace the email sender with one that records messages."""

    sender = RecordingSender(
        client_url=app.config["CLIENT_URL"],
        admin_email=app.config["ADMIN_EMAIL"],
        verification_ttl=app.config["EMAIL_VERIFICATION_TTL"],
        reset_ttl=app.config["PASSWORD_RESET_TTL"],
    )
    app.extensions["notifier"] = sender
    return sender


@pytest.fixture()
def app_context(app: Flask):
    """Run the test body inside an application context."""

    with app.app_context():
        yield


@pytest.fixture()
def make_account(app: Flask):
    """Return a factory that persists an account and returns its id."""

    def _make(
        email: str = "member@example.com",
        password: str | None = DEFAULT_PASSWORD,
        *,
        role: str = "journalist",
        status: str = "active",
        verified: bool = True,
        **fields,
    ) -> int:
        def _create() -> int:
            defaults = {
                "first_name": "Ada",
                "surname": "Byron",
                "last_name": "Lovelace",
                "publication": "Daily Planet" if role == "journalist" else None,
                "org_name": "Acme PR" if role != "journalist" else None,
            }
            defaults.update(fields)
            account = Account(
                email=email,
                role=role,
                status=status,
                is_email_verified=verified,
                **defaults,
            )
            if password is not None:
                account.set_password(password)
            db.session.add(account)
            db.session.commit()
            return account.id

        if has_app_context():
            return _create()
        with app.app_context():
            return _create()

    return _make


@pytest.fixture()
def auth_headers(app: Flask):
    """Return a factory building bearer headers for an account id."""

    def _headers(account_id: int, **kwargs) -> dict[str, str]:
        with app.app_context():
            token = create_access_token(identity=str(account_id), **kwargs)
        return {"Authorization": f"Bearer {token}"}

    return _headers

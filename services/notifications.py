"""Outbound email notifications delivered through Resend.

Sending never raises: failures are logged and reported as ``False`` so the
state transition that triggered the email is kept.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

import resend
from flask import Flask, current_app

from models.account import Account


def describe_ttl(ttl: timedelta) -> str:
    """Render a token lifetime as "24 hours", "1 hour" or "30 minutes"."""

    minutes = max(int(ttl.total_seconds() // 60), 1)
    if minutes % 60 == 0:
        value, unit = minutes // 60, "hour"
    else:
        value, unit = minutes, "minute"
    return f"{value} {unit}" if value == 1 else f"{value} {unit}s"


def _redact(email: str) -> str:
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


class NotificationSender:
    """Deliver transactional emails, or log them when no API key is set."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        from_email: str = "",
        client_url: str = "",
        admin_email: Optional[str] = None,
        verification_ttl: timedelta = timedelta(hours=24),
        reset_ttl: timedelta = timedelta(hours=1),
    ) -> None:
        self.api_key = api_key
        self.from_email = from_email
        self.client_url = client_url.rstrip("/")
        self.admin_email = admin_email
        self.verification_ttl = verification_ttl
        self.reset_ttl = reset_ttl

    @classmethod
    def from_app(cls, app: Flask) -> "NotificationSender":
        return cls(
            api_key=app.config.get("RESEND_API_KEY"),
            from_email=app.config.get("EMAIL_FROM", ""),
            client_url=app.config.get("CLIENT_URL", ""),
            admin_email=app.config.get("ADMIN_EMAIL"),
            verification_ttl=app.config.get("EMAIL_VERIFICATION_TTL", timedelta(hours=24)),
            reset_ttl=app.config.get("PASSWORD_RESET_TTL", timedelta(hours=1)),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.from_email)

    def send(self, recipient: str, subject: str, html: str, text: str) -> bool:
        """Send a single email and report whether it was accepted."""

        if not self.is_configured:
            current_app.logger.info(
                "Email delivery not configured; to=%s subject=%r body=%s",
                _redact(recipient),
                subject,
                text[:200],
            )
            return True

        resend.api_key = self.api_key
        try:
            response = resend.Emails.send(
                {
                    "from": self.from_email,
                    "to": [recipient],
                    "subject": subject,
                    "html": html,
                    "text": text,
                }
            )
        except Exception:
            current_app.logger.warning(
                "Failed to send %r to %s", subject, _redact(recipient), exc_info=True
            )
            return False

        current_app.logger.info(
            "Email %r sent to %s (id=%s)",
            subject,
            _redact(recipient),
            response.get("id") if isinstance(response, dict) else None,
        )
        return True

    def send_verification_email(self, account: Account, token: str) -> bool:
        url = f"{self.client_url}/verify-email?token={token}"
        expires = describe_ttl(self.verification_ttl)
        text = (
            f"Hello {account.first_name}, please verify your email address for your "
            f"{account.role} account: {url} This link expires in {expires}."
        )
        html = (
            f"<p>Hello {account.first_name},</p>"
            f"<p>Please verify your email address for your {account.role} account.</p>"
            f'<p><a href="{url}">Verify email address</a></p>'
            f"<p>This link expires in {expires}.</p>"
        )
        return self.send(account.email, "Verify your email", html, text)

    def send_password_reset_email(self, account: Account, token: str) -> bool:
        url = f"{self.client_url}/reset-password?token={token}"
        expires = describe_ttl(self.reset_ttl)
        text = (
            f"Hello {account.first_name}, reset your password here: {url} "
            f"This link expires in {expires}."
        )
        html = (
            f"<p>Hello {account.first_name},</p>"
            f'<p><a href="{url}">Reset your password</a></p>'
            f"<p>This link expires in {expires}.</p>"
        )
        return self.send(account.email, "Reset your password", html, text)

    def send_approval_request(self, account: Account) -> bool:
        """Ask the administrators to review a newly verified journalist."""

        if not self.admin_email:
            current_app.logger.info(
                "No ADMIN_EMAIL configured; skipping approval request for account %s",
                account.id,
            )
            return False
        text = (
            f"{account.full_name} ({account.email}) from {account.publication or 'an unknown publication'} "
            "has verified their email and is awaiting approval."
        )
        html = f"<p>{text}</p>"
        return self.send(self.admin_email, "Journalist awaiting approval", html, text)

    def send_review_outcome(self, account: Account, approved: bool) -> bool:
        if approved:
            subject = "Your account has been approved"
            text = f"Hello {account.first_name}, your account is now active. {self.client_url}/login"
        else:
            subject = "Your account application was not approved"
            text = (
                f"Hello {account.first_name}, your account application was not approved. "
                "Please contact support for details."
            )
        return self.send(account.email, subject, f"<p>{text}</p>", text)


def init_notifications(app: Flask) -> None:
    app.extensions["notifier"] = NotificationSender.from_app(app)


def get_notifier() -> NotificationSender:
    return current_app.extensions["notifier"]

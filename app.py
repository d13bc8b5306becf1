"""Application factory."""

import json
import logging
import os
import uuid
from typing import Optional

import click
from flask import Flask, g, jsonify, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config import Config
from models import db
from routes.admin import admin_bp
from routes.auth import auth_bp
from routes.portal import comms_bp, journalist_bp
from services.access import init_access
from services.lifecycle import ensure_default_admin
from services.notifications import init_notifications
from utils.errors import ServerError

migrate = Migrate()
limiter = Limiter(key_func=get_remote_address)


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    if app.config["JWT_SECRET_KEY"] == app.config["JWT_REFRESH_SECRET_KEY"]:
        raise RuntimeError(
            "JWT_SECRET_KEY and JWT_REFRESH_SECRET_KEY must be different values."
        )

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    init_access(app)
    init_notifications(app)

    # CORS
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Rate limiting
    storage_uri = app.config.get("RATELIMIT_STORAGE_URI", "memory://")
    headers_enabled = app.config.get("RATELIMIT_HEADERS_ENABLED", True)
    key_prefix = app.config.get("RATELIMIT_KEY_PREFIX") or str(uuid.uuid4())

    global limiter
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[lambda: app.config.get("RATE_LIMIT", "60 per minute")],
        storage_uri=storage_uri,
        headers_enabled=headers_enabled,
        key_prefix=key_prefix,
    )
    limiter.init_app(app)
    app.config["RATELIMIT_KEY_PREFIX"] = key_prefix

    # Ensure uploads directory exists
    upload_dir = app.config.get("UPLOAD_DIR")
    if upload_dir:
        os.makedirs(upload_dir, exist_ok=True)

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(admin_bp, url_prefix="/admin")
    app.register_blueprint(journalist_bp, url_prefix="/journalist")
    app.register_blueprint(comms_bp, url_prefix="/comms")

    # Health
    @app.route("/health", methods=["GET"])
    def health_check():
        return jsonify({"status": "ok"})

    _register_cli_commands(app)

    # Errors
    _register_error_handlers(app)

    return app


def _register_cli_commands(app: Flask) -> None:
    @app.cli.command("init-admin")
    def init_admin_command():
        """Create the configured default administrator if it is missing."""
        result = ensure_default_admin()
        if result.created:
            click.echo(f"Default admin created: {result.account.email}")
        else:
            click.echo(f"Default admin not created: {result.reason}")


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():  # pragma: no cover
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):  # pragma: no cover
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response

    def _render(error: HTTPException, detail: Optional[str] = None):
        request_id = g.get("request_id") or str(uuid.uuid4())
        response = error.get_response()
        payload = {
            "success": False,
            "error": getattr(error, "name", "Error"),
            "message": error.description,
            "request_id": request_id,
        }
        field_errors = getattr(error, "errors", None)
        if field_errors:
            payload["errors"] = field_errors
        if detail:
            payload["detail"] = detail
        response.data = json.dumps(payload)
        response.content_type = "application/json"
        response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        return _render(error)

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        db.session.rollback()
        app.logger.exception("Unhandled application error", exc_info=error)
        detail = None
        if app.config.get("SHOW_ERROR_DETAILS"):
            detail = f"{error.__class__.__name__}: {error}"
        return _render(ServerError("An unexpected error occurred."), detail)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))

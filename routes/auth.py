"""Authentication blueprint: registration, login, verification and reset."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, g, jsonify, request
from werkzeug.datastructures import FileStorage

from models.account import account_view
from services import lifecycle
from services.access import account_required, current_account
from storage import LocalStorage, store_upload
from utils.request_validation import (
    normalize_interests,
    parse_form_or_json,
    parse_json_request,
)

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/register/journalist", methods=["POST"])
def register_journalist() -> tuple:
    """Register a journalist; accepts JSON or a multipart form with ``license``."""

    payload = parse_form_or_json(request)
    interests = normalize_interests(payload.get("interests"))

    license_file = None
    upload = request.files.get("license")
    if isinstance(upload, FileStorage) and upload.filename:
        license_file = store_upload(upload, field="license")

    try:
        account = lifecycle.register_journalist(
            payload, interests=interests, license_file=license_file
        )
    except Exception:
        LocalStorage(current_app.config.get("UPLOAD_DIR")).discard(license_file)
        raise

    return (
        jsonify(
            {
                "success": True,
                "message": (
                    "Journalist registered successfully! Please check your email for "
                    "verification. Your account will be activated after admin approval."
                ),
                "data": {"user": account_view(account)},
            }
        ),
        HTTPStatus.CREATED,
    )


@auth_bp.route("/register/comms", methods=["POST"])
def register_comms() -> tuple:
    """Register a communications professional."""

    payload = parse_json_request(request)
    interests = normalize_interests(payload.get("interests"))
    account = lifecycle.register_comms(payload, interests=interests)

    return (
        jsonify(
            {
                "success": True,
                "message": "Registration successful! Please check your email for verification.",
                "data": {"user": account_view(account)},
            }
        ),
        HTTPStatus.CREATED,
    )


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple:
    """Authenticate and return an access and refresh token."""

    payload = parse_json_request(request)
    result = lifecycle.login(payload.get("email"), payload.get("password"))

    return (
        jsonify(
            {
                "success": True,
                "message": result.message,
                "data": {
                    "access_token": result.access_token,
                    "refresh_token": result.refresh_token,
                    "pending_approval": result.pending_approval,
                    "user": account_view(result.account),
                },
            }
        ),
        HTTPStatus.OK,
    )


@auth_bp.route("/verify-email", methods=["POST"])
def verify_email() -> tuple:
    payload = parse_json_request(request)
    account, message = lifecycle.verify_email(payload.get("token"))
    return (
        jsonify(
            {"success": True, "message": message, "data": {"user": account_view(account)}}
        ),
        HTTPStatus.OK,
    )


@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password() -> tuple:
    payload = parse_json_request(request)
    message = lifecycle.request_password_reset(payload.get("email"))
    return jsonify({"success": True, "message": message}), HTTPStatus.OK


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password() -> tuple:
    payload = parse_json_request(request)
    lifecycle.reset_password(
        payload.get("token"),
        payload.get("password"),
        payload.get("confirm_password"),
    )
    return (
        jsonify(
            {
                "success": True,
                "message": "Password reset successfully! You can now login with your new password.",
            }
        ),
        HTTPStatus.OK,
    )


@auth_bp.route("/refresh-token", methods=["POST"])
def refresh_token() -> tuple:
    payload = parse_json_request(request)
    _, access_token = lifecycle.refresh_session(payload.get("refresh_token"))
    return (
        jsonify({"success": True, "data": {"access_token": access_token}}),
        HTTPStatus.OK,
    )


@auth_bp.route("/logout", methods=["POST"])
def logout() -> tuple:
    """Session tokens are stateless; the client discards them."""

    return jsonify({"success": True, "message": "Logged out successfully"}), HTTPStatus.OK


@auth_bp.route("/me", methods=["GET"])
@account_required(allow_pending=True)
def me() -> tuple:
    """Return the authenticated account."""

    return (
        jsonify(
            {
                "success": True,
                "data": {
                    "user": account_view(current_account()),
                    "pending_approval": g.pending_approval,
                },
            }
        ),
        HTTPStatus.OK,
    )

"""Admin blueprint: account review and moderation."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request, send_file
from flask.typing import ResponseReturnValue

from models.account import ROLES, STATUSES, Account, account_view
from services import lifecycle
from services.access import account_required, current_account
from storage import LocalStorage
from utils.errors import NotFoundError, ValidationError
from utils.request_validation import parse_json_request, parse_positive_int

admin_bp = Blueprint("admin", __name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


def _account_response(account: Account, message: str | None = None) -> ResponseReturnValue:
    body: dict[str, object] = {"success": True, "data": {"user": account_view(account)}}
    if message:
        body["message"] = message
    return jsonify(body)


@admin_bp.route("/users", methods=["GET"])
@account_required("admin")
def list_users() -> ResponseReturnValue:
    """List accounts with pagination and optional role/status/text filters."""

    role = request.args.get("role") or None
    status = request.args.get("status") or None
    if role is not None and role not in ROLES:
        raise ValidationError(errors={"role": "Invalid role."})
    if status is not None and status not in STATUSES:
        raise ValidationError(errors={"status": "Invalid status."})

    page = parse_positive_int(request.args.get("page"), 1)
    per_page = parse_positive_int(
        request.args.get("limit"), DEFAULT_PAGE_SIZE, maximum=MAX_PAGE_SIZE
    )
    pagination = lifecycle.list_accounts(
        page=page,
        per_page=per_page,
        role=role,
        status=status,
        search=(request.args.get("q") or "").strip() or None,
    )

    return jsonify(
        {
            "success": True,
            "data": [account_view(account) for account in pagination.items],
            "pagination": {
                "current": pagination.page,
                "pages": pagination.pages,
                "total": pagination.total,
                "per_page": pagination.per_page,
            },
        }
    )


@admin_bp.route("/users/<int:account_id>", methods=["GET"])
@account_required("admin")
def get_user(account_id: int) -> ResponseReturnValue:
    return _account_response(lifecycle.get_account(account_id))


@admin_bp.route("/users/<int:account_id>/license", methods=["GET"])
@account_required("admin")
def download_license(account_id: int):
    """Allow an administrator to download a journalist's license artifact."""

    account = lifecycle.get_account(account_id)
    reference = account.license_file or {}
    storage = LocalStorage(current_app.config.get("UPLOAD_DIR"))
    if not reference.get("path") or not storage.exists(reference["path"]):
        raise NotFoundError("Stored file could not be found.")

    return send_file(
        storage.open(reference["path"]),
        mimetype=reference.get("mimetype") or "application/octet-stream",
        as_attachment=True,
        download_name=reference.get("original_name") or reference.get("filename"),
    )


@admin_bp.route("/journalists/pending", methods=["GET"])
@account_required("admin")
def pending_journalists() -> ResponseReturnValue:
    """Return journalists waiting for approval, newest first."""

    pending = (
        Account.query.filter_by(role="journalist", status="pending")
        .order_by(Account.created_at.desc(), Account.id.desc())
        .all()
    )
    return jsonify({"success": True, "data": [account_view(a) for a in pending]})


@admin_bp.route("/journalists/<int:account_id>/approve", methods=["PUT"])
@account_required("admin")
def approve_journalist(account_id: int) -> ResponseReturnValue:
    account = lifecycle.approve_account(
        current_account(), account_id, expected_role="journalist"
    )
    return _account_response(account, "Journalist approved successfully")


@admin_bp.route("/journalists/<int:account_id>/reject", methods=["PUT"])
@account_required("admin")
def reject_journalist(account_id: int) -> ResponseReturnValue:
    account = lifecycle.reject_account(
        current_account(), account_id, expected_role="journalist"
    )
    return _account_response(account, "Journalist rejected successfully")


@admin_bp.route("/users/<int:account_id>/approve", methods=["PUT"])
@account_required("admin")
def approve_user(account_id: int) -> ResponseReturnValue:
    account = lifecycle.approve_account(current_account(), account_id)
    return _account_response(account, "Account approved successfully")


@admin_bp.route("/users/<int:account_id>/reject", methods=["PUT"])
@account_required("admin")
def reject_user(account_id: int) -> ResponseReturnValue:
    account = lifecycle.reject_account(current_account(), account_id)
    return _account_response(account, "Account rejected successfully")


@admin_bp.route("/users/<int:account_id>/role", methods=["PUT"])
@account_required("admin")
def update_role(account_id: int) -> ResponseReturnValue:
    payload = parse_json_request(request, required_keys=["role"])
    account = lifecycle.set_role(current_account(), account_id, payload["role"])
    return _account_response(account, "User role updated successfully")


@admin_bp.route("/users/<int:account_id>/status", methods=["PUT"])
@account_required("admin")
def update_status(account_id: int) -> ResponseReturnValue:
    payload = parse_json_request(request, required_keys=["status"])
    account = lifecycle.set_status(current_account(), account_id, payload["status"])
    return _account_response(account, "User status updated successfully")


@admin_bp.route("/users/<int:account_id>", methods=["DELETE"])
@account_required("admin")
def delete_user(account_id: int) -> ResponseReturnValue:
    lifecycle.delete_account(current_account(), account_id)
    return jsonify({"success": True, "message": "User deleted successfully"})

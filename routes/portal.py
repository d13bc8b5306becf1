"""Role-gated portal areas for journalists and communications professionals."""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request
from flask.typing import ResponseReturnValue

from models.account import account_view
from services import lifecycle
from services.access import account_required, current_account
from utils.request_validation import normalize_interests, parse_json_request

journalist_bp = Blueprint("journalist", __name__)
comms_bp = Blueprint("comms", __name__)


def _update_own_profile() -> ResponseReturnValue:
    payload = parse_json_request(request)
    interests = None
    if "interests" in payload:
        interests = normalize_interests(payload["interests"])
    account = lifecycle.update_profile(current_account(), payload, interests=interests)
    return jsonify(
        {
            "success": True,
            "message": "Profile updated successfully",
            "data": {"user": account_view(account)},
        }
    )


@journalist_bp.route("/profile", methods=["GET"])
@account_required("journalist", allow_pending=True)
def journalist_profile() -> ResponseReturnValue:
    """Available while the journalist is still awaiting approval."""

    return jsonify(
        {
            "success": True,
            "data": {
                "user": account_view(current_account()),
                "pending_approval": g.pending_approval,
            },
        }
    )


@journalist_bp.route("/profile", methods=["PUT"])
@account_required("journalist", allow_pending=True)
def update_journalist_profile() -> ResponseReturnValue:
    return _update_own_profile()


@journalist_bp.route("/dashboard", methods=["GET"])
@account_required("journalist")
def journalist_dashboard() -> ResponseReturnValue:
    return jsonify(
        {
            "success": True,
            "message": "Welcome to Journalist Dashboard",
            "data": {"user": account_view(current_account())},
        }
    )


@comms_bp.route("/profile", methods=["GET"])
@account_required("comms")
def comms_profile() -> ResponseReturnValue:
    return jsonify({"success": True, "data": {"user": account_view(current_account())}})


@comms_bp.route("/profile", methods=["PUT"])
@account_required("comms")
def update_comms_profile() -> ResponseReturnValue:
    return _update_own_profile()


@comms_bp.route("/dashboard", methods=["GET"])
@account_required("comms")
def comms_dashboard() -> ResponseReturnValue:
    return jsonify(
        {
            "success": True,
            "message": "Welcome to Communications Dashboard",
            "data": {"user": account_view(current_account())},
        }
    )

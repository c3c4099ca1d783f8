"""
User directory blueprint.

Endpoints:
    GET   /api/v1/users?role=
    GET   /api/v1/users/<id>
    PATCH /api/v1/users/<id>
"""

from flask import Blueprint, request

from legal_desk.middleware.permission_required import current_identity, require_identity
from legal_desk.services import user_service
from legal_desk.utils.errors import api_ok
from legal_desk.utils.helpers import request_json

user_bp = Blueprint("user_bp", __name__, url_prefix="/api/v1/users")


@user_bp.route("", methods=["GET"])
def list_users():
    """Active users ordered by name, optionally filtered by role."""
    users = user_service.list_users(role=request.args.get("role") or None)
    return api_ok([u.to_dict() for u in users])


@user_bp.route("/<user_id>", methods=["GET"])
def get_user(user_id):
    return api_ok(user_service.get_user(user_id).to_dict())


@user_bp.route("/<user_id>", methods=["PATCH"])
@require_identity
def update_user(user_id):
    user = user_service.update_user(user_id, request_json(), current_identity())
    return api_ok(user.to_dict())

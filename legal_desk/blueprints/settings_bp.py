"""
Settings blueprint — form configuration.

Endpoints:
    GET/POST /api/v1/settings/forms
    GET      /api/v1/settings/forms/<form_id>
"""

from flask import Blueprint

from legal_desk.middleware.permission_required import require_capability
from legal_desk.services import form_config_service
from legal_desk.utils.errors import api_ok
from legal_desk.utils.helpers import request_json

settings_bp = Blueprint("settings_bp", __name__, url_prefix="/api/v1/settings")


@settings_bp.route("/forms", methods=["GET"])
def list_forms():
    return api_ok([c.to_dict() for c in form_config_service.list_form_configs()])


@settings_bp.route("/forms", methods=["POST"])
@require_capability("form_config.manage")
def save_form():
    """Create or update one form config. The docs list is replaced wholesale."""
    config = form_config_service.upsert_form_config(request_json())
    return api_ok(config.to_dict())


@settings_bp.route("/forms/<int:form_id>", methods=["GET"])
def get_form(form_id):
    return api_ok(form_config_service.get_form_config(form_id).to_dict())

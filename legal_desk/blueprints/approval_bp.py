"""
Approval blueprint — role actions on a submission.

Endpoints:
    POST /api/v1/submissions/<id>/approve
        body: {"role": "...", "action": "...", ...action extras}
"""

from flask import Blueprint

from legal_desk.middleware.permission_required import current_identity, require_identity
from legal_desk.services.submission_service import get_submission
from legal_desk.services.workflow_service import available_actions, perform_action
from legal_desk.utils.errors import api_ok
from legal_desk.utils.helpers import request_json

approval_bp = Blueprint("approval_bp", __name__, url_prefix="/api/v1")


@approval_bp.route("/submissions/<submission_id>/approve", methods=["POST"])
@require_identity
def submission_action(submission_id):
    """
    Perform a workflow action in the capacity of ``role``.

    ``role`` defaults to the caller's own role. Every other key of the body
    is passed through to the action (comment, assigned_legal_officer,
    special_approvers, court_officer_id, doc_statuses, ...).

    Returns the updated submission plus the actions ``role`` may take next.
    """
    identity = current_identity()
    payload = dict(request_json())
    role = payload.pop("role", None) or identity.role.value
    action = payload.pop("action", None)

    submission = perform_action(submission_id, identity, role, action, payload)

    data = get_submission(submission.id)
    data["available_actions"] = available_actions(submission, role)
    return api_ok(data)

"""
Submission blueprint — CRUD, document checklist and comments.

Endpoints:
    Submission:  GET/POST /submissions, GET/PATCH/DELETE /submissions/<id>
    Documents:   POST /submissions/<id>/documents
    Comments:    GET/POST /submissions/<id>/comments

Workflow actions live in approval_bp; statistics in dashboard_bp.
"""

from flask import Blueprint, request

from legal_desk.middleware.permission_required import (
    current_identity,
    require_capability,
    require_identity,
)
from legal_desk.models.submission import SubmissionDocument
from legal_desk.services import comment_service, submission_service
from legal_desk.utils.errors import api_ok
from legal_desk.utils.helpers import request_json

submission_bp = Blueprint("submission_bp", __name__, url_prefix="/api/v1")


# ═════════════════════════════════════════════════════════════════════════════
# Submission CRUD
# ═════════════════════════════════════════════════════════════════════════════

@submission_bp.route("/submissions", methods=["GET"])
def list_submissions():
    """List submissions, optionally filtered by status and initiator_id."""
    return api_ok(submission_service.list_submissions(
        status=request.args.get("status") or None,
        initiator_id=request.args.get("initiator_id") or None,
    ))


@submission_bp.route("/submissions", methods=["POST"])
@require_capability("submissions.create")
def create_submission():
    """Create a submission with its parties, checklist and approval rows."""
    submission = submission_service.create_submission(request_json(), current_identity())
    return api_ok(submission.to_dict(), 201)


@submission_bp.route("/submissions/<submission_id>", methods=["GET"])
def get_submission(submission_id):
    return api_ok(submission_service.get_submission(submission_id))


@submission_bp.route("/submissions/<submission_id>", methods=["PATCH"])
@require_identity
def update_submission(submission_id):
    """Status/stage/admin fields, draft fields, or a document upload/review."""
    result = submission_service.update_submission(submission_id, request_json(), current_identity())
    if isinstance(result, SubmissionDocument):
        return api_ok(result.to_dict())
    return api_ok(submission_service.get_submission(result.id))


@submission_bp.route("/submissions/<submission_id>", methods=["DELETE"])
@require_identity
def delete_submission(submission_id):
    submission_service.delete_submission(submission_id, current_identity())
    return api_ok({"deleted": submission_id})


# ═════════════════════════════════════════════════════════════════════════════
# Documents
# ═════════════════════════════════════════════════════════════════════════════

@submission_bp.route("/submissions/<submission_id>/documents", methods=["POST"])
@require_identity
def add_document(submission_id):
    """Append an ad-hoc document to the checklist."""
    doc = submission_service.add_document(submission_id, request_json(), current_identity())
    return api_ok(doc.to_dict(), 201)


# ═════════════════════════════════════════════════════════════════════════════
# Comments
# ═════════════════════════════════════════════════════════════════════════════

@submission_bp.route("/submissions/<submission_id>/comments", methods=["GET"])
def list_comments(submission_id):
    return api_ok([c.to_dict() for c in comment_service.list_comments(submission_id)])


@submission_bp.route("/submissions/<submission_id>/comments", methods=["POST"])
@require_capability("comments.post")
def add_comment(submission_id):
    """Append a comment. Author fields default to the caller's identity."""
    data = request_json()
    identity = current_identity()
    comment = comment_service.add_comment(
        submission_id,
        data.get("author_name") or identity.name,
        data.get("author_role") or identity.role.value,
        data.get("text"),
    )
    return api_ok(comment.to_dict(), 201)

"""
Upload blueprint.

Endpoints:
    POST /api/v1/upload            multipart ``file`` + ``submission_id``
    GET  /uploads/<folder>/<name>  serve a stored file
"""

from flask import Blueprint, current_app, request, send_from_directory

from legal_desk.middleware.permission_required import require_identity
from legal_desk.services.upload_service import save_upload
from legal_desk.utils.errors import api_ok

upload_bp = Blueprint("upload_bp", __name__)


@upload_bp.route("/api/v1/upload", methods=["POST"])
@require_identity
def upload_file():
    """Store one file; the returned url is then attached via PATCH /submissions/<id>."""
    result = save_upload(request.files.get("file"), request.form.get("submission_id"))
    return api_ok(result, 201)


@upload_bp.route("/uploads/<path:filename>", methods=["GET"])
def serve_upload(filename):
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename)

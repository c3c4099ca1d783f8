"""
Local upload drop.

Files land in ``<UPLOAD_FOLDER>/<submission_id|misc>/<millis>_<name>`` and are
served back under ``/uploads/...``. The returned URL is what callers then
PATCH onto a submission document.
"""

import logging
import os
import time

from flask import current_app
from werkzeug.utils import secure_filename

from legal_desk.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

MISC_FOLDER = "misc"


def _folder_name(submission_id):
    return secure_filename(submission_id or "") or MISC_FOLDER


def save_upload(file_storage, submission_id=None):
    """
    Persist an uploaded file.

    Args:
        file_storage: werkzeug FileStorage from ``request.files``.
        submission_id: Owning submission; files without one go to ``misc``.

    Returns:
        ``{"url": "/uploads/<folder>/<filename>", "filename": <filename>}``
    """
    if file_storage is None or not file_storage.filename:
        raise ValidationError("No file provided", details={"file": "required"})

    original = secure_filename(file_storage.filename)
    if not original:
        raise ValidationError("Invalid file name", details={"file": "invalid"})

    folder = _folder_name(submission_id)
    upload_dir = os.path.join(current_app.config["UPLOAD_FOLDER"], folder)
    os.makedirs(upload_dir, exist_ok=True)

    filename = f"{int(time.time() * 1000)}_{original}"
    file_storage.save(os.path.join(upload_dir, filename))

    url = f"/uploads/{folder}/{filename}"
    logger.info("Stored upload %s", url, extra={"submission_id": submission_id})
    return {"url": url, "filename": filename}

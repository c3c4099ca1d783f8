"""
Comment log — append-only discussion per submission.
"""

import logging

from sqlalchemy import select

from legal_desk.core.exceptions import NotFoundError, ValidationError
from legal_desk.models import db
from legal_desk.models.submission import Submission, SubmissionComment
from legal_desk.utils.helpers import db_commit_or_raise, utcnow

logger = logging.getLogger(__name__)


def _ensure_submission(submission_id):
    if db.session.get(Submission, submission_id) is None:
        raise NotFoundError(resource="Submission", resource_id=submission_id)


def list_comments(submission_id):
    """Comments oldest first (id breaks ties)."""
    _ensure_submission(submission_id)
    return db.session.execute(
        select(SubmissionComment)
        .where(SubmissionComment.submission_id == submission_id)
        .order_by(SubmissionComment.created_at, SubmissionComment.id)
    ).scalars().all()


def add_comment(submission_id, author_name, author_role, text):
    """Append one comment. ``text`` is stored trimmed."""
    author_name = (author_name or "").strip()
    author_role = (author_role or "").strip()
    text = (text or "").strip()
    missing = {
        key: "required"
        for key, value in (("author_name", author_name), ("author_role", author_role), ("text", text))
        if not value
    }
    if missing:
        raise ValidationError("author_name, author_role and text are required", details=missing)
    _ensure_submission(submission_id)

    comment = SubmissionComment(
        submission_id=submission_id,
        author_name=author_name,
        author_role=author_role,
        text=text,
        created_at=utcnow(),
    )
    db.session.add(comment)
    db_commit_or_raise("Comment")
    logger.info("Comment added to submission %s by %s", submission_id, author_role,
                extra={"submission_id": submission_id})
    return comment

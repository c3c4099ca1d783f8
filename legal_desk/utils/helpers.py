"""Shared utility functions.

utcnow:             naive-UTC clock used for every persisted timestamp
isoformat:          datetime → ISO string with a ``Z`` suffix (None-safe)
db_commit_or_raise: commit, translating driver errors into domain exceptions
request_json:       request body as a dict; anything but a JSON object is a 400
"""
import logging
from datetime import datetime, timezone

from flask import request
from sqlalchemy.exc import IntegrityError, OperationalError

from legal_desk.core.exceptions import ConflictError, PersistenceError, ValidationError
from legal_desk.models import db

logger = logging.getLogger(__name__)


def utcnow():
    """Current UTC time as a naive datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value):
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.isoformat() + "Z"
    return value.isoformat()


# ── Database commit helper ───────────────────────────────────────────────────

def db_commit_or_raise(resource="Record"):
    """Commit the current session or roll back and raise a domain error.

    IntegrityError   → ConflictError (409)
    OperationalError → PersistenceError (500)
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on commit: %s", exc.orig)
        raise ConflictError(resource, "constraint") from exc
    except OperationalError as exc:
        db.session.rollback()
        logger.exception("Database operational error on commit")
        raise PersistenceError() from exc


# ── Request body ─────────────────────────────────────────────────────────────

def request_json():
    """The JSON body of the current request as a dict.

    An empty or unparseable body reads as ``{}``; a body that parses to
    anything other than an object raises ValidationError.
    """
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object", details={"body": "invalid"})
    return data

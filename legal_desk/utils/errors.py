"""Standardised API error responses.

Usage
-----
    from legal_desk.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Submission not found")
    return api_error(E.VALIDATION_REQUIRED, "title is required")

Domain exceptions raised by services are turned into the same payload by the
handlers that ``register_error_handlers`` installs on the app.
"""

from __future__ import annotations

import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

from legal_desk.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants (``ERR_`` prefix)."""

    # Validation – HTTP 400
    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"

    # Auth – HTTP 401 / 403
    UNAUTHORIZED = "ERR_UNAUTHORIZED"
    FORBIDDEN = "ERR_FORBIDDEN"

    # Not-found – HTTP 404
    NOT_FOUND = "ERR_NOT_FOUND"

    # Conflict / duplicate – HTTP 409
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"

    # Server – HTTP 500
    DATABASE = "ERR_DATABASE"
    INTERNAL = "ERR_INTERNAL"

    # Framework-level
    METHOD_NOT_ALLOWED = "ERR_METHOD_NOT_ALLOWED"
    PAYLOAD_TOO_LARGE = "ERR_PAYLOAD_TOO_LARGE"
    UNSUPPORTED_MEDIA = "ERR_UNSUPPORTED_MEDIA"
    RATE_LIMITED = "ERR_RATE_LIMITED"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.UNAUTHORIZED: 401,
    E.FORBIDDEN: 403,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.DATABASE: 500,
    E.INTERNAL: 500,
    E.METHOD_NOT_ALLOWED: 405,
    E.PAYLOAD_TOO_LARGE: 413,
    E.UNSUPPORTED_MEDIA: 415,
    E.RATE_LIMITED: 429,
}

_HTTP_CODES: dict[int, str] = {
    400: E.VALIDATION_INVALID,
    401: E.UNAUTHORIZED,
    403: E.FORBIDDEN,
    404: E.NOT_FOUND,
    405: E.METHOD_NOT_ALLOWED,
    409: E.CONFLICT_DUPLICATE,
    413: E.PAYLOAD_TOO_LARGE,
    415: E.UNSUPPORTED_MEDIA,
    429: E.RATE_LIMITED,
}


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable explanation for developers / UI.
    status : int, optional
        HTTP status override.  Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict, optional
        Extra structured payload (field-level validation failures, ...).

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """

    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "success": False,
        "error": message,
        "code": code,
    }
    if details:
        body["details"] = details

    return jsonify(body), http_status


def api_ok(data, status: int = 200):
    """Return the success envelope ``{"success": true, "data": ...}``."""
    return jsonify({"success": True, "data": data}), status


def register_error_handlers(app):
    """Map domain exceptions and HTTP errors to the standard payload."""

    @app.errorhandler(ValidationError)
    def _validation(exc):
        code = E.VALIDATION_REQUIRED if exc.details and all(
            v == "required" for v in exc.details.values()
        ) else E.VALIDATION_INVALID
        return api_error(code, str(exc), details=exc.details)

    @app.errorhandler(UnauthorizedError)
    def _unauthorized(exc):
        return api_error(E.UNAUTHORIZED, str(exc))

    @app.errorhandler(PermissionDeniedError)
    def _forbidden(exc):
        logger.info("Permission denied: capability=%s", exc.capability)
        return api_error(E.FORBIDDEN, str(exc))

    @app.errorhandler(NotFoundError)
    def _not_found(exc):
        return api_error(E.NOT_FOUND, str(exc))

    @app.errorhandler(ConflictError)
    def _conflict(exc):
        return api_error(E.CONFLICT_DUPLICATE, str(exc))

    @app.errorhandler(PersistenceError)
    def _persistence(exc):
        logger.error("Persistence failure: %s", exc.__cause__ or exc, exc_info=exc)
        return api_error(E.DATABASE, str(exc))

    @app.errorhandler(HTTPException)
    def _http(exc):
        code = _HTTP_CODES.get(exc.code, E.INTERNAL)
        return api_error(code, exc.description or exc.name, status=exc.code)

    @app.errorhandler(500)
    def _server_error(exc):
        logger.error("500 error: %s", exc, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")

"""
Permission Decorators — JWT-aware role/capability checks for route protection.

Usage:
    @submission_bp.route("/submissions", methods=["POST"])
    @require_identity
    def create_submission():
        identity = current_identity()
        ...

    @settings_bp.route("/settings/forms", methods=["POST"])
    @require_capability("form_config.manage")
    def upsert_form_config():
        ...

Failures raise UnauthorizedError / PermissionDeniedError; the app-wide
error handlers render them.
"""

import functools
import logging

from flask import g

from legal_desk.core.exceptions import PermissionDeniedError, UnauthorizedError

logger = logging.getLogger(__name__)


def current_identity():
    """Return the verified Identity for this request, or None."""
    return getattr(g, "identity", None)


def require_identity(f):
    """Decorator: reject the request with 401 unless a valid JWT was presented."""

    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if current_identity() is None:
            raise UnauthorizedError()
        return f(*args, **kwargs)

    return decorated


def require_capability(codename: str):
    """
    Decorator: require the caller's role to grant ``codename``.

    Args:
        codename: Capability codename, e.g. "users.manage"
    """
    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            identity = current_identity()
            if identity is None:
                raise UnauthorizedError()
            if not identity.can(codename):
                logger.warning(
                    "User %s (%s) denied: missing capability '%s' on %s",
                    identity.user_id, identity.role.value, codename, f.__name__,
                )
                raise PermissionDeniedError(codename)
            return f(*args, **kwargs)
        return decorated
    return decorator

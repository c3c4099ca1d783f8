"""
JWT Auth Middleware — Parses JWT from Authorization header, sets g.jwt_*.

Sets:
  g.jwt_user_id   subject claim (None when no valid token)
  g.jwt_role      Role enum
  g.identity      legal_desk.core.roles.Identity, or None

An invalid or expired token does not fail the request here; routes that
need an identity reject it through ``require_identity``.
"""

import logging

import jwt as pyjwt
from flask import g, request

from legal_desk.services.jwt_service import decode_access_token, identity_from_claims

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/health",
    "/uploads/",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.jwt_user_id = None
        g.jwt_role = None
        g.identity = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        token = auth_header[7:]  # Strip "Bearer "

        try:
            payload = decode_access_token(token)
        except pyjwt.ExpiredSignatureError:
            logger.info("Expired JWT on %s", path)
            return
        except pyjwt.InvalidTokenError as exc:
            logger.info("Invalid JWT on %s: %s", path, exc)
            return

        identity = identity_from_claims(payload)
        g.identity = identity
        g.jwt_user_id = identity.user_id
        g.jwt_role = identity.role

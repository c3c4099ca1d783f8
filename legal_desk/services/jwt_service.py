"""
JWT Service — Access token generation and verification.

Access token: 1 hour (configurable via JWT_ACCESS_TOKEN_EXPIRES)
Algorithm:    HS256

Tokens are minted by the identity provider in production; ``issue-token``
(CLI) mints them locally for development and tests.

Token payload:
{
    "sub": <user_id>,
    "role": "LEGAL_OFFICER",
    "email": "...",
    "name": "...",
    "type": "access",
    "iat": <issued_at>,
    "exp": <expires_at>,
    "jti": <unique_id>
}
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from legal_desk.core.roles import Identity, Role


DEFAULT_ACCESS_EXPIRES = 3600
ALGORITHM = "HS256"


def _get_secret():
    """Get the JWT secret key from app config."""
    return current_app.config.get("JWT_SECRET_KEY") or current_app.config["SECRET_KEY"]


def _get_access_expires():
    return current_app.config.get("JWT_ACCESS_TOKEN_EXPIRES", DEFAULT_ACCESS_EXPIRES)


def generate_access_token(user_id: str, role, email: str = "", name: str = "") -> str:
    """Generate a signed access token for a directory user."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": getattr(role, "value", role),
        "email": email or "",
        "name": name or "",
        "type": "access",
        "iat": now,
        "exp": now + timedelta(seconds=_get_access_expires()),
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, _get_secret(), algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Decode and verify an access token.

    Raises jwt.exceptions on failure (ExpiredSignatureError, InvalidTokenError, etc.)
    """
    payload = jwt.decode(token, _get_secret(), algorithms=[ALGORITHM])
    if payload.get("type") != "access":
        raise jwt.InvalidTokenError(f"Expected access token, got {payload.get('type')}")
    if not payload.get("sub"):
        raise jwt.InvalidTokenError("Token has no subject")
    if Role.parse(payload.get("role")) is None:
        raise jwt.InvalidTokenError(f"Unknown role {payload.get('role')!r}")
    return payload


def identity_from_claims(payload: dict) -> Identity:
    return Identity(
        user_id=str(payload["sub"]),
        role=Role.parse(payload["role"]),
        email=payload.get("email") or "",
        name=payload.get("name") or "",
    )

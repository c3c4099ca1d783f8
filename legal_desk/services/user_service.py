"""
User Service — directory reads, role/department updates, name resolution.
"""

import logging

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import select

from legal_desk.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from legal_desk.core.roles import Role
from legal_desk.models import db
from legal_desk.models.auth import User
from legal_desk.utils.helpers import db_commit_or_raise

logger = logging.getLogger(__name__)

# Placeholder values the UI stores for "no officer assigned".
UNASSIGNED_SENTINELS = frozenset({"null", "—"})


def normalize_email(email):
    """Validate syntax and return the normalized address (no DNS lookup)."""
    try:
        return validate_email(email or "", check_deliverability=False).normalized
    except EmailNotValidError as exc:
        raise ValidationError(f"Invalid email: {exc}", details={"email": "invalid"}) from exc


def _parse_role(value):
    role = Role.parse(value)
    if role is None:
        raise ValidationError(f"Unknown role: {value}", details={"role": "invalid"})
    return role


# ═══════════════════════════════════════════════════════════════
# Directory reads
# ═══════════════════════════════════════════════════════════════


def list_users(role=None):
    """Active users ordered by name, optionally filtered by role."""
    stmt = select(User).where(User.is_active.is_(True))
    if role:
        stmt = stmt.where(User.role == _parse_role(role).value)
    return db.session.execute(stmt.order_by(User.name)).scalars().all()


def get_user(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(resource="User", resource_id=user_id)
    return user


def find_by_email(email):
    return db.session.execute(
        select(User).where(User.email == email)
    ).scalar_one_or_none()


def display_names(user_ids):
    """Map user ids to names for the ids that resolve; blanks and sentinels are skipped."""
    ids = {
        i for i in user_ids
        if i and i not in UNASSIGNED_SENTINELS
    }
    if not ids:
        return {}
    rows = db.session.execute(select(User.id, User.name).where(User.id.in_(ids))).all()
    return {row.id: row.name for row in rows}


def resolve_name(user_id):
    """Display name for ``user_id``, or None when it does not resolve."""
    return display_names([user_id]).get(user_id)


# ═══════════════════════════════════════════════════════════════
# Writes
# ═══════════════════════════════════════════════════════════════


def create_user(name, email, role, department=None, form_ids=None, *, commit=True):
    """Create a directory user (provisioning / seed path)."""
    if not (name or "").strip():
        raise ValidationError("name is required", details={"name": "required"})
    email = normalize_email(email)
    role = _parse_role(role)
    if find_by_email(email) is not None:
        raise ConflictError("User", "email", email)

    user = User(
        name=name.strip(),
        email=email,
        role=role.value,
        department=department,
        form_ids=list(form_ids or []),
        is_active=True,
    )
    db.session.add(user)
    if commit:
        db_commit_or_raise("User")
    return user


def update_user(user_id, data, identity):
    """
    Update role, department and/or is_active.

    Changing anyone's role or active flag, or another user's department,
    requires the ``users.manage`` capability.
    """
    user = get_user(user_id)
    changes = {}

    if "role" in data and data["role"] is not None:
        changes["role"] = _parse_role(data["role"]).value
    if "department" in data:
        changes["department"] = data["department"]
    if "is_active" in data:
        if not isinstance(data["is_active"], bool):
            raise ValidationError("is_active must be a boolean", details={"is_active": "invalid"})
        changes["is_active"] = data["is_active"]
    if not changes:
        raise ValidationError("Nothing to update")

    privileged = "role" in changes or "is_active" in changes or identity.user_id != user.id
    if privileged and not identity.can("users.manage"):
        raise PermissionDeniedError("users.manage")

    for field, value in changes.items():
        setattr(user, field, value)
    db_commit_or_raise("User")
    logger.info(
        "User %s updated by %s: %s", user.id, identity.user_id, sorted(changes),
        extra={"user_id": identity.user_id},
    )
    return user

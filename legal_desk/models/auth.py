"""
Auth Models — the user directory.

Users are provisioned by the identity provider (or ``flask seed-users`` in
development). The directory is used to resolve approver/officer names and to
list candidates per role.
"""

import uuid

from legal_desk.models import db
from legal_desk.utils.helpers import isoformat, utcnow


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(200), nullable=False, unique=True, index=True)
    role = db.Column(db.String(30), nullable=False, default="INITIATOR", index=True)
    department = db.Column(db.String(120), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    form_ids = db.Column(db.JSON, nullable=False, default=list, comment="forms this user may initiate")
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "department": self.department,
            "is_active": self.is_active,
            "form_ids": self.form_ids or [],
            "created_at": isoformat(self.created_at),
        }

    def __repr__(self):
        return f"<User {self.email} [{self.role}]>"

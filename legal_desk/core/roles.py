"""
Roles, capabilities and the per-request identity.

Role checks are table lookups: a role maps to a set of capability
codenames and code asks ``has_capability(role, "users.manage")`` instead of
comparing role strings inline.

``Identity`` is the verified caller, built once per request from the JWT
claims and passed explicitly into every service call that needs it.
"""

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    INITIATOR = "INITIATOR"
    BUM = "BUM"
    FBP = "FBP"
    CLUSTER_HEAD = "CLUSTER_HEAD"
    CEO = "CEO"
    LEGAL_GM = "LEGAL_GM"
    LEGAL_OFFICER = "LEGAL_OFFICER"
    COURT_OFFICER = "COURT_OFFICER"
    SPECIAL_APPROVER = "SPECIAL_APPROVER"
    FINANCE = "FINANCE"
    ADMIN = "ADMIN"

    @classmethod
    def parse(cls, value):
        """Return the Role for ``value`` or None when it is not a known role."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().upper())
        except ValueError:
            return None


# Roles that own an approval row created with the submission.
APPROVER_ROLES = (Role.BUM, Role.FBP, Role.CLUSTER_HEAD)

CAPABILITIES: dict[Role, frozenset[str]] = {
    Role.INITIATOR: frozenset({
        "submissions.create", "submissions.edit_draft", "submissions.delete_draft",
        "documents.upload", "comments.post",
    }),
    Role.BUM: frozenset({"comments.post"}),
    Role.FBP: frozenset({"comments.post"}),
    Role.CLUSTER_HEAD: frozenset({"comments.post"}),
    Role.CEO: frozenset({"comments.post"}),
    Role.LEGAL_GM: frozenset({
        "users.manage", "form_config.manage", "submissions.update_stage",
        "submissions.assign_officer", "documents.review", "documents.add",
        "comments.post",
    }),
    Role.LEGAL_OFFICER: frozenset({
        "users.manage", "submissions.update_stage", "documents.review",
        "documents.add", "documents.upload", "comments.post",
    }),
    Role.COURT_OFFICER: frozenset({"documents.upload", "comments.post"}),
    Role.SPECIAL_APPROVER: frozenset({"comments.post"}),
    Role.FINANCE: frozenset({"comments.post"}),
    Role.ADMIN: frozenset({
        "users.manage", "form_config.manage", "submissions.create",
        "submissions.edit_draft", "submissions.delete_draft",
        "submissions.update_stage", "submissions.assign_officer",
        "documents.review", "documents.add", "documents.upload",
        "comments.post",
    }),
}


def has_capability(role, capability: str) -> bool:
    """Return True if ``role`` (Role or string) grants ``capability``."""
    parsed = Role.parse(role)
    if parsed is None:
        return False
    return capability in CAPABILITIES.get(parsed, frozenset())


@dataclass(frozen=True)
class Identity:
    """The authenticated caller of a request."""

    user_id: str
    role: Role
    email: str = ""
    name: str = ""

    def can(self, capability: str) -> bool:
        return has_capability(self.role, capability)

    def acts_as(self, role: Role) -> bool:
        """True if the caller may perform actions reserved for ``role``."""
        return self.role == role or self.role == Role.ADMIN

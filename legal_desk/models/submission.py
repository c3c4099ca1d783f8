"""
Legal Desk
Submission domain models.

Models:
    - Submission:                 one legal request moving through the approval pipeline
    - SubmissionParty:            counter-party (legal form + name), drives document resolution
    - SubmissionDocument:         one required/ad-hoc document on the checklist
    - SubmissionApproval:         BUM / FBP / Cluster Head approval row
    - SubmissionSpecialApprover:  conditional approver added during legal review
    - SubmissionComment:          append-only discussion entry

Architecture:
    Submission ──1:N──▶ SubmissionParty
    Submission ──1:N──▶ SubmissionDocument
    Submission ──1:N──▶ SubmissionApproval
    Submission ──1:N──▶ SubmissionSpecialApprover
    Submission ──1:N──▶ SubmissionComment
    Submission ──0:1──▶ Submission          (parent_id, resubmission history)

Lifecycle states (coarse status):
    DRAFT → PENDING_APPROVAL → PENDING_CEO | PENDING_LEGAL_GM | PENDING_GM
          → PENDING_LEGAL_OFFICER → PENDING_LEGAL_GM_FINAL → PENDING_LEGAL_OFFICER
          → [PENDING_SPECIAL_APPROVER → PENDING_LEGAL_OFFICER] → COMPLETED
    SENT_BACK from any review stage, CANCELLED from any non-terminal stage,
    SENT_BACK → RESUBMITTED when a resubmission supersedes it.

    lo_stage / legal_gm_stage are sub-states of the legal-review phase and
    always change together with status (see TRANSITION_STAGES).
"""

import uuid

from legal_desk.models import db
from legal_desk.utils.helpers import isoformat, utcnow


# ── Statuses ─────────────────────────────────────────────────────────────────

DRAFT = "DRAFT"
PENDING_APPROVAL = "PENDING_APPROVAL"
PENDING_CEO = "PENDING_CEO"
PENDING_LEGAL_GM = "PENDING_LEGAL_GM"
PENDING_GM = "PENDING_GM"
PENDING_LEGAL_OFFICER = "PENDING_LEGAL_OFFICER"
PENDING_LEGAL_GM_FINAL = "PENDING_LEGAL_GM_FINAL"
PENDING_SPECIAL_APPROVER = "PENDING_SPECIAL_APPROVER"
COMPLETED = "COMPLETED"
SENT_BACK = "SENT_BACK"
CANCELLED = "CANCELLED"
RESUBMITTED = "RESUBMITTED"

SUBMISSION_STATUSES = {
    DRAFT, PENDING_APPROVAL, PENDING_CEO, PENDING_LEGAL_GM, PENDING_GM,
    PENDING_LEGAL_OFFICER, PENDING_LEGAL_GM_FINAL, PENDING_SPECIAL_APPROVER,
    COMPLETED, SENT_BACK, CANCELLED, RESUBMITTED,
}

TERMINAL_STATUSES = frozenset({COMPLETED, CANCELLED, RESUBMITTED})

REVIEW_STATUSES = frozenset({
    PENDING_APPROVAL, PENDING_CEO, PENDING_LEGAL_GM, PENDING_GM,
    PENDING_LEGAL_OFFICER, PENDING_LEGAL_GM_FINAL, PENDING_SPECIAL_APPROVER,
})

# ── Sub-stages ───────────────────────────────────────────────────────────────

LO_STAGES = {"PENDING_CEO", "PENDING_LEGAL_GM", "PENDING_GM", "ACTIVE", "POST_GM_APPROVAL"}
LO_ACTIVE = "ACTIVE"
LO_POST_GM_APPROVAL = "POST_GM_APPROVAL"

LEGAL_GM_STAGES = {"INITIAL_REVIEW", "FINAL_APPROVAL"}
GM_INITIAL_REVIEW = "INITIAL_REVIEW"
GM_FINAL_APPROVAL = "FINAL_APPROVAL"

# Where a submission goes once every approval row is APPROVED. The same value
# seeds lo_stage at creation time.
POST_APPROVAL_ROUTE = {
    2: PENDING_CEO,
    3: PENDING_LEGAL_GM,
}
DEFAULT_POST_APPROVAL_ROUTE = PENDING_GM


def post_approval_route(form_id):
    return POST_APPROVAL_ROUTE.get(form_id, DEFAULT_POST_APPROVAL_ROUTE)


# ── Document / approval statuses ─────────────────────────────────────────────

DOCUMENT_STATUSES = {"NONE", "UPLOADED", "APPROVED", "REJECTED", "OK", "ATTENTION_NEEDED", "RESUBMIT"}
APPROVAL_STATUSES = {"PENDING", "APPROVED", "REJECTED"}
SPECIAL_APPROVER_STATUSES = {"PENDING", "APPROVED", "SENT_BACK", "CANCELLED"}


# ── Lifecycle Transition Guards ──────────────────────────────────────────────

STATUS_TRANSITIONS = {
    DRAFT:                    [PENDING_APPROVAL, CANCELLED],
    PENDING_APPROVAL:         [PENDING_CEO, PENDING_LEGAL_GM, PENDING_GM, SENT_BACK, CANCELLED],
    PENDING_CEO:              [PENDING_LEGAL_GM, SENT_BACK, CANCELLED],
    PENDING_LEGAL_GM:         [PENDING_LEGAL_OFFICER, SENT_BACK, CANCELLED],
    PENDING_GM:               [PENDING_LEGAL_OFFICER, SENT_BACK, CANCELLED],
    PENDING_LEGAL_OFFICER:    [PENDING_LEGAL_GM_FINAL, PENDING_SPECIAL_APPROVER, COMPLETED,
                               SENT_BACK, CANCELLED],
    PENDING_LEGAL_GM_FINAL:   [PENDING_LEGAL_OFFICER, PENDING_SPECIAL_APPROVER,
                               SENT_BACK, CANCELLED],
    PENDING_SPECIAL_APPROVER: [PENDING_LEGAL_OFFICER, SENT_BACK, CANCELLED],
    SENT_BACK:                [RESUBMITTED, CANCELLED],
    COMPLETED:                [],
    CANCELLED:                [],
    RESUBMITTED:              [],
}

KEEP = object()

# (from, to) → (lo_stage, legal_gm_stage) written with the status change.
# Pairs not listed keep both sub-stages as they are.
TRANSITION_STAGES = {
    (PENDING_APPROVAL, PENDING_CEO):                   (PENDING_CEO, GM_INITIAL_REVIEW),
    (PENDING_APPROVAL, PENDING_LEGAL_GM):              (PENDING_LEGAL_GM, GM_INITIAL_REVIEW),
    (PENDING_APPROVAL, PENDING_GM):                    (PENDING_GM, GM_INITIAL_REVIEW),
    (PENDING_CEO, PENDING_LEGAL_GM):                   (PENDING_LEGAL_GM, GM_INITIAL_REVIEW),
    (PENDING_LEGAL_GM, PENDING_LEGAL_OFFICER):         (LO_ACTIVE, GM_INITIAL_REVIEW),
    (PENDING_GM, PENDING_LEGAL_OFFICER):               (LO_ACTIVE, GM_INITIAL_REVIEW),
    (PENDING_LEGAL_OFFICER, PENDING_LEGAL_GM_FINAL):   (LO_POST_GM_APPROVAL, GM_FINAL_APPROVAL),
    (PENDING_LEGAL_GM_FINAL, PENDING_LEGAL_OFFICER):   (LO_POST_GM_APPROVAL, GM_FINAL_APPROVAL),
    (PENDING_LEGAL_GM_FINAL, PENDING_SPECIAL_APPROVER): (LO_POST_GM_APPROVAL, GM_FINAL_APPROVAL),
    (PENDING_LEGAL_OFFICER, PENDING_SPECIAL_APPROVER): (KEEP, KEEP),
    (PENDING_SPECIAL_APPROVER, PENDING_LEGAL_OFFICER): (KEEP, KEEP),
}

# (from, to) → lo_stages the submission must already be in for the move.
TRANSITION_LO_STAGE_GATES = {
    (PENDING_LEGAL_OFFICER, PENDING_LEGAL_GM_FINAL): frozenset({LO_ACTIVE}),
    (PENDING_LEGAL_OFFICER, COMPLETED):              frozenset({LO_POST_GM_APPROVAL}),
}

# status → (allowed lo_stages, allowed legal_gm_stages); None means unconstrained.
STAGE_REQUIREMENTS = {
    PENDING_CEO:              ({PENDING_CEO}, {GM_INITIAL_REVIEW}),
    PENDING_LEGAL_GM:         ({PENDING_LEGAL_GM}, {GM_INITIAL_REVIEW}),
    PENDING_GM:               ({PENDING_GM}, {GM_INITIAL_REVIEW}),
    PENDING_LEGAL_OFFICER:    ({LO_ACTIVE, LO_POST_GM_APPROVAL}, None),
    PENDING_LEGAL_GM_FINAL:   ({LO_POST_GM_APPROVAL}, {GM_FINAL_APPROVAL}),
    PENDING_SPECIAL_APPROVER: ({LO_ACTIVE, LO_POST_GM_APPROVAL}, None),
}


def validate_status_transition(old_status, new_status):
    """Return True if a Submission status transition is valid."""
    return new_status in STATUS_TRANSITIONS.get(old_status, [])


def stages_for_transition(old_status, new_status):
    """Return the (lo_stage, legal_gm_stage) pair for a transition, KEEP for unchanged."""
    return TRANSITION_STAGES.get((old_status, new_status), (KEEP, KEEP))


def stages_consistent(status, lo_stage, legal_gm_stage):
    """Return True if the sub-stages are valid companions of ``status``."""
    allowed_lo, allowed_gm = STAGE_REQUIREMENTS.get(status, (None, None))
    if allowed_lo is not None and lo_stage not in allowed_lo:
        return False
    if allowed_gm is not None and legal_gm_stage not in allowed_gm:
        return False
    return True


def _new_id():
    return str(uuid.uuid4())


# ═════════════════════════════════════════════════════════════════════════════
# 1. Submission
# ═════════════════════════════════════════════════════════════════════════════


class Submission(db.Model):
    """
    One legal request (contract review, lease, litigation instruction, ...).

    Business rules:
    - submission_no is globally unique (DB constraint; the allocator retries
      on collision).
    - Approval rows are fixed at creation: BUM + FBP, plus CLUSTER_HEAD for
      every form except 3.
    - Documents are created once from the resolver; later rows are only
      appended or updated.
    - Only DRAFT submissions may be deleted; children go with them.
    """

    __tablename__ = "submissions"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    submission_no = db.Column(db.String(40), nullable=False, unique=True)

    form_id = db.Column(db.Integer, nullable=False, default=1, index=True)
    form_name = db.Column(db.String(120), nullable=False, default="Contract Review Form")

    status = db.Column(db.String(30), nullable=False, default=PENDING_APPROVAL, index=True)
    lo_stage = db.Column(
        db.String(30), nullable=True,
        comment="PENDING_CEO | PENDING_LEGAL_GM | PENDING_GM | ACTIVE | POST_GM_APPROVAL",
    )
    legal_gm_stage = db.Column(
        db.String(30), nullable=True,
        comment="INITIAL_REVIEW | FINAL_APPROVAL",
    )

    initiator_id = db.Column(db.String(36), nullable=False, index=True)
    assigned_legal_officer = db.Column(db.String(36), nullable=True, index=True)
    court_officer_id = db.Column(db.String(36), nullable=True)
    bum_id = db.Column(db.String(36), nullable=True)
    fbp_id = db.Column(db.String(36), nullable=True)
    cluster_head_id = db.Column(db.String(36), nullable=True)

    title = db.Column(db.String(255), nullable=False)
    company_code = db.Column(db.String(30), nullable=False)
    sap_cost_center = db.Column(db.String(50), nullable=True)
    scope_of_agreement = db.Column(db.Text, nullable=True)
    term = db.Column(db.String(120), nullable=True)
    value = db.Column(db.String(60), nullable=True, default="0")
    remarks = db.Column(db.Text, nullable=True, default="")
    initiator_comments = db.Column(db.Text, nullable=True, default="")
    form_data = db.Column(db.JSON, nullable=False, default=dict)

    due_date = db.Column(db.DateTime, nullable=True)
    parent_id = db.Column(
        db.String(36),
        db.ForeignKey("submissions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    is_resubmission = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    parties = db.relationship(
        "SubmissionParty", backref="submission", lazy="select",
        cascade="all, delete-orphan", order_by="SubmissionParty.id",
    )
    documents = db.relationship(
        "SubmissionDocument", backref="submission", lazy="select",
        cascade="all, delete-orphan", order_by="SubmissionDocument.id",
    )
    approvals = db.relationship(
        "SubmissionApproval", backref="submission", lazy="select",
        cascade="all, delete-orphan", order_by="SubmissionApproval.id",
    )
    special_approvers = db.relationship(
        "SubmissionSpecialApprover", backref="submission", lazy="select",
        cascade="all, delete-orphan", order_by="SubmissionSpecialApprover.id",
    )
    comments = db.relationship(
        "SubmissionComment", backref="submission", lazy="select",
        cascade="all, delete-orphan",
        order_by="(SubmissionComment.created_at, SubmissionComment.id)",
    )

    def approval_for(self, role):
        role = getattr(role, "value", role)
        for approval in self.approvals:
            if approval.role == role:
                return approval
        return None

    def document(self, document_id):
        for doc in self.documents:
            if doc.id == document_id:
                return doc
        return None

    def to_dict(self, include_children=True):
        d = {
            "id": self.id,
            "submission_no": self.submission_no,
            "form_id": self.form_id,
            "form_name": self.form_name,
            "status": self.status,
            "lo_stage": self.lo_stage,
            "legal_gm_stage": self.legal_gm_stage,
            "initiator_id": self.initiator_id,
            "assigned_legal_officer": self.assigned_legal_officer,
            "court_officer_id": self.court_officer_id,
            "bum_id": self.bum_id,
            "fbp_id": self.fbp_id,
            "cluster_head_id": self.cluster_head_id,
            "title": self.title,
            "company_code": self.company_code,
            "sap_cost_center": self.sap_cost_center,
            "scope_of_agreement": self.scope_of_agreement,
            "term": self.term,
            "value": self.value,
            "remarks": self.remarks,
            "initiator_comments": self.initiator_comments,
            "form_data": self.form_data or {},
            "due_date": isoformat(self.due_date),
            "parent_id": self.parent_id,
            "is_resubmission": self.is_resubmission,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
        if include_children:
            d["parties"] = [p.to_dict() for p in self.parties]
            d["documents"] = [doc.to_dict() for doc in self.documents]
            d["approvals"] = [a.to_dict() for a in self.approvals]
            d["special_approvers"] = [s.to_dict() for s in self.special_approvers]
            d["comments"] = [c.to_dict() for c in self.comments]
        return d

    def __repr__(self):
        return f"<Submission {self.submission_no} [{self.status}]>"


# ═════════════════════════════════════════════════════════════════════════════
# 2. Child rows
# ═════════════════════════════════════════════════════════════════════════════


class SubmissionParty(db.Model):
    __tablename__ = "submission_parties"

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(
        db.String(36), db.ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    type = db.Column(
        db.String(40), nullable=False,
        comment="Company | Partnership | Sole proprietorship | Individual | ...",
    )
    name = db.Column(db.String(255), nullable=False, default="")

    def to_dict(self):
        return {"id": self.id, "type": self.type, "name": self.name}


class SubmissionDocument(db.Model):
    """A checklist document. ``file_url`` is written once; re-uploads refresh ``uploaded_at``."""

    __tablename__ = "submission_documents"

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(
        db.String(36), db.ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    label = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(40), nullable=False, default="Common")
    status = db.Column(db.String(20), nullable=False, default="NONE")
    file_url = db.Column(db.String(500), nullable=True)
    comment = db.Column(db.Text, nullable=True)
    uploaded_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        db.UniqueConstraint("submission_id", "label", name="uq_submission_document_label"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "label": self.label,
            "type": self.type,
            "status": self.status,
            "file_url": self.file_url,
            "comment": self.comment,
            "uploaded_at": isoformat(self.uploaded_at),
        }


class SubmissionApproval(db.Model):
    __tablename__ = "submission_approvals"

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(
        db.String(36), db.ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    role = db.Column(db.String(30), nullable=False, comment="BUM | FBP | CLUSTER_HEAD")
    approver_name = db.Column(db.String(255), nullable=False, default="")
    approver_email = db.Column(db.String(255), nullable=False, default="")
    status = db.Column(db.String(20), nullable=False, default="PENDING")
    comment = db.Column(db.Text, nullable=True)
    action_date = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.UniqueConstraint("submission_id", "role", name="uq_submission_approval_role"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "role": self.role,
            "approver_name": self.approver_name,
            "approver_email": self.approver_email,
            "status": self.status,
            "comment": self.comment,
            "action_date": isoformat(self.action_date),
        }


class SubmissionSpecialApprover(db.Model):
    __tablename__ = "submission_special_approvers"

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(
        db.String(36), db.ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    approver_email = db.Column(db.String(255), nullable=False)
    approver_name = db.Column(db.String(255), nullable=False, default="")
    department = db.Column(db.String(120), nullable=False, default="Special Approver")
    assigned_by = db.Column(db.String(30), nullable=False, comment="LEGAL_GM | LEGAL_OFFICER")
    status = db.Column(db.String(20), nullable=False, default="PENDING")
    comment = db.Column(db.Text, nullable=True)
    action_date = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "approver_email": self.approver_email,
            "approver_name": self.approver_name,
            "department": self.department,
            "assigned_by": self.assigned_by,
            "status": self.status,
            "comment": self.comment,
            "action_date": isoformat(self.action_date),
        }


class SubmissionComment(db.Model):
    """Append-only. There is no update or delete path for comments."""

    __tablename__ = "submission_comments"

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(
        db.String(36), db.ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    author_name = db.Column(db.String(255), nullable=False)
    author_role = db.Column(db.String(30), nullable=False)
    text = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "author_name": self.author_name,
            "author_role": self.author_role,
            "text": self.text,
            "created_at": isoformat(self.created_at),
        }

    def __repr__(self):
        return f"<SubmissionComment {self.id} on submission={self.submission_id}>"

"""
Approval workflow — Service Layer.

Business logic for:
    - Status transitions:     ``apply_transition`` writes status, lo_stage and
                              legal_gm_stage together, validated against
                              STATUS_TRANSITIONS / STAGE_REQUIREMENTS
    - Approver decisions:     ``approve`` / ``reject`` (BUM, FBP, Cluster Head)
                              and the aggregate status they produce
    - Role actions:           ``perform_action`` looks up (role, action) in
                              ACTION_ROUTES, gated by (form_id, role)

Nothing here commits except the public entry points.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from legal_desk.core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    UnauthorizedError,
    ValidationError,
)
from legal_desk.core.roles import APPROVER_ROLES, Role
from legal_desk.models import db
from legal_desk.models.submission import (
    CANCELLED,
    COMPLETED,
    DOCUMENT_STATUSES,
    DRAFT,
    KEEP,
    LO_ACTIVE,
    LO_POST_GM_APPROVAL,
    PENDING_APPROVAL,
    PENDING_CEO,
    PENDING_GM,
    PENDING_LEGAL_GM,
    PENDING_LEGAL_GM_FINAL,
    PENDING_LEGAL_OFFICER,
    PENDING_SPECIAL_APPROVER,
    SENT_BACK,
    TERMINAL_STATUSES,
    TRANSITION_LO_STAGE_GATES,
    Submission,
    SubmissionComment,
    SubmissionSpecialApprover,
    post_approval_route,
    stages_consistent,
    stages_for_transition,
    validate_status_transition,
)
from legal_desk.services.form_data import validate_form_data
from legal_desk.utils.helpers import db_commit_or_raise, utcnow

logger = logging.getLogger(__name__)


# ── Transition primitive ─────────────────────────────────────────────────────


def apply_transition(submission, new_status, *, lo_stage=KEEP, legal_gm_stage=KEEP):
    """
    Move ``submission`` to ``new_status`` (no commit).

    Besides the edge itself, the move must pass the guards of
    ``_check_transition_guards``, so a direct status patch cannot skip
    approvals, the form route or the lo_stage gates.

    The sub-stages default to the values TRANSITION_STAGES records for the
    (old, new) pair; explicit arguments override them. The resulting triple
    must satisfy STAGE_REQUIREMENTS.

    Raises:
        ValidationError: transition not permitted or stages inconsistent.
    """
    old = submission.status
    if not validate_status_transition(old, new_status):
        raise ValidationError(
            f"Invalid transition: {old} → {new_status}",
            details={"status": new_status, "current_status": old},
        )
    _check_transition_guards(submission, old, new_status)

    default_lo, default_gm = stages_for_transition(old, new_status)
    lo = lo_stage if lo_stage is not KEEP else default_lo
    gm = legal_gm_stage if legal_gm_stage is not KEEP else default_gm
    if lo is KEEP:
        lo = submission.lo_stage
    if gm is KEEP:
        gm = submission.legal_gm_stage

    if not stages_consistent(new_status, lo, gm):
        raise ValidationError(
            f"Stages lo_stage={lo} legal_gm_stage={gm} are not valid for {new_status}",
            details={"lo_stage": lo, "legal_gm_stage": gm},
        )

    submission.status = new_status
    submission.lo_stage = lo
    submission.legal_gm_stage = gm
    submission.updated_at = utcnow()
    logger.info(
        "Submission %s: %s → %s (lo_stage=%s, legal_gm_stage=%s)",
        submission.submission_no, old, new_status, lo, gm,
        extra={"submission_id": submission.id, "submission_no": submission.submission_no},
    )


def _check_transition_guards(submission, old, new_status):
    """Preconditions a permitted edge still needs from the submission itself."""
    if old == PENDING_APPROVAL and new_status not in (SENT_BACK, CANCELLED):
        route = post_approval_route(submission.form_id)
        if new_status != route:
            raise ValidationError(
                f"Form {submission.form_id} moves to {route} after approval, not {new_status}",
                details={"status": new_status, "expected_status": route},
            )
        outstanding = sorted(a.role for a in submission.approvals if a.status != "APPROVED")
        if outstanding:
            raise ValidationError(
                f"Approvals outstanding: {', '.join(outstanding)}",
                details={"approvals": outstanding},
            )

    gate = TRANSITION_LO_STAGE_GATES.get((old, new_status))
    if gate is not None and submission.lo_stage not in gate:
        raise ValidationError(
            f"{old} → {new_status} requires lo_stage {' or '.join(sorted(gate))}"
            f" (lo_stage={submission.lo_stage})",
            details={"status": new_status, "lo_stage": submission.lo_stage},
        )

    if old == PENDING_SPECIAL_APPROVER and new_status == PENDING_LEGAL_OFFICER:
        waiting = sorted(r.approver_email for r in submission.special_approvers if r.status == "PENDING")
        if waiting:
            raise ValidationError(
                f"Special approvals outstanding: {', '.join(waiting)}",
                details={"special_approvers": waiting},
            )


def _get_submission(submission_id):
    submission = db.session.get(Submission, submission_id)
    if submission is None:
        raise NotFoundError(resource="Submission", resource_id=submission_id)
    return submission


# ── Approver decisions ───────────────────────────────────────────────────────


def _record_decision(submission, role, decision, comment=None):
    role = Role.parse(role)
    if role not in APPROVER_ROLES:
        raise ValidationError(f"{getattr(role, 'value', role)} is not an approver role")
    if submission.status != PENDING_APPROVAL:
        raise ValidationError(
            f"Approvals are closed: submission is {submission.status}",
            details={"current_status": submission.status},
        )
    approval = submission.approval_for(role)
    if approval is None:
        raise ValidationError(f"No {role.value} approval is required for form {submission.form_id}")

    approval.status = decision
    approval.action_date = utcnow()
    if comment is not None:
        approval.comment = comment


def _aggregate_approvals(submission):
    """Advance or send back once the approval rows decide it."""
    statuses = [a.status for a in submission.approvals]
    if "REJECTED" in statuses:
        apply_transition(submission, SENT_BACK)
    elif statuses and all(s == "APPROVED" for s in statuses):
        apply_transition(submission, post_approval_route(submission.form_id))
    return submission.status


def approve(submission_id, role, comment=None):
    """Record an APPROVED decision for ``role``; return the new aggregate status."""
    submission = _get_submission(submission_id)
    _record_decision(submission, role, "APPROVED", comment)
    status = _aggregate_approvals(submission)
    db_commit_or_raise("Submission")
    return status


def reject(submission_id, role, comment=None):
    """Record a REJECTED decision for ``role``; return the new aggregate status."""
    submission = _get_submission(submission_id)
    _record_decision(submission, role, "REJECTED", comment)
    status = _aggregate_approvals(submission)
    db_commit_or_raise("Submission")
    return status


# ── Action handlers ──────────────────────────────────────────────────────────
# Signature: handler(submission, identity, role, payload). No commit.


def _to(status):
    def handler(submission, identity, role, payload):
        apply_transition(submission, status)
    handler.__name__ = f"_to_{status.lower()}"
    return handler


def _submit_draft(submission, identity, role, payload):
    validate_form_data(submission.form_id, submission.form_data)
    apply_transition(submission, PENDING_APPROVAL)


def _send_back(submission, identity, role, payload):
    apply_transition(submission, SENT_BACK)


def _cancel(submission, identity, role, payload):
    apply_transition(submission, CANCELLED)


def _approver_approve(submission, identity, role, payload):
    _record_decision(submission, role, "APPROVED", payload.get("comment"))
    _aggregate_approvals(submission)


def _approver_reject(submission, identity, role, payload):
    _record_decision(submission, role, "REJECTED", payload.get("comment"))
    _aggregate_approvals(submission)


def _legal_gm_approve(submission, identity, role, payload):
    if submission.status != PENDING_LEGAL_GM_FINAL:
        officer = payload.get("assigned_legal_officer") or submission.assigned_legal_officer
        if not officer:
            raise ValidationError(
                "assigned_legal_officer is required",
                details={"assigned_legal_officer": "required"},
            )
        submission.assigned_legal_officer = officer
    apply_transition(submission, PENDING_LEGAL_OFFICER)


def _assign_special_approvers(submission, identity, role, payload):
    entries = payload.get("special_approvers")
    if entries is None and payload.get("approver_email"):
        entries = [payload]
    if not entries or not isinstance(entries, list):
        raise ValidationError(
            "special_approvers is required",
            details={"special_approvers": "required"},
        )

    rows = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValidationError(
                f"special_approvers[{i}] must be an object",
                details={f"special_approvers[{i}]": "invalid"},
            )
        email = str(entry.get("approver_email") or "").strip().lower()
        if not email:
            raise ValidationError(
                f"special_approvers[{i}].approver_email is required",
                details={f"special_approvers[{i}].approver_email": "required"},
            )
        rows.append(SubmissionSpecialApprover(
            approver_email=email,
            approver_name=entry.get("approver_name") or email,
            department=entry.get("department") or "Special Approver",
            assigned_by=role.value,
            status="PENDING",
        ))

    apply_transition(submission, PENDING_SPECIAL_APPROVER)
    submission.special_approvers.extend(rows)


def _assign_court_officer(submission, identity, role, payload):
    officer = payload.get("court_officer_id")
    if not officer:
        raise ValidationError("court_officer_id is required", details={"court_officer_id": "required"})
    submission.court_officer_id = officer
    submission.updated_at = utcnow()


def _return_to_initiator(submission, identity, role, payload):
    marks = payload.get("doc_statuses") or []
    if not isinstance(marks, list):
        raise ValidationError("doc_statuses must be a list", details={"doc_statuses": "invalid"})

    for i, mark in enumerate(marks):
        if not isinstance(mark, dict):
            raise ValidationError(
                f"doc_statuses[{i}] must be an object",
                details={f"doc_statuses[{i}]": "invalid"},
            )
        try:
            document_id = int(mark.get("document_id"))
        except (TypeError, ValueError):
            raise ValidationError(
                f"doc_statuses[{i}].document_id must be an integer",
                details={f"doc_statuses[{i}].document_id": "invalid"},
            )
        doc = submission.document(document_id)
        if doc is None:
            raise NotFoundError(resource="Document", resource_id=document_id)
        status = mark.get("status")
        if status not in DOCUMENT_STATUSES:
            raise ValidationError(f"Invalid document status: {status}", details={"status": status})
        doc.status = status
        if "comment" in mark:
            doc.comment = mark.get("comment")

    text = (payload.get("comment") or "").strip()
    if text:
        submission.comments.append(SubmissionComment(
            author_name=identity.name or identity.email or identity.user_id,
            author_role=role.value,
            text=text,
            created_at=utcnow(),
        ))
    apply_transition(submission, SENT_BACK)


def _own_special_approval(submission, identity, payload):
    email = identity.email
    if identity.role == Role.ADMIN and payload.get("approver_email"):
        email = payload["approver_email"]
    email = (email or "").strip().lower()
    for row in submission.special_approvers:
        if row.approver_email.lower() == email and row.status == "PENDING":
            return row
    raise PermissionDeniedError("special_approval.own")


def _special_approve(submission, identity, role, payload):
    row = _own_special_approval(submission, identity, payload)
    row.status = "APPROVED"
    row.action_date = utcnow()
    row.comment = payload.get("comment")
    if not any(r.status == "PENDING" for r in submission.special_approvers):
        apply_transition(submission, PENDING_LEGAL_OFFICER)


def _special_stop(row_status):
    def handler(submission, identity, role, payload):
        row = _own_special_approval(submission, identity, payload)
        row.status = row_status
        row.action_date = utcnow()
        row.comment = payload.get("comment")
        apply_transition(submission, SENT_BACK)
    handler.__name__ = f"_special_{row_status.lower()}"
    return handler


# ── Routing table ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ActionRoute:
    """Where an action may start and what it does."""

    from_statuses: frozenset
    handler: Callable
    lo_stages: frozenset | None = None
    form_ids: frozenset | None = None


NON_TERMINAL = frozenset({
    DRAFT, PENDING_APPROVAL, PENDING_CEO, PENDING_LEGAL_GM, PENDING_GM,
    PENDING_LEGAL_OFFICER, PENDING_LEGAL_GM_FINAL, PENDING_SPECIAL_APPROVER, SENT_BACK,
})
_APPROVAL = frozenset({PENDING_APPROVAL})
_CEO = frozenset({PENDING_CEO})
_LEGAL_GM_ALL = frozenset({PENDING_GM, PENDING_LEGAL_GM, PENDING_LEGAL_GM_FINAL})
_LEGAL_OFFICER = frozenset({PENDING_LEGAL_OFFICER})
_SPECIAL = frozenset({PENDING_SPECIAL_APPROVER})

ACTION_ALIASES = {"SENT_BACK": "REJECT", "SEND_BACK": "REJECT"}

ACTION_ROUTES = {
    (Role.INITIATOR, "SUBMIT"): ActionRoute(frozenset({DRAFT}), _submit_draft),
    (Role.INITIATOR, "CANCEL"): ActionRoute(NON_TERMINAL, _cancel),

    (Role.CEO, "APPROVE"): ActionRoute(_CEO, _to(PENDING_LEGAL_GM)),
    (Role.CEO, "REJECT"): ActionRoute(_CEO, _send_back),
    (Role.CEO, "CANCEL"): ActionRoute(_CEO, _cancel),

    (Role.LEGAL_GM, "APPROVE"): ActionRoute(_LEGAL_GM_ALL, _legal_gm_approve),
    (Role.LEGAL_GM, "ASSIGN_SPECIAL_APPROVER"): ActionRoute(
        frozenset({PENDING_LEGAL_GM_FINAL}), _assign_special_approvers),
    (Role.LEGAL_GM, "REJECT"): ActionRoute(_LEGAL_GM_ALL, _send_back),
    (Role.LEGAL_GM, "CANCEL"): ActionRoute(_LEGAL_GM_ALL, _cancel),

    (Role.LEGAL_OFFICER, "SUBMIT_TO_LEGAL_GM"): ActionRoute(
        _LEGAL_OFFICER, _to(PENDING_LEGAL_GM_FINAL), lo_stages=frozenset({LO_ACTIVE})),
    (Role.LEGAL_OFFICER, "ASSIGN_SPECIAL_APPROVER"): ActionRoute(_LEGAL_OFFICER, _assign_special_approvers),
    (Role.LEGAL_OFFICER, "ASSIGN_COURT_OFFICER"): ActionRoute(
        _LEGAL_OFFICER, _assign_court_officer, form_ids=frozenset({3})),
    (Role.LEGAL_OFFICER, "RETURN_TO_INITIATOR"): ActionRoute(_LEGAL_OFFICER, _return_to_initiator),
    (Role.LEGAL_OFFICER, "COMPLETE"): ActionRoute(
        _LEGAL_OFFICER, _to(COMPLETED), lo_stages=frozenset({LO_POST_GM_APPROVAL})),
    (Role.LEGAL_OFFICER, "REJECT"): ActionRoute(_LEGAL_OFFICER, _send_back),
    (Role.LEGAL_OFFICER, "CANCEL"): ActionRoute(_LEGAL_OFFICER, _cancel),

    (Role.FINANCE, "COMPLETE"): ActionRoute(
        _LEGAL_OFFICER, _to(COMPLETED), lo_stages=frozenset({LO_POST_GM_APPROVAL})),

    (Role.SPECIAL_APPROVER, "APPROVE"): ActionRoute(_SPECIAL, _special_approve),
    (Role.SPECIAL_APPROVER, "REJECT"): ActionRoute(_SPECIAL, _special_stop("SENT_BACK")),
    (Role.SPECIAL_APPROVER, "CANCEL"): ActionRoute(_SPECIAL, _special_stop("CANCELLED")),
}

for _approver in APPROVER_ROLES:
    ACTION_ROUTES[(_approver, "APPROVE")] = ActionRoute(_APPROVAL, _approver_approve)
    ACTION_ROUTES[(_approver, "REJECT")] = ActionRoute(_APPROVAL, _approver_reject)
    ACTION_ROUTES[(_approver, "CANCEL")] = ActionRoute(_APPROVAL, _cancel)

# (form_id, role) gates: roles that only act on some forms, or never on some.
FORM_ROLE_ONLY = {
    Role.CEO: frozenset({2}),
    Role.COURT_OFFICER: frozenset({3}),
}
FORM_ROLE_EXCLUDED = {
    Role.CLUSTER_HEAD: frozenset({3}),
}


def role_acts_on_form(role, form_id):
    only = FORM_ROLE_ONLY.get(role)
    if only is not None and form_id not in only:
        return False
    return form_id not in FORM_ROLE_EXCLUDED.get(role, frozenset())


def available_actions(submission, role):
    """Action names ``role`` may perform on ``submission`` right now."""
    role = Role.parse(role)
    if role is None or not role_acts_on_form(role, submission.form_id):
        return []
    actions = []
    for (route_role, action), route in ACTION_ROUTES.items():
        if route_role == role and _route_open(route, submission):
            actions.append(action)
    return sorted(actions)


def _route_open(route, submission):
    if submission.status not in route.from_statuses:
        return False
    if route.lo_stages is not None and submission.lo_stage not in route.lo_stages:
        return False
    if route.form_ids is not None and submission.form_id not in route.form_ids:
        return False
    return True


def perform_action(submission_id, identity, role, action, payload=None):
    """
    Perform ``action`` on a submission in the capacity of ``role``.

    Args:
        submission_id: Submission primary key.
        identity: Verified caller. Must be ``role`` or ADMIN.
        role: Role the caller acts as (Role or string).
        action: Action name, e.g. "APPROVE", "SUBMIT_TO_LEGAL_GM".
        payload: Action-specific extras (comment, assigned_legal_officer,
            special_approvers, court_officer_id, doc_statuses, ...).

    Returns:
        The updated Submission.

    Raises:
        UnauthorizedError, PermissionDeniedError, NotFoundError, ValidationError
    """
    if identity is None:
        raise UnauthorizedError()
    payload = payload or {}

    parsed_role = Role.parse(role)
    if parsed_role is None:
        raise ValidationError(f"Unknown role: {role}", details={"role": "invalid"})
    action_name = str(action or "").strip().upper()
    action_name = ACTION_ALIASES.get(action_name, action_name)
    if not action_name:
        raise ValidationError("action is required", details={"action": "required"})

    if not identity.acts_as(parsed_role):
        logger.warning(
            "User %s (%s) tried to act as %s",
            identity.user_id, identity.role.value, parsed_role.value,
            extra={"user_id": identity.user_id, "role": identity.role.value},
        )
        raise PermissionDeniedError(f"act_as.{parsed_role.value}")

    submission = _get_submission(submission_id)
    if submission.status in TERMINAL_STATUSES:
        raise ValidationError(
            f"Submission is {submission.status}; no further actions",
            details={"current_status": submission.status},
        )
    if not role_acts_on_form(parsed_role, submission.form_id):
        raise ValidationError(
            f"{parsed_role.value} does not act on form {submission.form_id}",
            details={"role": parsed_role.value, "form_id": submission.form_id},
        )

    route = ACTION_ROUTES.get((parsed_role, action_name))
    if route is None:
        raise ValidationError(
            f"Action {action_name} is not available to {parsed_role.value}",
            details={"action": action_name},
        )
    if not _route_open(route, submission):
        raise ValidationError(
            f"Action {action_name} is not allowed while submission is {submission.status}"
            f" (lo_stage={submission.lo_stage})",
            details={
                "action": action_name,
                "current_status": submission.status,
                "lo_stage": submission.lo_stage,
            },
        )

    try:
        route.handler(submission, identity, parsed_role, payload)
    except (ValidationError, NotFoundError, PermissionDeniedError):
        db.session.rollback()
        raise
    db_commit_or_raise("Submission")

    logger.info(
        "Action %s by %s as %s on %s → %s",
        action_name, identity.user_id, parsed_role.value,
        submission.submission_no, submission.status,
        extra={
            "user_id": identity.user_id,
            "role": parsed_role.value,
            "submission_id": submission.id,
            "event_type": f"workflow.{action_name.lower()}",
        },
    )
    return submission

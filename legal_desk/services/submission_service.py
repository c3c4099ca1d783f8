"""
Submission lifecycle — Service Layer.

Business logic for:
    - Creation:     number allocation + document checklist + approval rows in
                    one transaction, retried on submission_no collisions
    - Resubmission: parent must be SENT_BACK and older; it becomes RESUBMITTED
    - Reads:        fetch with children, list with resolved display names
    - Patch:        status/stage/officer, draft fields, document upload/review
    - Documents:    ad-hoc append (label must be new)
    - Deletion:     DRAFT only, children removed with the row
"""

import logging
import uuid
from datetime import timedelta

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError

from legal_desk.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ValidationError,
)
from legal_desk.core.roles import Role
from legal_desk.models import db
from legal_desk.models.auth import User
from legal_desk.models.form_config import FormConfig, FORM_CATALOG, form_name_for
from legal_desk.models.submission import (
    DOCUMENT_STATUSES,
    DRAFT,
    GM_INITIAL_REVIEW,
    KEEP,
    LEGAL_GM_STAGES,
    LO_STAGES,
    PENDING_APPROVAL,
    RESUBMITTED,
    SENT_BACK,
    Submission,
    SubmissionApproval,
    SubmissionDocument,
    SubmissionParty,
    post_approval_route,
    stages_consistent,
)
from legal_desk.services import submission_number
from legal_desk.services.document_requirements import resolve
from legal_desk.services.form_data import validate_form_data
from legal_desk.services.user_service import display_names, resolve_name
from legal_desk.services.workflow_service import apply_transition
from legal_desk.utils.helpers import db_commit_or_raise, utcnow

logger = logging.getLogger(__name__)

CREATE_STATUSES = (DRAFT, PENDING_APPROVAL)

DRAFT_FIELDS = (
    "title", "company_code", "sap_cost_center", "scope_of_agreement", "term",
    "value", "remarks", "initiator_comments", "bum_id", "fbp_id", "cluster_head_id",
)


def _get(submission_id):
    submission = db.session.get(Submission, submission_id)
    if submission is None:
        raise NotFoundError(resource="Submission", resource_id=submission_id)
    return submission


def _text(data, key):
    value = data.get(key)
    if value is None:
        return None
    return str(value).strip()


def _is_owner_or_admin(submission, identity):
    return identity.role == Role.ADMIN or identity.user_id == submission.initiator_id


# ═════════════════════════════════════════════════════════════════════════════
# Creation
# ═════════════════════════════════════════════════════════════════════════════


def _validated_create_fields(data, identity):
    """Check the payload and return normalized fields. Reads only."""
    errors = {}

    initiator_id = _text(data, "initiator_id") or (identity.user_id if identity else None)
    company_code = _text(data, "company_code")
    title = _text(data, "title")
    for key, value in (("initiator_id", initiator_id), ("company_code", company_code), ("title", title)):
        if not value:
            errors[key] = "required"
    if errors:
        raise ValidationError("Missing required fields", details=errors)

    try:
        form_id = int(data.get("form_id") or 1)
    except (TypeError, ValueError):
        raise ValidationError("form_id must be an integer", details={"form_id": "invalid"})
    if form_id not in FORM_CATALOG:
        raise ValidationError(f"Unknown form_id: {form_id}", details={"form_id": "invalid"})

    status = str(data.get("status") or PENDING_APPROVAL).strip().upper()
    if status not in CREATE_STATUSES:
        raise ValidationError(
            f"A new submission must be {' or '.join(CREATE_STATUSES)}",
            details={"status": "invalid"},
        )

    parties = data.get("parties") or []
    if not isinstance(parties, list):
        raise ValidationError("parties must be a list", details={"parties": "invalid"})
    normalized_parties = []
    for i, party in enumerate(parties):
        if not isinstance(party, dict) or not (party.get("type") or "").strip():
            raise ValidationError(
                f"parties[{i}].type is required", details={f"parties[{i}].type": "required"},
            )
        normalized_parties.append({
            "type": party["type"].strip(),
            "name": (party.get("name") or "").strip(),
        })

    form_data = validate_form_data(form_id, data.get("form_data"), draft=status == DRAFT)

    parent_id = _text(data, "parent_id") or None
    is_resubmission = bool(data.get("is_resubmission")) or parent_id is not None
    if is_resubmission and not parent_id:
        raise ValidationError("parent_id is required for a resubmission", details={"parent_id": "required"})

    value = data.get("lkr_value") or data.get("value") or "0"

    return {
        "form_id": form_id,
        "form_name": _text(data, "form_name") or form_name_for(form_id),
        "status": status,
        "initiator_id": initiator_id,
        "company_code": company_code,
        "title": title,
        "sap_cost_center": _text(data, "sap_cost_center"),
        "scope_of_agreement": data.get("scope_of_agreement"),
        "term": _text(data, "term"),
        "value": str(value),
        "remarks": data.get("remarks") or "",
        "initiator_comments": data.get("initiator_comments") or "",
        "assigned_legal_officer": _text(data, "legal_officer_id") or None,
        "bum_id": _text(data, "bum_id") or None,
        "fbp_id": _text(data, "fbp_id") or None,
        "cluster_head_id": _text(data, "cluster_head_id") or None,
        "parties": normalized_parties,
        "form_data": form_data,
        "parent_id": parent_id,
        "is_resubmission": is_resubmission,
    }


def _load_parent(parent_id, now):
    parent = db.session.get(Submission, parent_id)
    if parent is None:
        raise ValidationError(f"Parent submission {parent_id} not found", details={"parent_id": "invalid"})
    if parent.status != SENT_BACK:
        raise ValidationError(
            f"Only a SENT_BACK submission can be resubmitted (parent is {parent.status})",
            details={"parent_id": "invalid"},
        )
    if parent.created_at is not None and parent.created_at > now:
        raise ValidationError("Parent submission must predate the resubmission", details={"parent_id": "invalid"})
    return parent


def _approval_rows(fields):
    roles = [(Role.BUM, fields["bum_id"]), (Role.FBP, fields["fbp_id"])]
    if fields["form_id"] != 3:
        roles.append((Role.CLUSTER_HEAD, fields["cluster_head_id"]))

    users = {}
    ids = [uid for _, uid in roles if uid]
    if ids:
        rows = db.session.execute(select(User).where(User.id.in_(ids))).scalars().all()
        users = {u.id: u for u in rows}

    approvals = []
    for role, user_id in roles:
        user = users.get(user_id)
        approvals.append(SubmissionApproval(
            role=role.value,
            approver_name=user.name if user else (user_id or ""),
            approver_email=user.email if user else "",
            status="PENDING",
        ))
    return approvals


def _template_docs(form_id):
    config = db.session.execute(
        select(FormConfig).where(FormConfig.form_id == form_id)
    ).scalar_one_or_none()
    return list(config.docs) if config else []


def _stage_submission(fields, number, now):
    """Build the aggregate and add it to the session. Reads happen before the add."""
    parent = _load_parent(fields["parent_id"], now) if fields["parent_id"] else None
    documents = resolve(
        fields["form_id"],
        [p["type"] for p in fields["parties"]],
        _template_docs(fields["form_id"]),
    )
    approvals = _approval_rows(fields)

    submission = Submission(
        id=str(uuid.uuid4()),
        submission_no=number,
        form_id=fields["form_id"],
        form_name=fields["form_name"],
        status=fields["status"],
        lo_stage=post_approval_route(fields["form_id"]),
        legal_gm_stage=GM_INITIAL_REVIEW,
        initiator_id=fields["initiator_id"],
        assigned_legal_officer=fields["assigned_legal_officer"],
        bum_id=fields["bum_id"],
        fbp_id=fields["fbp_id"],
        cluster_head_id=fields["cluster_head_id"],
        title=fields["title"],
        company_code=fields["company_code"],
        sap_cost_center=fields["sap_cost_center"],
        scope_of_agreement=fields["scope_of_agreement"],
        term=fields["term"],
        value=fields["value"],
        remarks=fields["remarks"],
        initiator_comments=fields["initiator_comments"],
        form_data=fields["form_data"],
        parent_id=fields["parent_id"],
        is_resubmission=fields["is_resubmission"],
        due_date=now + timedelta(days=current_app.config.get("SLA_DAYS", 14)),
        created_at=now,
        updated_at=now,
    )
    submission.parties = [SubmissionParty(type=p["type"], name=p["name"]) for p in fields["parties"]]
    submission.documents = [
        SubmissionDocument(label=d["label"], type=d["type"], status="NONE", created_at=now)
        for d in documents
    ]
    submission.approvals = approvals

    if parent is not None:
        if parent.id == submission.id:
            raise ValidationError("A submission cannot be its own parent", details={"parent_id": "invalid"})
        apply_transition(parent, RESUBMITTED)

    db.session.add(submission)
    return submission


def create_submission(data, identity=None):
    """
    Create a submission with its parties, documents and approval rows.

    The whole unit of work is retried with a freshly counted number when
    the insert collides on ``submission_no`` (bounded by config
    SUBMISSION_NO_MAX_ATTEMPTS). An explicit ``submission_no`` is never
    retried.

    Raises:
        ValidationError: missing/invalid fields or invalid parent.
        ConflictError: explicit number taken, or retries exhausted.
        PersistenceError: any other store failure.
    """
    fields = _validated_create_fields(data, identity)
    override = submission_number.explicit_override(data.get("submission_no"))
    max_attempts = max(1, int(current_app.config.get("SUBMISSION_NO_MAX_ATTEMPTS", 5)))

    number = override
    for attempt in range(1, max_attempts + 1):
        now = submission_number.utcnow()
        number = override or submission_number.next_submission_no(now)
        try:
            submission = _stage_submission(fields, number, now)
            db.session.commit()
        except ValidationError:
            db.session.rollback()
            raise
        except IntegrityError as exc:
            db.session.rollback()
            if not submission_number.is_taken(number):
                logger.error("Submission insert failed: %s", exc.orig)
                raise PersistenceError() from exc
            if override:
                raise ConflictError("Submission", "submission_no", number) from exc
            logger.warning(
                "Submission number %s already taken (attempt %d/%d), retrying",
                number, attempt, max_attempts,
                extra={"submission_no": number},
            )
            continue
        except OperationalError as exc:
            db.session.rollback()
            logger.exception("Database operational error creating submission")
            raise PersistenceError() from exc

        logger.info(
            "Created submission %s (form %s, %d documents, %d approvals)",
            submission.submission_no, submission.form_id,
            len(submission.documents), len(submission.approvals),
            extra={
                "submission_id": submission.id,
                "submission_no": submission.submission_no,
                "user_id": identity.user_id if identity else None,
            },
        )
        return submission

    raise ConflictError("Submission", "submission_no", number)


# ═════════════════════════════════════════════════════════════════════════════
# Reads
# ═════════════════════════════════════════════════════════════════════════════


def get_submission(submission_id):
    """Submission dict with children and ``legal_officer_name``."""
    submission = _get(submission_id)
    d = submission.to_dict()
    d["legal_officer_name"] = (
        resolve_name(submission.assigned_legal_officer) if submission.assigned_legal_officer else None
    )
    return d


def list_submissions(status=None, initiator_id=None):
    """Newest first. RESUBMITTED rows are hidden unless asked for by status."""
    stmt = select(Submission)
    if status:
        stmt = stmt.where(Submission.status == status)
    else:
        stmt = stmt.where(Submission.status != RESUBMITTED)
    if initiator_id:
        stmt = stmt.where(Submission.initiator_id == initiator_id)
    submissions = db.session.execute(
        stmt.order_by(Submission.created_at.desc(), Submission.id)
    ).scalars().all()

    names = display_names(
        [s.initiator_id for s in submissions] + [s.assigned_legal_officer for s in submissions]
    )
    result = []
    for s in submissions:
        d = s.to_dict()
        d["initiator_name"] = names.get(s.initiator_id)
        d["legal_officer_name"] = names.get(s.assigned_legal_officer)
        result.append(d)
    return result


# ═════════════════════════════════════════════════════════════════════════════
# Patch
# ═════════════════════════════════════════════════════════════════════════════


def _require(identity, capability):
    if not identity.can(capability):
        raise PermissionDeniedError(capability)


def _find_document(submission, document_id):
    try:
        document_id = int(document_id)
    except (TypeError, ValueError):
        raise ValidationError("document_id must be an integer", details={"document_id": "invalid"})
    doc = submission.document(document_id)
    if doc is None:
        raise NotFoundError(resource="Document", resource_id=document_id)
    return doc


def _check_document_status(value):
    if value is not None and value not in DOCUMENT_STATUSES:
        raise ValidationError(f"Invalid document status: {value}", details={"document_status": "invalid"})


def record_document_upload(submission, document_id, file_url, identity, document_status=None):
    """Attach a file to a checklist document. ``file_url`` is only set the first time."""
    _require(identity, "documents.upload")
    _check_document_status(document_status)
    doc = _find_document(submission, document_id)

    if doc.file_url is None:
        doc.file_url = file_url
    elif doc.file_url != file_url:
        logger.info("Document %s already has a file; refreshing upload time only", doc.id,
                    extra={"submission_id": submission.id})
    doc.status = document_status or "UPLOADED"
    doc.uploaded_at = utcnow()
    submission.updated_at = utcnow()
    db_commit_or_raise("Document")
    return doc


def review_document(submission, document_id, identity, document_status=None, comment=KEEP):
    """Set a reviewer's status and/or comment on a document."""
    _require(identity, "documents.review")
    _check_document_status(document_status)
    doc = _find_document(submission, document_id)
    if document_status is None and comment is KEEP:
        raise ValidationError("document_status or comment is required")

    if document_status is not None:
        doc.status = document_status
    if comment is not KEEP:
        doc.comment = comment
    submission.updated_at = utcnow()
    db_commit_or_raise("Document")
    return doc


def _patch_workflow_fields(submission, data, identity):
    status = data.get("status")
    lo_stage = data.get("lo_stage", KEEP)
    gm_stage = data.get("legal_gm_stage", KEEP)

    if lo_stage is not KEEP and lo_stage not in LO_STAGES:
        raise ValidationError(f"Invalid lo_stage: {lo_stage}", details={"lo_stage": "invalid"})
    if gm_stage is not KEEP and gm_stage not in LEGAL_GM_STAGES:
        raise ValidationError(f"Invalid legal_gm_stage: {gm_stage}", details={"legal_gm_stage": "invalid"})

    if status or lo_stage is not KEEP or gm_stage is not KEEP:
        _require(identity, "submissions.update_stage")
    if "assigned_legal_officer" in data:
        _require(identity, "submissions.assign_officer")

    if status:
        if submission.status == DRAFT and status == PENDING_APPROVAL:
            validate_form_data(submission.form_id, submission.form_data)
        apply_transition(submission, status, lo_stage=lo_stage, legal_gm_stage=gm_stage)
    elif lo_stage is not KEEP or gm_stage is not KEEP:
        lo = submission.lo_stage if lo_stage is KEEP else lo_stage
        gm = submission.legal_gm_stage if gm_stage is KEEP else gm_stage
        if not stages_consistent(submission.status, lo, gm):
            raise ValidationError(
                f"Stages lo_stage={lo} legal_gm_stage={gm} are not valid for {submission.status}",
                details={"lo_stage": lo, "legal_gm_stage": gm},
            )
        submission.lo_stage, submission.legal_gm_stage = lo, gm

    if "assigned_legal_officer" in data:
        submission.assigned_legal_officer = data["assigned_legal_officer"] or None


def _patch_draft_fields(submission, data, identity):
    touched = [f for f in DRAFT_FIELDS if f in data] + (["form_data"] if "form_data" in data else [])
    if not touched:
        return
    if submission.status != DRAFT:
        raise ValidationError(
            f"Only DRAFT submissions can be edited (submission is {submission.status})",
            details={f: "read_only" for f in touched},
        )
    _require(identity, "submissions.edit_draft")
    if not _is_owner_or_admin(submission, identity):
        raise PermissionDeniedError("submissions.edit_draft")

    for field in ("title", "company_code"):
        if field in data and not (data[field] or "").strip():
            raise ValidationError(f"{field} cannot be empty", details={field: "required"})
    if "form_data" in data:
        submission.form_data = validate_form_data(submission.form_id, data["form_data"], draft=True)
    for field in DRAFT_FIELDS:
        if field in data:
            setattr(submission, field, data[field])


def update_submission(submission_id, data, identity):
    """
    Partial update. One of:
      - ``document_id`` + ``file_url``: upload onto a document
      - ``document_id`` + ``document_status``/``comment``: document review
      - status / lo_stage / legal_gm_stage / assigned_legal_officer and/or
        draft fields

    Returns the updated SubmissionDocument for the document branches,
    the Submission otherwise.
    """
    if not isinstance(data, dict) or not data:
        raise ValidationError("Request body is required")
    submission = _get(submission_id)

    if data.get("document_id") is not None:
        if data.get("file_url"):
            return record_document_upload(
                submission, data["document_id"], data["file_url"], identity,
                document_status=data.get("document_status"),
            )
        return review_document(
            submission, data["document_id"], identity,
            document_status=data.get("document_status"),
            comment=data["comment"] if "comment" in data else KEEP,
        )

    try:
        _patch_draft_fields(submission, data, identity)
        _patch_workflow_fields(submission, data, identity)
    except (ValidationError, PermissionDeniedError):
        db.session.rollback()
        raise
    submission.updated_at = utcnow()
    db_commit_or_raise("Submission")
    return submission


# ═════════════════════════════════════════════════════════════════════════════
# Ad-hoc documents
# ═════════════════════════════════════════════════════════════════════════════


def add_document(submission_id, data, identity):
    """Append a document to the checklist. Labels stay unique per submission."""
    _require(identity, "documents.add")
    label = (data.get("label") or "").strip()
    if not label:
        raise ValidationError("label is required", details={"label": "required"})
    submission = _get(submission_id)
    if any(d.label == label for d in submission.documents):
        raise ConflictError("Document", "label", label)

    doc = SubmissionDocument(
        label=label,
        type=(data.get("type") or "Common").strip(),
        status="NONE",
        comment=data.get("comment"),
        created_at=utcnow(),
    )
    submission.documents.append(doc)
    submission.updated_at = utcnow()
    db_commit_or_raise("Document")
    return doc


# ═════════════════════════════════════════════════════════════════════════════
# Deletion
# ═════════════════════════════════════════════════════════════════════════════


def delete_submission(submission_id, identity):
    """Delete a DRAFT submission and all of its child rows in one transaction."""
    submission = _get(submission_id)
    if submission.status != DRAFT:
        raise ValidationError(
            f"Only DRAFT submissions can be deleted (submission is {submission.status})",
            details={"status": submission.status},
        )
    _require(identity, "submissions.delete_draft")
    if not _is_owner_or_admin(submission, identity):
        raise PermissionDeniedError("submissions.delete_draft")

    number = submission.submission_no
    db.session.delete(submission)
    db_commit_or_raise("Submission")
    logger.info("Deleted draft submission %s", number,
                extra={"submission_no": number, "user_id": identity.user_id})

"""
SLA / stats aggregator.

Read-only, computed on demand over the whole submission set:
    stats_cards       submissions per form id, all ten forms, zero filled
    ongoing_tasks     open submissions with age, SLA verdict and stage label
    lo_stats          per legal officer workload (on track / late / completed)
    completed_counts  completed submissions per form id
    early_count       completed on or before the due date, per form id
    late_count        completed after the due date, per form id
"""

import logging

from flask import current_app
from sqlalchemy import select

from legal_desk.models import db
from legal_desk.models.form_config import FORM_CATALOG
from legal_desk.models.submission import (
    CANCELLED,
    COMPLETED,
    RESUBMITTED,
    SENT_BACK,
    Submission,
)
from legal_desk.services.user_service import UNASSIGNED_SENTINELS, display_names
from legal_desk.utils.helpers import utcnow

logger = logging.getLogger(__name__)

DEFAULT_SLA_DAYS = 14

STAGE_LABELS = {
    "DRAFT": "Draft",
    "PENDING_APPROVAL": "Awaiting BUM / FBP / Cluster Head Approvals",
    "PENDING_CEO": "Awaiting CEO Approval",
    "PENDING_GM": "Pending Legal GM Initial Review",
    "PENDING_LEGAL_GM": "Pending Legal GM Initial Review",
    "PENDING_LEGAL_GM_FINAL": "Pending Legal GM Final Approval",
    "PENDING_LEGAL_OFFICER": "Under Legal Review",
    "PENDING_SPECIAL_APPROVER": "Awaiting Special Approver",
    "SENT_BACK": "Sent Back — Awaiting Resubmission",
}


def stage_label(status):
    return STAGE_LABELS.get(status, status)


def _sla_days():
    return current_app.config.get("SLA_DAYS", DEFAULT_SLA_DAYS)


def _whole_days(later, earlier):
    # timedelta.days floors, matching floor(delta / 1 day) for negatives too
    return (later - earlier).days


def _ongoing_task(s, now, sla_days):
    days_since = _whole_days(now, s.created_at)
    late = s.status == SENT_BACK or days_since > sla_days
    return {
        "id": s.id,
        "request_no": s.submission_no,
        "title": s.form_name or FORM_CATALOG[1],
        "stage": stage_label(s.status),
        "days_since": days_since,
        "days_overdue": days_since - sla_days if late and days_since > sla_days else None,
        "filter": "LATE" if late else "ON_TRACK",
    }


def _completed_early(s, sla_days):
    if s.due_date is not None:
        return s.updated_at <= s.due_date
    return _whole_days(s.updated_at, s.created_at) <= sla_days


def _lo_stats(submissions):
    buckets = {}
    for s in submissions:
        officer = s.assigned_legal_officer
        if not officer or officer in UNASSIGNED_SENTINELS:
            continue
        if s.status == RESUBMITTED:
            continue
        counts = buckets.setdefault(officer, {"on_track": 0, "late": 0, "completed": 0})
        if s.status == COMPLETED:
            counts["completed"] += 1
        elif s.status in (SENT_BACK, CANCELLED):
            counts["late"] += 1
        else:
            counts["on_track"] += 1

    names = display_names(buckets.keys())
    return [
        {"id": officer, "name": names.get(officer, officer), **counts}
        for officer, counts in buckets.items()
    ]


def compute_stats(now=None):
    """
    Aggregate dashboard statistics.

    Args:
        now: Reference time (naive UTC). Defaults to the current time.

    Returns:
        dict with stats_cards, lo_stats, ongoing_tasks, completed_counts,
        early_count, late_count. Per-form maps are keyed by form id.
    """
    now = now or utcnow()
    sla_days = _sla_days()
    submissions = db.session.execute(
        select(Submission).order_by(Submission.created_at, Submission.id)
    ).scalars().all()

    form_counts = {form_id: 0 for form_id in FORM_CATALOG}
    completed_counts, early_count, late_count = {}, {}, {}
    ongoing_tasks = []

    for s in submissions:
        form_id = s.form_id or 1
        if form_id in form_counts:
            form_counts[form_id] += 1

        if s.status not in (COMPLETED, CANCELLED):
            ongoing_tasks.append(_ongoing_task(s, now, sla_days))

        if s.status == COMPLETED:
            completed_counts[form_id] = completed_counts.get(form_id, 0) + 1
            target = early_count if _completed_early(s, sla_days) else late_count
            target[form_id] = target.get(form_id, 0) + 1

    stats_cards = [
        {"form_id": form_id, "label": label, "count": form_counts[form_id]}
        for form_id, label in FORM_CATALOG.items()
    ]

    logger.debug("Stats computed over %d submissions", len(submissions))
    return {
        "stats_cards": stats_cards,
        "lo_stats": _lo_stats(submissions),
        "ongoing_tasks": ongoing_tasks,
        "completed_counts": completed_counts,
        "early_count": early_count,
        "late_count": late_count,
    }

"""
Submission number allocator.

Format: ``LHD_<YYYYMMDDHHMMSS>_<NNN>`` where the timestamp is local wall-clock
time (config ``LOCAL_TIMEZONE``) and NNN is one more than the number of
submissions created since local midnight, zero padded to three digits.

Count-then-insert is not atomic. Uniqueness is enforced by the UNIQUE
constraint on ``submissions.submission_no``; the creation unit of work in
``submission_service`` retries with a fresh count when its insert collides.
Allocation itself never writes.
"""

import logging
from datetime import datetime, time, timezone
from zoneinfo import ZoneInfo

from flask import current_app
from sqlalchemy import func, select

from legal_desk.models import db
from legal_desk.models.submission import Submission
from legal_desk.utils.helpers import utcnow

logger = logging.getLogger(__name__)

PREFIX = "LHD"


def local_zone():
    name = current_app.config.get("LOCAL_TIMEZONE") or "UTC"
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def to_local(now_utc, tz=None):
    """Naive UTC → aware local datetime."""
    return now_utc.replace(tzinfo=timezone.utc).astimezone(tz or local_zone())


def local_day_start(now_utc, tz=None):
    """Naive UTC instant of the local midnight that starts ``now_utc``'s day."""
    tz = tz or local_zone()
    local_now = to_local(now_utc, tz)
    midnight = datetime.combine(local_now.date(), time.min, tzinfo=tz)
    return midnight.astimezone(timezone.utc).replace(tzinfo=None)


def count_created_since(start_utc):
    return db.session.scalar(
        select(func.count(Submission.id)).where(Submission.created_at >= start_utc)
    ) or 0


def format_submission_no(local_now, sequence):
    return f"{PREFIX}_{local_now.strftime('%Y%m%d%H%M%S')}_{sequence:03d}"


def next_submission_no(now_utc=None):
    """Allocate the next candidate number for ``now_utc`` (naive UTC)."""
    now_utc = now_utc or utcnow()
    tz = local_zone()
    today = count_created_since(local_day_start(now_utc, tz))
    number = format_submission_no(to_local(now_utc, tz), today + 1)
    logger.debug("Allocated candidate submission number %s", number,
                 extra={"submission_no": number})
    return number


def explicit_override(value):
    """Return the trimmed caller-supplied number, or None when blank."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def is_taken(submission_no):
    return db.session.scalar(
        select(func.count(Submission.id)).where(Submission.submission_no == submission_no)
    ) > 0
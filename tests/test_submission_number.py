"""
Submission number allocator + creation retry.

    LHD_<YYYYMMDDHHMMSS>_<NNN>, NNN = submissions since local midnight + 1

Collisions on the UNIQUE submission_no are resolved by re-running the
creation unit of work with a fresh count.
"""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import func, select

from legal_desk.core.exceptions import ConflictError
from legal_desk.models import db
from legal_desk.models.submission import Submission
from legal_desk.services import submission_number
from legal_desk.services.submission_service import create_submission

FIXED_NOW = datetime(2026, 3, 10, 10, 0, 0)


@pytest.fixture()
def frozen_clock(monkeypatch):
    monkeypatch.setattr(submission_number, "utcnow", lambda: FIXED_NOW)
    return FIXED_NOW


def _payload(**overrides):
    data = {"title": "Supply Agreement", "company_code": "DIMO", "parties": [{"type": "Company"}]}
    data.update(overrides)
    return data


def _count():
    return db.session.scalar(select(func.count(Submission.id)))


class TestFormat:

    def test_zero_padded_sequence(self):
        local = datetime(2026, 3, 10, 15, 4, 5, tzinfo=timezone.utc)
        assert submission_number.format_submission_no(local, 7) == "LHD_20260310150405_007"

    def test_first_of_the_day(self, frozen_clock):
        assert submission_number.next_submission_no(frozen_clock) == "LHD_20260310100000_001"

    def test_third_submission_of_the_day_ends_in_003(self, frozen_clock, identity):
        create_submission(_payload(), identity())
        create_submission(_payload(), identity())
        third = create_submission(_payload(), identity())
        assert third.submission_no == "LHD_20260310100000_003"

    def test_yesterdays_submissions_do_not_count(self, frozen_clock, make_submission):
        make_submission(created_at=FIXED_NOW - timedelta(days=1))
        assert submission_number.next_submission_no(FIXED_NOW).endswith("_001")


class TestLocalDay:

    def test_local_midnight_in_a_positive_offset_zone(self):
        tz = ZoneInfo("Asia/Colombo")  # UTC+05:30
        # 20:00 UTC is already 01:30 the next day in Colombo
        start = submission_number.local_day_start(datetime(2026, 3, 10, 20, 0), tz)
        assert start == datetime(2026, 3, 10, 18, 30)

    def test_timestamp_uses_local_wall_clock(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "LOCAL_TIMEZONE", "Asia/Colombo")
        number = submission_number.next_submission_no(datetime(2026, 3, 10, 20, 0))
        assert number == "LHD_20260311013000_001"


class TestExplicitOverride:

    def test_blank_override_is_ignored(self):
        assert submission_number.explicit_override("   ") is None
        assert submission_number.explicit_override(None) is None

    def test_override_is_trimmed_and_used_verbatim(self, identity):
        submission = create_submission(_payload(submission_no="  LEGACY-42 "), identity())
        assert submission.submission_no == "LEGACY-42"

    def test_colliding_override_is_a_conflict(self, identity):
        create_submission(_payload(submission_no="LEGACY-42"), identity())
        with pytest.raises(ConflictError):
            create_submission(_payload(submission_no="LEGACY-42"), identity())
        assert _count() == 1


class TestCollisionRetry:

    def test_stale_count_is_retried_with_a_fresh_number(self, frozen_clock, identity, monkeypatch):
        create_submission(_payload(), identity())

        real_count = submission_number.count_created_since
        calls = []

        def stale_then_real(start):
            calls.append(start)
            return 0 if len(calls) == 1 else real_count(start)

        monkeypatch.setattr(submission_number, "count_created_since", stale_then_real)
        second = create_submission(_payload(), identity())

        assert second.submission_no == "LHD_20260310100000_002"
        assert len(calls) == 2
        assert _count() == 2

    def test_racing_creations_get_distinct_gapless_numbers(self, frozen_clock, identity, monkeypatch):
        """Every request read the count before anyone inserted."""
        real_count = submission_number.count_created_since
        state = {"stale": False}

        def racing_count(start):
            if state["stale"]:
                state["stale"] = False
                return 0
            return real_count(start)

        monkeypatch.setattr(submission_number, "count_created_since", racing_count)
        numbers = []
        for _ in range(5):
            state["stale"] = True
            numbers.append(create_submission(_payload(), identity()).submission_no)

        assert numbers == [f"LHD_20260310100000_{n:03d}" for n in range(1, 6)]

    def test_exhausted_retries_are_a_conflict(self, app, frozen_clock, identity, monkeypatch):
        create_submission(_payload(), identity())
        monkeypatch.setattr(submission_number, "count_created_since", lambda start: 0)
        monkeypatch.setitem(app.config, "SUBMISSION_NO_MAX_ATTEMPTS", 3)

        with pytest.raises(ConflictError):
            create_submission(_payload(), identity())
        assert _count() == 1

    def test_retry_rebuilds_the_whole_aggregate(self, frozen_clock, identity, monkeypatch):
        create_submission(_payload(), identity())
        real_count = submission_number.count_created_since
        calls = []

        def stale_then_real(start):
            calls.append(start)
            return 0 if len(calls) == 1 else real_count(start)

        monkeypatch.setattr(submission_number, "count_created_since", stale_then_real)
        second = create_submission(_payload(parties=[{"type": "Individual"}]), identity())

        labels = [d.label for d in second.documents]
        assert len(labels) == len(set(labels))
        assert [a.role for a in second.approvals] == ["BUM", "FBP", "CLUSTER_HEAD"]

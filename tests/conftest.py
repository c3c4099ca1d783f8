"""
Shared pytest fixtures for the Legal Desk test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - make_user: directory user factory
    - auth_headers: Bearer header factory for any role
    - identity: Identity factory for service-level calls
    - make_submission: ORM submission factory (bypasses workflow guards)
"""

from datetime import datetime, timedelta

import pytest

from legal_desk import create_app
from legal_desk.core.roles import Identity, Role
from legal_desk.models import db as _db
from legal_desk.models.auth import User
from legal_desk.models.submission import (
    GM_INITIAL_REVIEW,
    PENDING_APPROVAL,
    Submission,
    SubmissionApproval,
    SubmissionDocument,
    SubmissionParty,
    post_approval_route,
)
from legal_desk.services.jwt_service import generate_access_token

FIXED_NOW = datetime(2026, 3, 10, 10, 0, 0)


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Identity fixtures ────────────────────────────────────────────────────


@pytest.fixture()
def make_user():
    """Create and commit a directory User."""
    counter = {"n": 0}

    def _make(role="INITIATOR", name=None, email=None, department=None, is_active=True):
        counter["n"] += 1
        role = getattr(role, "value", role)
        user = User(
            name=name or f"{role.title()} User {counter['n']}",
            email=email or f"{role.lower()}{counter['n']}@testdimo.com",
            role=role,
            department=department,
            is_active=is_active,
            form_ids=[],
        )
        _db.session.add(user)
        _db.session.commit()
        return user

    return _make


@pytest.fixture()
def auth_headers():
    """Return a JSON-less Authorization header dict for a role."""

    def _headers(role="INITIATOR", user_id=None, email="", name=""):
        role = Role.parse(role)
        token = generate_access_token(
            user_id or f"{role.value.lower()}-1", role,
            email=email or f"{role.value.lower()}@testdimo.com",
            name=name or role.value.title(),
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def identity():
    """Build an Identity without going through a token."""

    def _identity(role="INITIATOR", user_id=None, email="", name=""):
        role = Role.parse(role)
        return Identity(
            user_id=user_id or f"{role.value.lower()}-1",
            role=role,
            email=email or f"{role.value.lower()}@testdimo.com",
            name=name or role.value.title(),
        )

    return _identity


# ── Submission factory ───────────────────────────────────────────────────


@pytest.fixture()
def make_submission():
    """Create a Submission at an arbitrary state (bypasses workflow guards).

    Approval rows follow the form rules (no CLUSTER_HEAD on form 3) unless
    ``approvals`` is given as a list of (role, status) pairs.
    """
    counter = {"n": 0}

    def _make(
        status=PENDING_APPROVAL,
        form_id=1,
        lo_stage=None,
        legal_gm_stage=GM_INITIAL_REVIEW,
        initiator_id="initiator-1",
        created_at=None,
        updated_at=None,
        due_date=None,
        approvals=None,
        documents=("Certificate of Incorporation",),
        parties=("Company",),
        **fields,
    ):
        counter["n"] += 1
        created_at = created_at or FIXED_NOW
        if approvals is None:
            roles = ["BUM", "FBP"] + ([] if form_id == 3 else ["CLUSTER_HEAD"])
            approvals = [(r, "PENDING") for r in roles]

        submission = Submission(
            submission_no=fields.pop("submission_no", f"LHD_20260310100000_{counter['n']:03d}"),
            form_id=form_id,
            form_name=fields.pop("form_name", f"Form {form_id}"),
            status=status,
            lo_stage=lo_stage or post_approval_route(form_id),
            legal_gm_stage=legal_gm_stage,
            initiator_id=initiator_id,
            title=fields.pop("title", f"Agreement {counter['n']}"),
            company_code=fields.pop("company_code", "DIMO"),
            form_data=fields.pop("form_data", {}),
            created_at=created_at,
            updated_at=updated_at or created_at,
            due_date=due_date if due_date is not None else created_at + timedelta(days=14),
            **fields,
        )
        submission.parties = [SubmissionParty(type=t, name=f"{t} Ltd") for t in parties]
        submission.documents = [
            SubmissionDocument(label=label, type="Company", status="NONE", created_at=created_at)
            for label in documents
        ]
        submission.approvals = [
            SubmissionApproval(role=r, approver_name=r.title(), status=s) for r, s in approvals
        ]
        _db.session.add(submission)
        _db.session.commit()
        return submission

    return _make

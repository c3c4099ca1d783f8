"""
Approval state machine.

    1. Generic status patch against STATUS_TRANSITIONS (every valid edge
       succeeds once its preconditions hold, every other edge is rejected
       with 400) and the approval, route and lo_stage guards
    2. Approver aggregation (approve / reject service calls)
    3. Role/action routing via POST /submissions/<id>/approve, end to end
       for the form-specific routes (form 1 → GM, form 2 → CEO,
       form 3 → Legal GM)
    4. Special approvers, court officer, return to initiator
"""

import pytest

from legal_desk.core.exceptions import ValidationError
from legal_desk.models import db
from legal_desk.models.submission import (
    STATUS_TRANSITIONS,
    SUBMISSION_STATUSES,
    Submission,
    SubmissionSpecialApprover,
)
from legal_desk.services import workflow_service

BASE = "/api/v1/submissions"

# Sub-stages a row plausibly has while sitting in each status.
STAGES_AT = {
    "DRAFT": ("PENDING_GM", "INITIAL_REVIEW"),
    "PENDING_APPROVAL": ("PENDING_GM", "INITIAL_REVIEW"),
    "PENDING_CEO": ("PENDING_CEO", "INITIAL_REVIEW"),
    "PENDING_LEGAL_GM": ("PENDING_LEGAL_GM", "INITIAL_REVIEW"),
    "PENDING_GM": ("PENDING_GM", "INITIAL_REVIEW"),
    "PENDING_LEGAL_OFFICER": ("ACTIVE", "INITIAL_REVIEW"),
    "PENDING_LEGAL_GM_FINAL": ("POST_GM_APPROVAL", "FINAL_APPROVAL"),
    "PENDING_SPECIAL_APPROVER": ("POST_GM_APPROVAL", "FINAL_APPROVAL"),
    "COMPLETED": ("POST_GM_APPROVAL", "FINAL_APPROVAL"),
    "SENT_BACK": ("PENDING_GM", "INITIAL_REVIEW"),
    "CANCELLED": ("PENDING_GM", "INITIAL_REVIEW"),
    "RESUBMITTED": ("PENDING_GM", "INITIAL_REVIEW"),
}


def _at(make_submission, status, form_id=1, **fields):
    lo, gm = STAGES_AT[status]
    fields.setdefault("lo_stage", lo)
    fields.setdefault("legal_gm_stage", gm)
    return make_submission(status=status, form_id=form_id, **fields)


ROUTE_FORM = {"PENDING_GM": 1, "PENDING_CEO": 2, "PENDING_LEGAL_GM": 3}


def _ready_for(make_submission, from_status, to_status):
    """A submission that satisfies every precondition of the (from, to) edge."""
    if from_status == "PENDING_APPROVAL" and to_status in ROUTE_FORM:
        form_id = ROUTE_FORM[to_status]
        roles = ["BUM", "FBP"] + ([] if form_id == 3 else ["CLUSTER_HEAD"])
        return _at(make_submission, from_status, form_id=form_id, lo_stage=to_status,
                   approvals=[(r, "APPROVED") for r in roles])
    if from_status == "PENDING_CEO":
        return _at(make_submission, from_status, form_id=2)
    if (from_status, to_status) == ("PENDING_LEGAL_OFFICER", "COMPLETED"):
        return _at(make_submission, from_status, lo_stage="POST_GM_APPROVAL")
    return _at(make_submission, from_status)


def _valid_transitions():
    return [(src, tgt) for src, targets in STATUS_TRANSITIONS.items() for tgt in targets]


def _invalid_transitions():
    return [
        (src, tgt)
        for src, targets in STATUS_TRANSITIONS.items()
        for tgt in sorted(SUBMISSION_STATUSES)
        if tgt not in targets
    ]


def _act(client, auth_headers, submission_id, role, action, headers_role=None, **extras):
    headers = auth_headers(headers_role or role, **extras.pop("_identity", {}))
    return client.post(
        f"{BASE}/{submission_id}/approve",
        json={"role": role, "action": action, **extras},
        headers=headers,
    )


def _reload(submission_id):
    db.session.expire_all()
    return db.session.get(Submission, submission_id)


# ═════════════════════════════════════════════════════════════════════════════
# 1. Generic status patch
# ═════════════════════════════════════════════════════════════════════════════


class TestStatusTransitions:

    @pytest.mark.parametrize("from_status,to_status", _valid_transitions())
    def test_valid(self, client, auth_headers, make_submission, from_status, to_status):
        s = _ready_for(make_submission, from_status, to_status)
        res = client.patch(f"{BASE}/{s.id}", json={"status": to_status}, headers=auth_headers("ADMIN"))
        assert res.status_code == 200, res.get_json()
        assert res.get_json()["data"]["status"] == to_status

    @pytest.mark.parametrize("from_status,to_status", _invalid_transitions())
    def test_invalid(self, client, auth_headers, make_submission, from_status, to_status):
        s = _at(make_submission, from_status)
        res = client.patch(f"{BASE}/{s.id}", json={"status": to_status}, headers=auth_headers("ADMIN"))
        assert res.status_code == 400
        assert _reload(s.id).status == from_status

    def test_every_review_stage_can_be_sent_back(self):
        for status in ("PENDING_APPROVAL", "PENDING_CEO", "PENDING_LEGAL_GM", "PENDING_GM",
                       "PENDING_LEGAL_OFFICER", "PENDING_LEGAL_GM_FINAL", "PENDING_SPECIAL_APPROVER"):
            assert "SENT_BACK" in STATUS_TRANSITIONS[status]

    def test_every_non_terminal_stage_can_be_cancelled(self):
        for status, targets in STATUS_TRANSITIONS.items():
            if status not in ("COMPLETED", "CANCELLED", "RESUBMITTED"):
                assert "CANCELLED" in targets

    def test_transition_writes_stages_together(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_LEGAL_OFFICER")
        data = client.patch(f"{BASE}/{s.id}", json={"status": "PENDING_LEGAL_GM_FINAL"},
                            headers=auth_headers("ADMIN")).get_json()["data"]
        assert (data["lo_stage"], data["legal_gm_stage"]) == ("POST_GM_APPROVAL", "FINAL_APPROVAL")

    def test_status_patch_requires_capability(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_APPROVAL")
        res = client.patch(f"{BASE}/{s.id}", json={"status": "CANCELLED"}, headers=auth_headers("INITIATOR"))
        assert res.status_code == 403

    def test_draft_submit_checks_form_data(self, client, auth_headers, make_submission):
        s = _at(make_submission, "DRAFT", form_id=2, lo_stage="PENDING_CEO")
        res = client.patch(f"{BASE}/{s.id}", json={"status": "PENDING_APPROVAL"}, headers=auth_headers("ADMIN"))
        assert res.status_code == 400
        assert "form_data.monthly_rental" in res.get_json()["details"]


class TestTransitionGuards:

    def _patch(self, client, auth_headers, s, status, role="ADMIN"):
        return client.patch(f"{BASE}/{s.id}", json={"status": status}, headers=auth_headers(role))

    def test_pending_approvals_block_route(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_APPROVAL", form_id=2, lo_stage="PENDING_CEO")
        res = self._patch(client, auth_headers, s, "PENDING_CEO", role="LEGAL_GM")
        assert res.status_code == 400
        assert res.get_json()["details"]["approvals"] == ["BUM", "CLUSTER_HEAD", "FBP"]
        assert _reload(s.id).status == "PENDING_APPROVAL"

    def test_route_must_match_form(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_APPROVAL", form_id=2, lo_stage="PENDING_CEO",
                approvals=[("BUM", "APPROVED"), ("FBP", "APPROVED"), ("CLUSTER_HEAD", "APPROVED")])
        res = self._patch(client, auth_headers, s, "PENDING_GM", role="LEGAL_GM")
        assert res.status_code == 400
        assert res.get_json()["details"]["expected_status"] == "PENDING_CEO"
        s = _reload(s.id)
        assert (s.status, s.lo_stage) == ("PENDING_APPROVAL", "PENDING_CEO")

    def test_route_mismatch_with_pending_approvals(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_APPROVAL", form_id=2, lo_stage="PENDING_CEO")
        assert self._patch(client, auth_headers, s, "PENDING_GM", role="LEGAL_GM").status_code == 400
        assert {a.status for a in _reload(s.id).approvals} == {"PENDING"}

    def test_send_back_ignores_approvals(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_APPROVAL")
        assert self._patch(client, auth_headers, s, "SENT_BACK").status_code == 200

    def test_patch_complete_needs_post_gm_stage(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_LEGAL_OFFICER", lo_stage="ACTIVE")
        res = self._patch(client, auth_headers, s, "COMPLETED", role="LEGAL_OFFICER")
        assert res.status_code == 400
        assert res.get_json()["details"]["lo_stage"] == "ACTIVE"
        s = _reload(s.id)
        assert (s.status, s.lo_stage) == ("PENDING_LEGAL_OFFICER", "ACTIVE")

    def test_final_review_only_from_active(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_LEGAL_OFFICER", lo_stage="POST_GM_APPROVAL")
        res = self._patch(client, auth_headers, s, "PENDING_LEGAL_GM_FINAL", role="LEGAL_OFFICER")
        assert res.status_code == 400
        assert _reload(s.id).status == "PENDING_LEGAL_OFFICER"

    @pytest.mark.parametrize("status", ["PENDING_LEGAL_GM_FINAL", "PENDING_SPECIAL_APPROVER"])
    def test_completion_only_through_legal_officer(self, client, auth_headers, make_submission, status):
        s = _at(make_submission, status)
        assert self._patch(client, auth_headers, s, "COMPLETED").status_code == 400
        assert _reload(s.id).status == status

    def test_special_approvers_must_finish(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_SPECIAL_APPROVER", special_approvers=[
            SubmissionSpecialApprover(approver_email="cfo@testdimo.com", approver_name="cfo",
                                      assigned_by="LEGAL_GM", status="APPROVED"),
            SubmissionSpecialApprover(approver_email="coo@testdimo.com", approver_name="coo",
                                      assigned_by="LEGAL_GM", status="PENDING"),
        ])
        res = self._patch(client, auth_headers, s, "PENDING_LEGAL_OFFICER")
        assert res.status_code == 400
        assert res.get_json()["details"]["special_approvers"] == ["coo@testdimo.com"]
        assert _reload(s.id).status == "PENDING_SPECIAL_APPROVER"


# ═════════════════════════════════════════════════════════════════════════════
# 2. Approver aggregation
# ═════════════════════════════════════════════════════════════════════════════


class TestApproverAggregation:

    @pytest.mark.parametrize("form_id,route", [(1, "PENDING_GM"), (2, "PENDING_CEO"), (3, "PENDING_LEGAL_GM")])
    def test_all_approved_moves_to_form_route(self, make_submission, form_id, route):
        s = make_submission(form_id=form_id)
        roles = ["BUM", "FBP"] + ([] if form_id == 3 else ["CLUSTER_HEAD"])
        statuses = [workflow_service.approve(s.id, role) for role in roles]

        assert statuses[:-1] == ["PENDING_APPROVAL"] * (len(roles) - 1)
        assert statuses[-1] == route
        s = _reload(s.id)
        assert (s.lo_stage, s.legal_gm_stage) == (route, "INITIAL_REVIEW")

    def test_one_rejection_sends_back(self, make_submission):
        s = make_submission()
        workflow_service.approve(s.id, "BUM")
        assert workflow_service.reject(s.id, "FBP", comment="Budget missing") == "SENT_BACK"
        approval = _reload(s.id).approval_for("FBP")
        assert approval.status == "REJECTED"
        assert approval.comment == "Budget missing"
        assert approval.action_date is not None

    def test_cluster_head_has_no_row_on_form_3(self, make_submission):
        s = make_submission(form_id=3)
        with pytest.raises(ValidationError):
            workflow_service.approve(s.id, "CLUSTER_HEAD")

    def test_closed_once_decided(self, make_submission):
        s = _at(make_submission, "PENDING_GM")
        with pytest.raises(ValidationError):
            workflow_service.approve(s.id, "BUM")


# ═════════════════════════════════════════════════════════════════════════════
# 3. Role/action routing
# ═════════════════════════════════════════════════════════════════════════════


class TestHappyPaths:

    def test_form_1_end_to_end(self, client, auth_headers, make_submission):
        s = make_submission(form_id=1)
        for role in ("BUM", "FBP", "CLUSTER_HEAD"):
            assert _act(client, auth_headers, s.id, role, "APPROVE").status_code == 200
        assert _reload(s.id).status == "PENDING_GM"

        res = _act(client, auth_headers, s.id, "LEGAL_GM", "APPROVE", assigned_legal_officer="lo-1")
        data = res.get_json()["data"]
        assert (data["status"], data["lo_stage"]) == ("PENDING_LEGAL_OFFICER", "ACTIVE")
        assert data["assigned_legal_officer"] == "lo-1"

        data = _act(client, auth_headers, s.id, "LEGAL_OFFICER", "SUBMIT_TO_LEGAL_GM").get_json()["data"]
        assert (data["status"], data["lo_stage"], data["legal_gm_stage"]) == (
            "PENDING_LEGAL_GM_FINAL", "POST_GM_APPROVAL", "FINAL_APPROVAL")

        data = _act(client, auth_headers, s.id, "LEGAL_GM", "APPROVE").get_json()["data"]
        assert (data["status"], data["lo_stage"]) == ("PENDING_LEGAL_OFFICER", "POST_GM_APPROVAL")
        assert data["available_actions"] == []
        officer_actions = workflow_service.available_actions(_reload(s.id), "LEGAL_OFFICER")
        assert "COMPLETE" in officer_actions
        assert "SUBMIT_TO_LEGAL_GM" not in officer_actions

        data = _act(client, auth_headers, s.id, "LEGAL_OFFICER", "COMPLETE").get_json()["data"]
        assert data["status"] == "COMPLETED"
        assert data["available_actions"] == []

    def test_form_2_goes_through_ceo(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_CEO", form_id=2)
        data = _act(client, auth_headers, s.id, "CEO", "APPROVE").get_json()["data"]
        assert (data["status"], data["lo_stage"]) == ("PENDING_LEGAL_GM", "PENDING_LEGAL_GM")

    def test_ceo_only_acts_on_form_2(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_CEO", form_id=1)
        assert _act(client, auth_headers, s.id, "CEO", "APPROVE").status_code == 400

    def test_form_3_skips_cluster_head(self, client, auth_headers, make_submission):
        s = make_submission(form_id=3)
        assert _act(client, auth_headers, s.id, "CLUSTER_HEAD", "APPROVE").status_code == 400
        _act(client, auth_headers, s.id, "BUM", "APPROVE")
        data = _act(client, auth_headers, s.id, "FBP", "APPROVE").get_json()["data"]
        assert data["status"] == "PENDING_LEGAL_GM"

    def test_finance_closure(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_LEGAL_OFFICER", lo_stage="POST_GM_APPROVAL")
        assert _act(client, auth_headers, s.id, "FINANCE", "COMPLETE").get_json()["data"]["status"] == "COMPLETED"

    def test_initiator_submits_draft(self, client, auth_headers, make_submission):
        s = _at(make_submission, "DRAFT")
        data = _act(client, auth_headers, s.id, "INITIATOR", "SUBMIT").get_json()["data"]
        assert data["status"] == "PENDING_APPROVAL"


class TestGuards:

    def test_complete_needs_post_gm_stage(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_LEGAL_OFFICER", lo_stage="ACTIVE")
        res = _act(client, auth_headers, s.id, "LEGAL_OFFICER", "COMPLETE")
        assert res.status_code == 400
        assert res.get_json()["details"]["lo_stage"] == "ACTIVE"

    def test_submit_to_gm_only_from_active(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_LEGAL_OFFICER", lo_stage="POST_GM_APPROVAL")
        assert _act(client, auth_headers, s.id, "LEGAL_OFFICER", "SUBMIT_TO_LEGAL_GM").status_code == 400

    def test_legal_gm_initial_approve_needs_officer(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_GM")
        res = _act(client, auth_headers, s.id, "LEGAL_GM", "APPROVE")
        assert res.status_code == 400
        assert res.get_json()["details"] == {"assigned_legal_officer": "required"}

    def test_cannot_act_as_another_role(self, client, auth_headers, make_submission):
        s = make_submission()
        res = _act(client, auth_headers, s.id, "BUM", "APPROVE", headers_role="INITIATOR")
        assert res.status_code == 403

    def test_admin_acts_in_any_role(self, client, auth_headers, make_submission):
        s = make_submission()
        res = _act(client, auth_headers, s.id, "BUM", "APPROVE", headers_role="ADMIN")
        assert res.status_code == 200
        assert _reload(s.id).approval_for("BUM").status == "APPROVED"

    @pytest.mark.parametrize("status", ["COMPLETED", "CANCELLED", "RESUBMITTED"])
    def test_terminal_rejects_actions(self, client, auth_headers, make_submission, status):
        s = _at(make_submission, status)
        assert _act(client, auth_headers, s.id, "INITIATOR", "CANCEL").status_code == 400

    def test_unknown_action(self, client, auth_headers, make_submission):
        s = make_submission()
        assert _act(client, auth_headers, s.id, "BUM", "ESCALATE").status_code == 400

    def test_unknown_role(self, client, auth_headers, make_submission):
        s = make_submission()
        assert _act(client, auth_headers, s.id, "JANITOR", "APPROVE", headers_role="ADMIN").status_code == 400

    def test_sent_back_alias(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_GM")
        data = _act(client, auth_headers, s.id, "LEGAL_GM", "SENT_BACK").get_json()["data"]
        assert data["status"] == "SENT_BACK"

    def test_unknown_submission(self, client, auth_headers):
        assert _act(client, auth_headers, "missing", "BUM", "APPROVE").status_code == 404

    def test_requires_identity(self, client, make_submission):
        s = make_submission()
        res = client.post(f"{BASE}/{s.id}/approve", json={"role": "BUM", "action": "APPROVE"})
        assert res.status_code == 401


# ═════════════════════════════════════════════════════════════════════════════
# 4. Special approvers, court officer, return to initiator
# ═════════════════════════════════════════════════════════════════════════════


class TestSpecialApprovers:

    def _assigned(self, client, auth_headers, make_submission, emails):
        s = _at(make_submission, "PENDING_LEGAL_GM_FINAL")
        res = _act(client, auth_headers, s.id, "LEGAL_GM", "ASSIGN_SPECIAL_APPROVER",
                   special_approvers=[{"approver_email": e, "approver_name": e.split("@")[0]} for e in emails])
        assert res.status_code == 200, res.get_json()
        return s

    def test_assignment(self, client, auth_headers, make_submission):
        s = self._assigned(client, auth_headers, make_submission, ["cfo@testdimo.com"])
        s = _reload(s.id)
        assert s.status == "PENDING_SPECIAL_APPROVER"
        assert [(r.approver_email, r.assigned_by, r.status) for r in s.special_approvers] == [
            ("cfo@testdimo.com", "LEGAL_GM", "PENDING")
        ]

    def test_all_approvals_return_to_legal_officer(self, client, auth_headers, make_submission):
        s = self._assigned(client, auth_headers, make_submission, ["cfo@testdimo.com", "coo@testdimo.com"])

        first = _act(client, auth_headers, s.id, "SPECIAL_APPROVER", "APPROVE",
                     _identity={"email": "cfo@testdimo.com"})
        assert first.get_json()["data"]["status"] == "PENDING_SPECIAL_APPROVER"

        second = _act(client, auth_headers, s.id, "SPECIAL_APPROVER", "APPROVE",
                      _identity={"email": "coo@testdimo.com"}).get_json()["data"]
        assert (second["status"], second["lo_stage"]) == ("PENDING_LEGAL_OFFICER", "POST_GM_APPROVAL")

    def test_only_own_row(self, client, auth_headers, make_submission):
        s = self._assigned(client, auth_headers, make_submission, ["cfo@testdimo.com"])
        res = _act(client, auth_headers, s.id, "SPECIAL_APPROVER", "APPROVE",
                   _identity={"email": "intruder@testdimo.com"})
        assert res.status_code == 403

    @pytest.mark.parametrize("action,row_status", [("REJECT", "SENT_BACK"), ("CANCEL", "CANCELLED")])
    def test_stop_sends_back(self, client, auth_headers, make_submission, action, row_status):
        s = self._assigned(client, auth_headers, make_submission, ["cfo@testdimo.com"])
        _act(client, auth_headers, s.id, "SPECIAL_APPROVER", action, _identity={"email": "cfo@testdimo.com"})
        s = _reload(s.id)
        assert s.status == "SENT_BACK"
        assert s.special_approvers[0].status == row_status

    def test_legal_officer_assignment_keeps_stage(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_LEGAL_OFFICER", lo_stage="ACTIVE")
        data = _act(client, auth_headers, s.id, "LEGAL_OFFICER", "ASSIGN_SPECIAL_APPROVER",
                    approver_email="cfo@testdimo.com").get_json()["data"]
        assert (data["status"], data["lo_stage"]) == ("PENDING_SPECIAL_APPROVER", "ACTIVE")

    def test_assignment_needs_emails(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_LEGAL_GM_FINAL")
        assert _act(client, auth_headers, s.id, "LEGAL_GM", "ASSIGN_SPECIAL_APPROVER").status_code == 400

    def test_assignment_entries_must_be_objects(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_LEGAL_GM_FINAL")
        res = _act(client, auth_headers, s.id, "LEGAL_GM", "ASSIGN_SPECIAL_APPROVER",
                   special_approvers=["cfo@testdimo.com"])
        assert res.status_code == 400
        assert res.get_json()["details"] == {"special_approvers[0]": "invalid"}
        s = _reload(s.id)
        assert (s.status, s.special_approvers) == ("PENDING_LEGAL_GM_FINAL", [])


class TestLegalOfficerActions:

    def test_assign_court_officer_on_form_3(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_LEGAL_OFFICER", form_id=3)
        data = _act(client, auth_headers, s.id, "LEGAL_OFFICER", "ASSIGN_COURT_OFFICER",
                    court_officer_id="court-1").get_json()["data"]
        assert data["court_officer_id"] == "court-1"
        assert data["status"] == "PENDING_LEGAL_OFFICER"

    def test_court_officer_only_on_form_3(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_LEGAL_OFFICER", form_id=1)
        res = _act(client, auth_headers, s.id, "LEGAL_OFFICER", "ASSIGN_COURT_OFFICER", court_officer_id="c")
        assert res.status_code == 400

    def test_return_to_initiator(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_LEGAL_OFFICER")
        doc_id = s.documents[0].id
        data = _act(
            client, auth_headers, s.id, "LEGAL_OFFICER", "RETURN_TO_INITIATOR",
            doc_statuses=[{"document_id": doc_id, "status": "RESUBMIT", "comment": "Expired"}],
            comment="Please refresh the certificate",
            _identity={"name": "Sandalie Gomes"},
        ).get_json()["data"]

        assert data["status"] == "SENT_BACK"
        assert data["documents"][0]["status"] == "RESUBMIT"
        assert data["documents"][0]["comment"] == "Expired"
        assert data["comments"][-1]["text"] == "Please refresh the certificate"
        assert data["comments"][-1]["author_name"] == "Sandalie Gomes"
        assert data["comments"][-1]["author_role"] == "LEGAL_OFFICER"

    def test_return_with_bad_document_status(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_LEGAL_OFFICER")
        res = _act(client, auth_headers, s.id, "LEGAL_OFFICER", "RETURN_TO_INITIATOR",
                   doc_statuses=[{"document_id": s.documents[0].id, "status": "MAYBE"}])
        assert res.status_code == 400
        assert _reload(s.id).status == "PENDING_LEGAL_OFFICER"

    def test_return_accepts_numeric_string_document_id(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_LEGAL_OFFICER")
        res = _act(client, auth_headers, s.id, "LEGAL_OFFICER", "RETURN_TO_INITIATOR",
                   doc_statuses=[{"document_id": str(s.documents[0].id), "status": "RESUBMIT"}])
        assert res.status_code == 200, res.get_json()
        assert res.get_json()["data"]["documents"][0]["status"] == "RESUBMIT"

    def test_return_with_non_numeric_document_id(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_LEGAL_OFFICER")
        res = _act(client, auth_headers, s.id, "LEGAL_OFFICER", "RETURN_TO_INITIATOR",
                   doc_statuses=[{"document_id": "first", "status": "RESUBMIT"}])
        assert res.status_code == 400
        assert res.get_json()["details"] == {"doc_statuses[0].document_id": "invalid"}

    def test_return_with_unknown_document(self, client, auth_headers, make_submission):
        s = _at(make_submission, "PENDING_LEGAL_OFFICER")
        res = _act(client, auth_headers, s.id, "LEGAL_OFFICER", "RETURN_TO_INITIATOR",
                   doc_statuses=[{"document_id": s.documents[0].id + 100, "status": "RESUBMIT"}])
        assert res.status_code == 404

    @pytest.mark.parametrize("doc_statuses,key", [
        (["RESUBMIT"], "doc_statuses[0]"),
        ({"document_id": 1, "status": "RESUBMIT"}, "doc_statuses"),
    ])
    def test_return_doc_statuses_shape(self, client, auth_headers, make_submission, doc_statuses, key):
        s = _at(make_submission, "PENDING_LEGAL_OFFICER")
        res = _act(client, auth_headers, s.id, "LEGAL_OFFICER", "RETURN_TO_INITIATOR", doc_statuses=doc_statuses)
        assert res.status_code == 400
        assert res.get_json()["details"] == {key: "invalid"}
        assert _reload(s.id).status == "PENDING_LEGAL_OFFICER"


class TestAvailableActions:

    def test_approver_actions(self, make_submission):
        s = make_submission()
        assert workflow_service.available_actions(s, "BUM") == ["APPROVE", "CANCEL", "REJECT"]

    def test_gated_by_form(self, make_submission):
        s = make_submission(form_id=3)
        assert workflow_service.available_actions(s, "CLUSTER_HEAD") == []

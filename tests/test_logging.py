"""
Structured logging — JSON field selection and workflow event records.
"""

import json
import logging

from legal_desk.middleware.logging_config import JSONFormatter
from legal_desk.services import workflow_service


def _record(**extra):
    record = logging.LogRecord("legal_desk.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    def test_known_extras_are_emitted(self):
        entry = json.loads(JSONFormatter().format(_record(
            request_id="req-1", submission_id="sub-1", event_type="workflow.approve",
        )))
        assert entry["message"] == "hello world"
        assert entry["level"] == "INFO"
        assert entry["request_id"] == "req-1"
        assert entry["submission_id"] == "sub-1"
        assert entry["event_type"] == "workflow.approve"

    def test_unknown_and_empty_extras_are_dropped(self):
        entry = json.loads(JSONFormatter().format(_record(colour="blue", user_id=None)))
        assert "colour" not in entry
        assert "user_id" not in entry


class TestWorkflowEvents:

    def test_action_record_carries_event_type(self, caplog, identity, make_submission):
        s = make_submission()
        with caplog.at_level(logging.INFO, logger="legal_desk.services.workflow_service"):
            workflow_service.perform_action(s.id, identity("BUM"), "BUM", "APPROVE", {})

        events = [r for r in caplog.records if getattr(r, "event_type", None)]
        assert [r.event_type for r in events] == ["workflow.approve"]
        entry = json.loads(JSONFormatter().format(events[0]))
        assert entry["event_type"] == "workflow.approve"
        assert entry["role"] == "BUM"
        assert entry["submission_id"] == s.id

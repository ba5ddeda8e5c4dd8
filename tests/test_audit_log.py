"""Tests for the audit logger."""

import csv
import io
import json
import tempfile
from pathlib import Path

from creg.security.audit_log import AuditLogger


def test_log_and_filter():
    with tempfile.TemporaryDirectory() as tmpdir:
        audit = AuditLogger(Path(tmpdir))
        audit.log_event("ST1TEST", "register", content_id=0, details={"title": "A"})
        audit.log_event("ST3FAKE", "update", content_id=0, success=False, error="NotAuthorized")
        audit.log_event("ST1TEST", "set_authority", details={"authority": "ST2TEST"})

        assert len(audit.get_events()) == 3
        assert [e.action for e in audit.get_events(actor="ST3FAKE")] == ["update"]
        assert len(audit.get_events_for_content(0)) == 2
        failed = audit.get_events(success=False)
        assert len(failed) == 1
        assert failed[0].error == "NotAuthorized"
        assert len(audit.get_events(limit=1)) == 1


def test_entries_persist_across_instances():
    with tempfile.TemporaryDirectory() as tmpdir:
        AuditLogger(Path(tmpdir)).log_event("ST1TEST", "register", content_id=4)
        events = AuditLogger(Path(tmpdir)).get_events()
        assert len(events) == 1
        assert events[0].content_id == 4


def test_malformed_lines_are_skipped():
    with tempfile.TemporaryDirectory() as tmpdir:
        audit = AuditLogger(Path(tmpdir))
        audit.log_event("ST1TEST", "register")
        (Path(tmpdir) / "2000-01-01.jsonl").write_text("garbage\n{\"unexpected\": 1}\n")
        assert len(audit.get_events()) == 1


def test_export_formats():
    with tempfile.TemporaryDirectory() as tmpdir:
        audit = AuditLogger(Path(tmpdir))
        audit.log_event("ST1TEST", "register", content_id=0)

        exported = json.loads(audit.export_events("json"))
        assert exported[0]["actor"] == "ST1TEST"
        assert exported[0]["content_id"] == 0

        lines = audit.export_events("csv", action="register").splitlines()
        assert lines[0] == "id,timestamp,actor,action,content_id,success,error"
        assert ",ST1TEST,register,0,True," in lines[1]


def test_csv_export_quotes_fields_with_commas():
    with tempfile.TemporaryDirectory() as tmpdir:
        audit = AuditLogger(Path(tmpdir))
        audit.log_event("ST1TEST,extra", "update", content_id=3, success=False, error="a,b")

        rows = list(csv.reader(io.StringIO(audit.export_events("csv"))))
        assert len(rows) == 2
        assert rows[1][2:] == ["ST1TEST,extra", "update", "3", "False", "a,b"]

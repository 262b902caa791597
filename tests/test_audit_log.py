import pathlib
import sys

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from core.audit import AuditLog


def test_audit_log_records_user_target_and_timestamp():
    log = AuditLog()
    log.record("alice", "approve", "loan:2")
    assert len(log.entries) == 1
    entry = log.entries[0]
    assert entry.user == "alice"
    assert entry.action == "approve"
    assert entry.target == "loan:2"
    assert entry.details == ""
    assert entry.timestamp is not None


def test_as_dict_newest_first():
    log = AuditLog()
    log.record("alice", "add", "expense:1", "1,000")
    log.record("bob", "delete", "employee:3")
    rows = log.as_dict()
    assert [r["user"] for r in rows] == ["bob", "alice"]
    assert rows[1]["details"] == "1,000"
    assert isinstance(rows[0]["timestamp"], str)

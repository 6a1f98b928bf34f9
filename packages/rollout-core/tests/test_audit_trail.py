"""Tests for the bounded audit trail."""

from datetime import timedelta

import pytest

from rollout.control.audit import DEFAULT_RETENTION, AuditTrail


class TestAuditTrail:
    def test_default_retention(self):
        assert AuditTrail().retention == DEFAULT_RETENTION == 100

    def test_rejects_zero_retention(self):
        with pytest.raises(ValueError):
            AuditTrail(retention=0)

    def test_record_returns_entry(self):
        trail = AuditTrail()
        entry = trail.record("alice", "toggle on", "f1", confirmed=True)
        assert entry.actor == "alice"
        assert entry.action == "toggle on"
        assert entry.target_id == "f1"
        assert entry.confirmed is True
        assert entry.id

    def test_list_newest_first(self):
        trail = AuditTrail()
        trail.record("a", "first", "f1")
        trail.record("a", "second", "f1")
        trail.record("a", "third", "f1")
        assert [e.action for e in trail.list()] == ["third", "second", "first"]

    def test_list_limit(self):
        trail = AuditTrail()
        for i in range(5):
            trail.record("a", f"action-{i}", "f1")
        assert [e.action for e in trail.list(2)] == ["action-4", "action-3"]
        assert trail.list(0) == []

    def test_retention_evicts_oldest(self):
        trail = AuditTrail(retention=3)
        for i in range(5):
            trail.record("a", f"action-{i}", "f1")
        assert len(trail) == 3
        assert [e.action for e in trail.list()] == ["action-4", "action-3", "action-2"]

    def test_hundred_and_one_mutations_keep_hundred(self):
        trail = AuditTrail()
        for i in range(101):
            trail.record("a", f"action-{i}", "f1")
        entries = trail.list()
        assert len(entries) == 100
        assert entries[-1].action == "action-1"

    def test_timestamps_non_decreasing(self, monkeypatch):
        trail = AuditTrail()
        first = trail.record("a", "first", "f1")

        import rollout.control.audit as audit_module

        class _Backwards:
            @staticmethod
            def now(tz=None):
                return first.timestamp - timedelta(minutes=5)

        monkeypatch.setattr(audit_module, "datetime", _Backwards)
        second = trail.record("a", "second", "f1")
        assert second.timestamp >= first.timestamp

    def test_to_dict(self):
        entry = AuditTrail().record("alice", "rollout 45%", "f1")
        data = entry.to_dict()
        assert data["action"] == "rollout 45%"
        assert data["timestamp"].endswith("+00:00")

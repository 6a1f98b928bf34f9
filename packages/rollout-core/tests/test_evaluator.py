"""Tests for flag records and the rollout evaluator."""

from datetime import datetime, timedelta, timezone

from rollout.control.flags import EvaluationContext, FeatureFlag, FlagKind, RolloutEvaluator

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _ctx(subject_id=None, segment=None, now=NOW) -> EvaluationContext:
    return EvaluationContext(subject_id=subject_id, segment=segment, now=now)


class TestFeatureFlag:
    def test_defaults(self):
        flag = FeatureFlag(id="f1")
        assert flag.enabled is False
        assert flag.rollout_percentage == 0
        assert flag.kind == FlagKind.BOOLEAN
        assert flag.can_disable_instantly is True

    def test_dict_round_trip(self):
        flag = FeatureFlag(
            id="f1",
            name="Flag one",
            kind=FlagKind.PERCENTAGE,
            enabled=True,
            rollout_percentage=45,
            segments=frozenset({"owner", "admin"}),
            valid_until=NOW,
            category="Polish",
        )
        restored = FeatureFlag.from_dict(flag.to_dict())
        assert restored == flag

    def test_to_dict_sorts_sets(self):
        flag = FeatureFlag(id="f1", segments=frozenset({"b", "a"}))
        assert flag.to_dict()["segments"] == ["a", "b"]

    def test_naive_timestamps_read_as_utc(self):
        flag = FeatureFlag.from_dict({"id": "f1", "valid_from": "2026-01-01T00:00:00"})
        assert flag.valid_from.tzinfo is not None

    def test_name_defaults_to_id(self):
        assert FeatureFlag.from_dict({"id": "f1"}).name == "f1"

    def test_naive_constructor_timestamps_read_as_utc(self):
        flag = FeatureFlag(id="f1", valid_from=datetime(2020, 1, 1), valid_until=datetime(2030, 1, 1))
        assert flag.valid_from == datetime(2020, 1, 1, tzinfo=timezone.utc)
        assert flag.valid_until.tzinfo is not None

    def test_rollout_percentage_clamped_on_construction(self):
        assert FeatureFlag(id="f1", rollout_percentage=150).rollout_percentage == 100
        assert FeatureFlag(id="f1", rollout_percentage=-5).rollout_percentage == 0

    def test_rollout_percentage_clamped_from_storage(self):
        assert FeatureFlag.from_dict({"id": "f1", "rollout_percentage": 400}).rollout_percentage == 100


class TestRolloutEvaluator:
    def setup_method(self):
        self.evaluator = RolloutEvaluator()

    def test_disabled_flag_is_off(self):
        flag = FeatureFlag(id="f1", enabled=False, rollout_percentage=100)
        assert not self.evaluator.is_enabled(flag, _ctx("user-42"))

    def test_full_rollout_admits_anonymous(self):
        flag = FeatureFlag(id="f1", enabled=True, rollout_percentage=100)
        assert self.evaluator.is_enabled(flag, _ctx())

    def test_partial_rollout_rejects_anonymous(self):
        flag = FeatureFlag(id="f1", enabled=True, rollout_percentage=99)
        assert not self.evaluator.is_enabled(flag, _ctx())

    def test_partial_rollout_uses_bucket(self):
        flag = FeatureFlag(id="f1", enabled=True, rollout_percentage=45)
        assert self.evaluator.is_enabled(flag, _ctx("user-42"))
        assert not self.evaluator.is_enabled(flag, _ctx("user-99"))

    def test_zero_rollout_admits_nobody(self):
        flag = FeatureFlag(id="f1", enabled=True, rollout_percentage=0)
        assert not self.evaluator.is_enabled(flag, _ctx("user-42"))

    def test_segment_targeting(self):
        flag = FeatureFlag(
            id="f1", enabled=True, rollout_percentage=100, segments=frozenset({"owner"})
        )
        assert self.evaluator.is_enabled(flag, _ctx("user-42", segment="owner"))
        assert not self.evaluator.is_enabled(flag, _ctx("user-42", segment="viewer"))
        assert not self.evaluator.is_enabled(flag, _ctx("user-42"))

    def test_excluded_subject(self):
        flag = FeatureFlag(
            id="f1", enabled=True, rollout_percentage=100, excluded=frozenset({"user-42"})
        )
        assert not self.evaluator.is_enabled(flag, _ctx("user-42"))
        assert self.evaluator.is_enabled(flag, _ctx("user-99"))

    def test_window_not_started(self):
        flag = FeatureFlag(
            id="f1", enabled=True, rollout_percentage=100, valid_from=NOW + timedelta(hours=1)
        )
        assert not self.evaluator.is_enabled(flag, _ctx("user-42"))

    def test_window_expired(self):
        flag = FeatureFlag(
            id="f1", enabled=True, rollout_percentage=100, valid_until=NOW - timedelta(seconds=1)
        )
        assert not self.evaluator.is_enabled(flag, _ctx("user-42"))

    def test_window_bounds_inclusive(self):
        flag = FeatureFlag(
            id="f1", enabled=True, rollout_percentage=100, valid_from=NOW, valid_until=NOW
        )
        assert self.evaluator.is_enabled(flag, _ctx("user-42"))

    def test_naive_window_bounds(self):
        flag = FeatureFlag(
            id="f1", enabled=True, rollout_percentage=100, valid_from=datetime(2020, 1, 1)
        )
        assert self.evaluator.is_enabled(flag, _ctx("user-42"))
        assert self.evaluator.is_enabled(flag)

    def test_naive_context_now(self):
        flag = FeatureFlag(
            id="f1", enabled=True, rollout_percentage=100, valid_until=NOW
        )
        assert self.evaluator.is_enabled(flag, _ctx("user-42", now=datetime(2026, 3, 1, 11, 0)))
        assert not self.evaluator.is_enabled(flag, _ctx("user-42", now=datetime(2026, 3, 1, 13, 0)))

    def test_missing_context_defaults(self):
        flag = FeatureFlag(id="f1", enabled=True, rollout_percentage=100)
        assert self.evaluator.is_enabled(flag)

    def test_get_value_percentage_kind(self):
        flag = FeatureFlag(id="f1", kind=FlagKind.PERCENTAGE, enabled=True, rollout_percentage=45)
        assert self.evaluator.get_value(flag, _ctx("user-99")) == 45

    def test_get_value_boolean_kind(self):
        flag = FeatureFlag(id="f1", enabled=True, rollout_percentage=45)
        assert self.evaluator.get_value(flag, _ctx("user-42")) is True
        assert self.evaluator.get_value(flag, _ctx("user-99")) is False

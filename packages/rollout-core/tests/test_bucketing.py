"""Tests for deterministic percentage bucketing."""

from rollout.control.bucketing import BUCKET_COUNT, bucket, clamp_percentage, is_admitted


class TestBucket:
    def test_bucket_is_stable(self):
        assert bucket("user-42", "f1") == bucket("user-42", "f1")

    def test_known_buckets(self):
        # sha256("f1:user-42")[:8] -> 5, sha256("f1:user-99")[:8] -> 62
        assert bucket("user-42", "f1") == 5
        assert bucket("user-99", "f1") == 62

    def test_bucket_depends_on_flag(self):
        assert bucket("user-42", "f1") != bucket("user-42", "other")

    def test_bucket_range(self):
        for i in range(500):
            assert 0 <= bucket(f"subject-{i}", "f1") < BUCKET_COUNT

    def test_distribution_is_roughly_uniform(self):
        counts = [0] * 10
        for i in range(5000):
            counts[bucket(f"subject-{i}", "spread") // 10] += 1
        assert min(counts) > 350
        assert max(counts) < 650


class TestAdmission:
    def test_zero_admits_nobody(self):
        assert not any(is_admitted(f"s-{i}", "f1", 0) for i in range(200))

    def test_hundred_admits_everybody(self):
        assert all(is_admitted(f"s-{i}", "f1", 100) for i in range(200))

    def test_monotonic_in_percentage(self):
        subjects = [f"s-{i}" for i in range(300)]
        previous: set[str] = set()
        for pct in range(0, 101, 5):
            admitted = {s for s in subjects if is_admitted(s, "f1", pct)}
            assert previous <= admitted
            previous = admitted


class TestClampPercentage:
    def test_in_range(self):
        assert clamp_percentage(45) == 45

    def test_clamps_low(self):
        assert clamp_percentage(-10) == 0

    def test_clamps_high(self):
        assert clamp_percentage(150) == 100

    def test_truncates_float(self):
        assert clamp_percentage(45.9) == 45

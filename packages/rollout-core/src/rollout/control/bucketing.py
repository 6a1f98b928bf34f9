"""Deterministic bucket assignment for percentage rollouts.

A subject lands in one of 100 buckets per flag. Admission at percentage P
means ``bucket < P``, so raising P never drops an admitted subject.
"""

from __future__ import annotations

import hashlib

BUCKET_COUNT = 100


def bucket(subject_id: str, flag_id: str = "") -> int:
    """Return the stable 0-99 bucket of *subject_id* within *flag_id*'s domain."""
    digest = hashlib.sha256(f"{flag_id}:{subject_id}".encode()).hexdigest()
    return int(digest[:8], 16) % BUCKET_COUNT


def is_admitted(subject_id: str, flag_id: str, percentage: int) -> bool:
    return bucket(subject_id, flag_id) < percentage


def clamp_percentage(value: float) -> int:
    """Clamp any numeric input into the 0..100 integer range."""
    return max(0, min(100, int(value)))

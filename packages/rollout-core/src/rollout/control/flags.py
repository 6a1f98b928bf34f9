"""Feature flags: master switch, segment targeting, time window and percentage rollout."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from rollout.control.bucketing import clamp_percentage, is_admitted


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _dt(value: str | datetime | None) -> datetime | None:
    if not value:
        return None
    parsed = value if isinstance(value, datetime) else datetime.fromisoformat(value)
    # Naive timestamps are read as UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class FlagKind(Enum):
    BOOLEAN = "boolean"
    PERCENTAGE = "percentage"
    SEGMENT = "segment"
    TIME_WINDOW = "time_window"


@dataclass(frozen=True)
class FeatureFlag:
    id: str
    name: str = ""
    description: str = ""
    kind: FlagKind = FlagKind.BOOLEAN
    enabled: bool = False
    rollout_percentage: int = 0  # 0-100
    segments: frozenset[str] = frozenset()
    excluded: frozenset[str] = frozenset()
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    requires_confirmation: bool = False
    can_disable_instantly: bool = True
    category: str = ""
    last_rollback_at: datetime | None = None
    rollback_reason: str | None = None
    last_change_confirmed: bool = False
    created_by: str = "system"
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        # Records built in code follow the same rules as records read from storage
        object.__setattr__(self, "rollout_percentage", clamp_percentage(self.rollout_percentage))
        for name in ("valid_from", "valid_until", "last_rollback_at", "created_at", "updated_at"):
            object.__setattr__(self, name, _dt(getattr(self, name)))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "kind": self.kind.value,
            "enabled": self.enabled,
            "rollout_percentage": self.rollout_percentage,
            "segments": sorted(self.segments),
            "excluded": sorted(self.excluded),
            "valid_from": _iso(self.valid_from),
            "valid_until": _iso(self.valid_until),
            "requires_confirmation": self.requires_confirmation,
            "can_disable_instantly": self.can_disable_instantly,
            "category": self.category,
            "last_rollback_at": _iso(self.last_rollback_at),
            "rollback_reason": self.rollback_reason,
            "last_change_confirmed": self.last_change_confirmed,
            "created_by": self.created_by,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> FeatureFlag:
        now = _utcnow()
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            description=data.get("description", ""),
            kind=FlagKind(data.get("kind", "boolean")),
            enabled=bool(data.get("enabled", False)),
            rollout_percentage=int(data.get("rollout_percentage", 0)),
            segments=frozenset(data.get("segments") or ()),
            excluded=frozenset(data.get("excluded") or ()),
            valid_from=_dt(data.get("valid_from")),
            valid_until=_dt(data.get("valid_until")),
            requires_confirmation=bool(data.get("requires_confirmation", False)),
            can_disable_instantly=bool(data.get("can_disable_instantly", True)),
            category=data.get("category", ""),
            last_rollback_at=_dt(data.get("last_rollback_at")),
            rollback_reason=data.get("rollback_reason"),
            last_change_confirmed=bool(data.get("last_change_confirmed", False)),
            created_by=data.get("created_by", "system"),
            created_at=_dt(data.get("created_at")) or now,
            updated_at=_dt(data.get("updated_at")) or now,
        )


@dataclass(frozen=True)
class EvaluationContext:
    subject_id: str | None = None
    segment: str | None = None
    now: datetime | None = None


class RolloutEvaluator:
    """Pure decision function over a flag record and a request context.

    Checks run in a fixed order and the first failing check wins:
    master switch, activity window, segment, exclusion list, percentage.
    An anonymous caller is never admitted at partial rollout.
    """

    def is_enabled(self, flag: FeatureFlag, context: EvaluationContext | None = None) -> bool:
        context = context or EvaluationContext()
        now = _dt(context.now) or _utcnow()

        if not flag.enabled:
            return False
        if flag.valid_from and now < flag.valid_from:
            return False
        if flag.valid_until and now > flag.valid_until:
            return False
        if flag.segments and context.segment not in flag.segments:
            return False
        if context.subject_id is not None and context.subject_id in flag.excluded:
            return False
        if flag.rollout_percentage < 100:
            if not context.subject_id:
                return False
            return is_admitted(context.subject_id, flag.id, flag.rollout_percentage)
        return True

    def get_value(self, flag: FeatureFlag, context: EvaluationContext | None = None) -> bool | int:
        """Percentage flags report their rollout; all others report admission."""
        if flag.kind == FlagKind.PERCENTAGE:
            return flag.rollout_percentage
        return self.is_enabled(flag, context)

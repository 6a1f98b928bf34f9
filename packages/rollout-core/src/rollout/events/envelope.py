"""Change notifications in a CloudEvents 1.0 shaped envelope."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone

FLAG_CHANGED = "rollout.flag.changed"
BRAND_CHANGED = "rollout.brand.changed"

FLAG_SOURCE = "/rollout/control"
BRAND_SOURCE = "/rollout/brands"


@dataclass(frozen=True)
class ChangeEvent:
    type: str
    source: str
    subject: str
    actor: str
    data: dict = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    time: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    specversion: str = "1.0"
    datacontenttype: str = "application/json"

    def to_dict(self) -> dict:
        return asdict(self)


def flag_changed(flag: dict, action: str, actor: str) -> ChangeEvent:
    """Event for a committed flag mutation; *flag* is the new record's dict form."""
    return ChangeEvent(
        type=FLAG_CHANGED,
        source=FLAG_SOURCE,
        subject=flag["id"],
        actor=actor,
        data={"action": action, "flag": flag},
    )


def brand_changed(
    action: str,
    actor: str,
    brand_id: str,
    current_id: str | None,
    preview_id: str | None,
) -> ChangeEvent:
    """Event for a brand pointer or record change.

    Carries both pointers so a renderer can restyle without reading back.
    """
    return ChangeEvent(
        type=BRAND_CHANGED,
        source=BRAND_SOURCE,
        subject=brand_id,
        actor=actor,
        data={"action": action, "current_id": current_id, "preview_id": preview_id},
    )

"""Append-only audit trail for control-plane mutations, bounded by retention."""

from __future__ import annotations

import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = 100


@dataclass(frozen=True)
class AuditEntry:
    actor: str
    action: str
    target_id: str
    confirmed: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "actor": self.actor,
            "action": self.action,
            "target_id": self.target_id,
            "confirmed": self.confirmed,
            "timestamp": self.timestamp.isoformat(),
        }


class AuditTrail:
    """Keeps the newest *retention* entries; older ones fall off silently."""

    def __init__(self, retention: int = DEFAULT_RETENTION) -> None:
        if retention < 1:
            raise ValueError("retention must be at least 1")
        self.retention = retention
        self._entries: deque[AuditEntry] = deque(maxlen=retention)

    def record(self, actor: str, action: str, target_id: str, confirmed: bool = False) -> AuditEntry:
        timestamp = datetime.now(timezone.utc)
        # Wall clock may step backwards; entries stay non-decreasing
        if self._entries and timestamp < self._entries[-1].timestamp:
            timestamp = self._entries[-1].timestamp
        entry = AuditEntry(
            actor=actor,
            action=action,
            target_id=target_id,
            confirmed=confirmed,
            timestamp=timestamp,
        )
        self._entries.append(entry)
        logger.info("audit actor=%s target=%s action=%s", actor, target_id, action)
        return entry

    def list(self, limit: int | None = None) -> list[AuditEntry]:
        """Entries newest first."""
        newest_first = list(reversed(self._entries))
        if limit is None:
            return newest_first
        return newest_first[: max(0, limit)]

    def __len__(self) -> int:
        return len(self._entries)

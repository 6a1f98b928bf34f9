"""Control plane — the only write path for feature flags.

Every successful mutation:
  1. runs under the flag's own lock (same-record writes are serialized),
  2. is committed through FlagStore (persistence first, then memory),
  3. appends exactly one AuditEntry,
  4. publishes a ``rollout.flag.changed`` event.

Emergency disable and rollback bypass the confirmation gate.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Awaitable, Callable

from rollout.control.audit import AuditTrail
from rollout.control.bucketing import clamp_percentage
from rollout.control.errors import ConfirmationRequiredError, RolloutError
from rollout.control.flags import FeatureFlag
from rollout.control.store import FlagStore
from rollout.events.bus import EventBus
from rollout.events.envelope import flag_changed

logger = logging.getLogger(__name__)

EMERGENCY_MARKER = "[EMERGENCY] "

FlagChange = Callable[[FeatureFlag], FeatureFlag]


@dataclass
class MutationOutcome:
    flag_id: str
    success: bool
    flag: FeatureFlag | None = None
    reason: str = ""


class ControlPlane:
    def __init__(
        self,
        store: FlagStore,
        audit: AuditTrail,
        bus: EventBus | None = None,
        enforce_confirmation: bool = False,
    ) -> None:
        self._store = store
        self._audit = audit
        self._bus = bus
        self.enforce_confirmation = enforce_confirmation
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock(self, flag_id: str) -> asyncio.Lock:
        if flag_id not in self._locks:
            self._locks[flag_id] = asyncio.Lock()
        return self._locks[flag_id]

    async def _mutate(
        self,
        flag_id: str,
        actor: str,
        change: FlagChange,
        action: Callable[[FeatureFlag], str],
        confirmed: bool = False,
        gated: bool = True,
    ) -> FeatureFlag:
        self._store.require(flag_id)
        async with self._lock(flag_id):
            current = self._store.require(flag_id)
            if (
                gated
                and self.enforce_confirmation
                and current.requires_confirmation
                and not confirmed
            ):
                logger.warning("Rejected unconfirmed change to %s by %s", flag_id, actor)
                raise ConfirmationRequiredError(flag_id)

            updated = replace(
                change(current),
                updated_at=datetime.now(timezone.utc),
                last_change_confirmed=confirmed,
            )
            await self._store.upsert(updated)
            entry = self._audit.record(actor, action(updated), flag_id, confirmed=confirmed)

        if self._bus is not None:
            await self._bus.publish(flag_changed(updated.to_dict(), entry.action, actor))
        return updated

    # ------------------------------------------------------------------
    # Single-flag operations
    # ------------------------------------------------------------------

    async def toggle(self, flag_id: str, actor: str, confirmed: bool = False) -> FeatureFlag:
        """Flip the master switch. Not idempotent."""
        return await self._mutate(
            flag_id,
            actor,
            lambda f: replace(f, enabled=not f.enabled),
            lambda f: "toggle on" if f.enabled else "toggle off",
            confirmed=confirmed,
        )

    async def set_rollout_percentage(
        self, flag_id: str, percentage: float, actor: str, confirmed: bool = False
    ) -> FeatureFlag:
        """Set the rollout (clamped to 0..100); the master switch follows ``pct > 0``."""
        pct = clamp_percentage(percentage)
        return await self._mutate(
            flag_id,
            actor,
            lambda f: replace(f, rollout_percentage=pct, enabled=pct > 0),
            lambda f: f"rollout {pct}%",
            confirmed=confirmed,
        )

    async def emergency_disable(self, flag_id: str, reason: str, actor: str) -> FeatureFlag:
        flag = await self._mutate(
            flag_id,
            actor,
            lambda f: _disabled(f, EMERGENCY_MARKER + reason),
            lambda f: f"emergency-disable: {reason}",
            gated=False,
        )
        logger.warning("EMERGENCY DISABLE %s by %s: %s", flag_id, actor, reason)
        return flag

    async def rollback(self, flag_id: str, reason: str, actor: str) -> FeatureFlag:
        """Planned reversal: same effect as emergency disable, without the marker."""
        return await self._mutate(
            flag_id,
            actor,
            lambda f: _disabled(f, reason),
            lambda f: f"rollback: {reason}",
            gated=False,
        )

    async def enable_for_subject(
        self, flag_id: str, subject_id: str, actor: str, confirmed: bool = False
    ) -> FeatureFlag:
        """Remove *subject_id* from the exclusion list."""
        return await self._mutate(
            flag_id,
            actor,
            lambda f: replace(f, excluded=f.excluded - {subject_id}),
            lambda f: f"enable-subject: {subject_id}",
            confirmed=confirmed,
        )

    async def disable_for_subject(self, flag_id: str, subject_id: str, actor: str) -> FeatureFlag:
        """Add *subject_id* to the exclusion list."""
        return await self._mutate(
            flag_id,
            actor,
            lambda f: replace(f, excluded=f.excluded | {subject_id}),
            lambda f: f"disable-subject: {subject_id}",
            gated=False,
        )

    # ------------------------------------------------------------------
    # Bulk operations (one audit entry per affected flag)
    # ------------------------------------------------------------------

    async def _bulk(
        self,
        flags: list[FeatureFlag],
        run: Callable[[FeatureFlag], Awaitable[FeatureFlag]],
    ) -> list[MutationOutcome]:
        outcomes: list[MutationOutcome] = []
        for flag in flags:
            try:
                updated = await run(flag)
            except RolloutError as e:
                logger.warning("Bulk change skipped %s: %s", flag.id, e)
                outcomes.append(MutationOutcome(flag_id=flag.id, success=False, reason=str(e)))
            except Exception as e:
                # A storage failure on one member must not strand the rest of the batch
                logger.exception("Bulk change failed for %s", flag.id)
                outcomes.append(MutationOutcome(flag_id=flag.id, success=False, reason=str(e)))
            else:
                outcomes.append(MutationOutcome(flag_id=flag.id, success=True, flag=updated))
        return outcomes

    async def enable_category(
        self, category: str, actor: str, confirmed: bool = False
    ) -> list[MutationOutcome]:
        return await self._bulk(
            self._store.list_by_category(category),
            lambda f: self._mutate(
                f.id,
                actor,
                lambda cur: replace(cur, enabled=True),
                lambda cur: f"category-enable: {category}",
                confirmed=confirmed,
            ),
        )

    async def disable_category(self, category: str, actor: str) -> list[MutationOutcome]:
        return await self._bulk(
            self._store.list_by_category(category),
            lambda f: self._mutate(
                f.id,
                actor,
                lambda cur: replace(cur, enabled=False, rollout_percentage=0),
                lambda cur: f"category-disable: {category}",
                gated=False,
            ),
        )

    async def emergency_disable_all(self, reason: str, actor: str) -> list[MutationOutcome]:
        """Emergency-disable every flag that is currently on."""
        active = [f for f in self._store.list() if f.enabled]
        return await self._bulk(
            active, lambda f: self.emergency_disable(f.id, reason, actor)
        )

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def summary(self) -> dict:
        flags = self._store.list()
        by_category: dict[str, dict[str, int]] = {}
        for flag in flags:
            counts = by_category.setdefault(flag.category, {"total": 0, "active": 0})
            counts["total"] += 1
            if flag.enabled:
                counts["active"] += 1
        active = sum(1 for f in flags if f.enabled)
        return {
            "total": len(flags),
            "active": active,
            "disabled": len(flags) - active,
            "rolled_back": sum(1 for f in flags if f.last_rollback_at is not None),
            "by_category": by_category,
        }


def _disabled(flag: FeatureFlag, reason: str) -> FeatureFlag:
    return replace(
        flag,
        enabled=False,
        rollout_percentage=0,
        last_rollback_at=datetime.now(timezone.utc),
        rollback_reason=reason,
    )

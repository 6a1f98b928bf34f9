"""Brand canary controller — current/preview brand pointers.

States:
  STABLE      no preview active
  PREVIEWING  a candidate brand is being evaluated; current is unchanged

Transitions:
  STABLE/PREVIEWING -> PREVIEWING  enter_preview (replaces any preview)
  PREVIEWING -> STABLE             exit_preview (candidate discarded)
  PREVIEWING -> STABLE             apply_preview (candidate becomes current)

Only apply_preview, switch_brand and rollback_brand move the current
pointer. Exactly one registered brand is the default at all times.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum

from rollout.control.audit import AuditTrail
from rollout.control.bucketing import clamp_percentage
from rollout.control.errors import InvalidStateError
from rollout.control.store import FlagStore
from rollout.events.bus import EventBus
from rollout.events.envelope import brand_changed
from rollout.models import BrandRecord, WhiteLabelConfig

logger = logging.getLogger(__name__)

CURRENT_BRAND_POINTER = "current_brand"


class BrandState(Enum):
    STABLE = "stable"
    PREVIEWING = "previewing"


class BrandCanaryController:
    def __init__(
        self,
        store: FlagStore,
        audit: AuditTrail,
        bus: EventBus | None = None,
        propagation_delay: float = 0.5,
    ) -> None:
        self._store = store
        self._audit = audit
        self._bus = bus
        self.propagation_delay = propagation_delay
        self._current_id: str | None = None
        self._preview_id: str | None = None
        self._lock = asyncio.Lock()

    async def restore(self) -> BrandRecord:
        """Pick the current brand at startup.

        The saved pointer wins when it names a brand that is still active;
        otherwise the default brand becomes current.
        """
        defaults = [b for b in self._store.list_brands() if b.is_default]
        if len(defaults) != 1:
            raise InvalidStateError(f"Expected exactly one default brand, found {len(defaults)}")
        default = defaults[0]

        saved_id = await self._store.backend.get_pointer(CURRENT_BRAND_POINTER)
        saved = self._store.get_brand(saved_id) if saved_id else None
        if saved is not None and saved.is_active:
            self._current_id = saved.id
        else:
            if saved_id:
                logger.warning("Saved brand %s is unavailable, falling back to %s", saved_id, default.id)
            self._current_id = default.id
        self._preview_id = None
        return self.current_brand()

    # ------------------------------------------------------------------
    # Reads (never wait on the lock)
    # ------------------------------------------------------------------

    @property
    def state(self) -> BrandState:
        return BrandState.PREVIEWING if self._preview_id is not None else BrandState.STABLE

    def current_brand(self) -> BrandRecord:
        if self._current_id is None:
            raise InvalidStateError("Brand controller has not been restored")
        return self._store.require_brand(self._current_id)

    def preview_brand(self) -> BrandRecord | None:
        if self._preview_id is None:
            return None
        return self._store.get_brand(self._preview_id)

    def list_brands(self) -> list[BrandRecord]:
        return self._store.list_brands()

    # ------------------------------------------------------------------
    # Preview lifecycle
    # ------------------------------------------------------------------

    async def enter_preview(self, brand_id: str, actor: str) -> BrandRecord:
        async with self._lock:
            candidate = self._store.require_brand(brand_id)
            self._preview_id = candidate.id
            self._audit.record(actor, f"preview-enter: {brand_id}", brand_id)
        await self._publish("preview-enter", actor, brand_id)
        return candidate

    async def exit_preview(self, actor: str) -> BrandRecord:
        """Discard the candidate; the current brand is untouched."""
        async with self._lock:
            discarded = self._preview_id
            if discarded is None:
                return self.current_brand()
            self._preview_id = None
            self._audit.record(actor, f"preview-exit: {discarded}", discarded)
        await self._publish("preview-exit", actor, discarded)
        return self.current_brand()

    async def apply_preview(self, actor: str) -> BrandRecord:
        """Commit the previewed brand as current.

        The propagation delay is awaited while holding only the writer lock;
        readers keep seeing the previous brand until the pointer swap.
        """
        async with self._lock:
            candidate_id = self._preview_id
            if candidate_id is None:
                raise InvalidStateError("No brand preview is active")
            candidate = self._store.require_brand(candidate_id)
            if not candidate.is_active:
                raise InvalidStateError(f"Brand '{candidate_id}' is inactive")

            if self.propagation_delay > 0:
                await asyncio.sleep(self.propagation_delay)

            previous_id = self._current_id
            await self._store.backend.set_pointer(CURRENT_BRAND_POINTER, candidate_id)
            self._current_id = candidate_id
            self._preview_id = None
            self._audit.record(actor, f"apply-preview: {previous_id} -> {candidate_id}", candidate_id)
        logger.info("Brand %s applied by %s (was %s)", candidate_id, actor, previous_id)
        await self._publish("apply-preview", actor, candidate_id)
        return self.current_brand()

    # ------------------------------------------------------------------
    # Direct switching and rollback
    # ------------------------------------------------------------------

    async def switch_brand(self, brand_id: str, actor: str) -> BrandRecord:
        async with self._lock:
            target = self._store.require_brand(brand_id)
            if not target.is_active:
                raise InvalidStateError(f"Brand '{brand_id}' is inactive")
            previous_id = self._current_id
            await self._store.backend.set_pointer(CURRENT_BRAND_POINTER, brand_id)
            self._current_id = brand_id
            self._audit.record(actor, f"switch: {previous_id} -> {brand_id}", brand_id)
        await self._publish("switch", actor, brand_id)
        return target

    async def rollback_brand(self, brand_id: str, actor: str) -> BrandRecord:
        """Deactivate *brand_id* and force the current pointer back to the default."""
        async with self._lock:
            target = self._store.require_brand(brand_id)
            if target.is_default:
                logger.warning("Refused rollback of default brand %s by %s", brand_id, actor)
                raise InvalidStateError("The default brand cannot be rolled back")
            default = self._store.default_brand()
            if default is None:
                raise InvalidStateError("No default brand registered")

            await self._store.upsert_brand(
                target.model_copy(
                    update={
                        "is_active": False,
                        "rollout_percentage": 0,
                        "updated_at": datetime.now(timezone.utc),
                    }
                )
            )
            await self._store.backend.set_pointer(CURRENT_BRAND_POINTER, default.id)
            self._current_id = default.id
            if self._preview_id == brand_id:
                self._preview_id = None
            self._audit.record(actor, f"brand-rollback: {brand_id}", brand_id)
        logger.warning("Brand %s rolled back to %s by %s", brand_id, default.id, actor)
        await self._publish("brand-rollback", actor, brand_id)
        return default

    # ------------------------------------------------------------------
    # Record updates
    # ------------------------------------------------------------------

    async def update_rollout_percentage(self, brand_id: str, percentage: float, actor: str) -> BrandRecord:
        """Advisory canary exposure; does not change which brand is current."""
        pct = clamp_percentage(percentage)
        async with self._lock:
            brand = self._store.require_brand(brand_id)
            updated = await self._store.upsert_brand(
                brand.model_copy(
                    update={"rollout_percentage": pct, "updated_at": datetime.now(timezone.utc)}
                )
            )
            self._audit.record(actor, f"brand-rollout {pct}%", brand_id)
        await self._publish("brand-rollout", actor, brand_id)
        return updated

    async def register_brand(self, brand: BrandRecord, actor: str) -> BrandRecord:
        async with self._lock:
            if self._store.get_brand(brand.id) is not None:
                raise InvalidStateError(f"Brand '{brand.id}' already exists")
            if brand.is_default:
                raise InvalidStateError("A default brand is already registered")
            await self._store.upsert_brand(brand)
            self._audit.record(actor, f"brand-register: {brand.id}", brand.id)
        await self._publish("brand-register", actor, brand.id)
        return brand

    async def toggle_white_label(self, enabled: bool, actor: str) -> BrandRecord:
        return await self.update_white_label(actor, enabled=enabled)

    async def update_white_label(self, actor: str, **changes) -> BrandRecord:
        """Patch the white-label settings of the current brand."""
        unknown = set(changes) - set(WhiteLabelConfig.model_fields)
        if unknown:
            raise ValueError(f"Unknown white-label settings: {', '.join(sorted(unknown))}")
        async with self._lock:
            brand = self.current_brand()
            white_label = WhiteLabelConfig.model_validate({**brand.white_label.model_dump(), **changes})
            updated = await self._store.upsert_brand(
                brand.model_copy(
                    update={"white_label": white_label, "updated_at": datetime.now(timezone.utc)}
                )
            )
            summary = ",".join(f"{k}={v}" for k, v in sorted(changes.items()))
            self._audit.record(actor, f"white-label: {summary}", brand.id)
        await self._publish("white-label", actor, brand.id)
        return updated

    async def _publish(self, action: str, actor: str, brand_id: str) -> None:
        if self._bus is None:
            return
        await self._bus.publish(
            brand_changed(action, actor, brand_id, self._current_id, self._preview_id)
        )

"""RolloutSystem — wires store, evaluator, control plane and brand controller.

Callers outside the core use this facade:
  - query:    is_enabled, get_value, current_brand, preview_brand
  - mutation: ``control`` (flags) and ``brands`` (brand canary)
  - audit:    list_audit_entries (newest first)
"""

from __future__ import annotations

import logging

from rollout.config import RolloutSettings
from rollout.control.audit import AuditEntry, AuditTrail
from rollout.control.brands import BrandCanaryController
from rollout.control.flags import EvaluationContext, RolloutEvaluator
from rollout.control.plane import ControlPlane
from rollout.control.store import FlagStore
from rollout.events.bus import EventHandler, InMemoryEventBus
from rollout.models import BrandRecord
from rollout.persistence.base import InMemoryBackend, StateBackend
from rollout.persistence.redis_store import RedisBackend, RedisConfig
from rollout.persistence.sqlite_store import SqliteBackend
from rollout.seed import SeedCatalog, load_seed

logger = logging.getLogger(__name__)


def build_backend(settings: RolloutSettings) -> StateBackend:
    if settings.backend == "sqlite":
        return SqliteBackend(settings.db_path)
    if settings.backend == "redis":
        return RedisBackend(
            RedisConfig(
                host=settings.redis_host,
                port=settings.redis_port,
                password=settings.redis_password,
                db=settings.redis_db,
            )
        )
    return InMemoryBackend()


async def apply_seed(store: FlagStore, catalog: SeedCatalog) -> None:
    """Insert catalog records the store does not know yet; stored state wins."""
    for flag in catalog.flags:
        if store.get(flag.id) is None:
            await store.upsert(flag)

    has_default = store.default_brand() is not None
    for brand in catalog.brands:
        if store.get_brand(brand.id) is not None:
            continue
        if brand.is_default and has_default:
            logger.warning("Seed brand %s registered as non-default; a default already exists", brand.id)
            brand = brand.model_copy(update={"is_default": False})
        await store.upsert_brand(brand)
        has_default = has_default or brand.is_default


class RolloutSystem:
    def __init__(
        self,
        store: FlagStore,
        audit: AuditTrail,
        control: ControlPlane,
        brands: BrandCanaryController,
        bus: InMemoryEventBus,
    ) -> None:
        self.store = store
        self.audit = audit
        self.control = control
        self.brands = brands
        self.bus = bus
        self.evaluator = RolloutEvaluator()

    @classmethod
    async def create(
        cls,
        settings: RolloutSettings | None = None,
        backend: StateBackend | None = None,
        seed: SeedCatalog | None = None,
    ) -> RolloutSystem:
        settings = settings or RolloutSettings()
        backend = backend or build_backend(settings)
        await backend.init()

        store = FlagStore(backend)
        await store.load()
        await apply_seed(store, seed if seed is not None else load_seed(settings.seed_file))

        audit = AuditTrail(retention=settings.audit_retention)
        bus = InMemoryEventBus()
        control = ControlPlane(
            store, audit, bus=bus, enforce_confirmation=settings.enforce_confirmation
        )
        brands = BrandCanaryController(
            store, audit, bus=bus, propagation_delay=settings.brand_propagation_delay_seconds
        )
        current = await brands.restore()
        logger.info(
            "Rollout system ready: backend=%s flags=%d current_brand=%s",
            settings.backend,
            len(store.list()),
            current.id,
        )
        return cls(store, audit, control, brands, bus)

    # ------------------------------------------------------------------
    # Query interface
    # ------------------------------------------------------------------

    def is_enabled(self, flag_id: str, context: EvaluationContext | None = None) -> bool:
        """Unknown flags evaluate to False."""
        flag = self.store.get(flag_id)
        if flag is None:
            logger.debug("Evaluated unknown flag %s", flag_id)
            return False
        return self.evaluator.is_enabled(flag, context)

    def get_value(self, flag_id: str, context: EvaluationContext | None = None) -> bool | int:
        flag = self.store.get(flag_id)
        if flag is None:
            return False
        return self.evaluator.get_value(flag, context)

    def current_brand(self) -> BrandRecord:
        return self.brands.current_brand()

    def preview_brand(self) -> BrandRecord | None:
        return self.brands.preview_brand()

    def list_audit_entries(self, limit: int = 50) -> list[AuditEntry]:
        return self.audit.list(limit)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Register a presentation-side listener for change events."""
        self.bus.subscribe(event_type, handler)

    async def close(self) -> None:
        await self.store.backend.close()

"""FlagStore — authoritative in-memory records with pluggable persistence.

Reads are plain dict lookups and never wait on writers. ``upsert`` awaits
the backend before swapping the in-memory reference, so once a mutation
returns, both the durable copy and local reads reflect it.
"""

from __future__ import annotations

import logging

from rollout.control.errors import NotFoundError
from rollout.control.flags import FeatureFlag
from rollout.models import BrandRecord
from rollout.persistence.base import InMemoryBackend, StateBackend

logger = logging.getLogger(__name__)


class FlagStore:
    def __init__(self, backend: StateBackend | None = None) -> None:
        self.backend = backend or InMemoryBackend()
        self._flags: dict[str, FeatureFlag] = {}
        self._brands: dict[str, BrandRecord] = {}

    async def load(self) -> None:
        """Hydrate the in-memory maps from the backend."""
        for flag in await self.backend.load_flags():
            self._flags[flag.id] = flag
        for brand in await self.backend.load_brands():
            self._brands[brand.id] = brand
        logger.info("Loaded %d flags and %d brands", len(self._flags), len(self._brands))

    # ------------------------------------------------------------------
    # Flags
    # ------------------------------------------------------------------

    def get(self, flag_id: str) -> FeatureFlag | None:
        return self._flags.get(flag_id)

    def require(self, flag_id: str) -> FeatureFlag:
        flag = self._flags.get(flag_id)
        if flag is None:
            raise NotFoundError("Flag", flag_id)
        return flag

    def list(self) -> list[FeatureFlag]:
        return list(self._flags.values())

    def list_by_category(self, category: str) -> list[FeatureFlag]:
        return [f for f in self._flags.values() if f.category == category]

    def categories(self) -> list[str]:
        return sorted({f.category for f in self._flags.values()})

    async def upsert(self, flag: FeatureFlag) -> FeatureFlag:
        await self.backend.save_flag(flag)
        self._flags[flag.id] = flag
        return flag

    # ------------------------------------------------------------------
    # Brands
    # ------------------------------------------------------------------

    def get_brand(self, brand_id: str) -> BrandRecord | None:
        return self._brands.get(brand_id)

    def require_brand(self, brand_id: str) -> BrandRecord:
        brand = self._brands.get(brand_id)
        if brand is None:
            raise NotFoundError("Brand", brand_id)
        return brand

    def list_brands(self) -> list[BrandRecord]:
        return list(self._brands.values())

    def default_brand(self) -> BrandRecord | None:
        for brand in self._brands.values():
            if brand.is_default:
                return brand
        return None

    async def upsert_brand(self, brand: BrandRecord) -> BrandRecord:
        await self.backend.save_brand(brand)
        self._brands[brand.id] = brand
        return brand

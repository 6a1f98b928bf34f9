"""Persistence backends for flag and brand records.

The in-memory store is authoritative for reads; a backend only has to
keep a durable key-value copy of every committed record plus a few named
pointers (e.g. the current brand).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from rollout.control.flags import FeatureFlag
from rollout.models import BrandRecord


class StateBackend(ABC):
    """Abstract durable key-value medium."""

    @abstractmethod
    async def load_flags(self) -> list[FeatureFlag]: ...

    @abstractmethod
    async def load_brands(self) -> list[BrandRecord]: ...

    @abstractmethod
    async def save_flag(self, flag: FeatureFlag) -> None: ...

    @abstractmethod
    async def save_brand(self, brand: BrandRecord) -> None: ...

    @abstractmethod
    async def get_pointer(self, name: str) -> str | None: ...

    @abstractmethod
    async def set_pointer(self, name: str, value: str | None) -> None: ...

    async def init(self) -> None:
        """Prepare the medium (connections, tables). No-op by default."""

    async def close(self) -> None:
        """Release the medium. No-op by default."""


class InMemoryBackend(StateBackend):
    """Process-local backend; nothing survives a restart."""

    def __init__(self) -> None:
        self._flags: dict[str, dict] = {}
        self._brands: dict[str, dict] = {}
        self._pointers: dict[str, str] = {}

    async def load_flags(self) -> list[FeatureFlag]:
        return [FeatureFlag.from_dict(d) for d in self._flags.values()]

    async def load_brands(self) -> list[BrandRecord]:
        return [BrandRecord.from_dict(d) for d in self._brands.values()]

    async def save_flag(self, flag: FeatureFlag) -> None:
        self._flags[flag.id] = flag.to_dict()

    async def save_brand(self, brand: BrandRecord) -> None:
        self._brands[brand.id] = brand.to_dict()

    async def get_pointer(self, name: str) -> str | None:
        return self._pointers.get(name)

    async def set_pointer(self, name: str, value: str | None) -> None:
        if value is None:
            self._pointers.pop(name, None)
        else:
            self._pointers[name] = value

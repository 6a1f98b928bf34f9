"""Redis-backed record storage.

Key patterns:
  - rollout:flag:{flag_id}     JSON flag document
  - rollout:brand:{brand_id}   JSON brand document
  - rollout:ptr:{name}         named pointer (e.g. current brand id)
Index sets ``rollout:flags`` / ``rollout:brands`` list the stored ids.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

import redis.asyncio as aioredis

from rollout.control.flags import FeatureFlag
from rollout.models import BrandRecord
from rollout.persistence.base import StateBackend


@dataclass
class RedisConfig:
    host: str = "localhost"
    port: int = 6379
    password: str | None = None
    db: int = 0
    max_connections: int = 20
    prefix: str = "rollout"


class RedisBackend(StateBackend):
    def __init__(self, config: RedisConfig) -> None:
        self.config = config
        self._client: aioredis.Redis | None = None

    def get_url(self) -> str:
        auth = f":{self.config.password}@" if self.config.password else ""
        return f"redis://{auth}{self.config.host}:{self.config.port}/{self.config.db}"

    async def _get_client(self) -> aioredis.Redis:
        if self._client is None:
            self._client = aioredis.from_url(
                self.get_url(),
                max_connections=self.config.max_connections,
                decode_responses=True,
            )
        return self._client

    def build_key(self, kind: str, record_id: str) -> str:
        return f"{self.config.prefix}:{kind}:{record_id}"

    def _index_key(self, kind: str) -> str:
        return f"{self.config.prefix}:{kind}s"

    async def _save(self, kind: str, record_id: str, body: dict) -> None:
        client = await self._get_client()
        await client.set(self.build_key(kind, record_id), json.dumps(body))
        await client.sadd(self._index_key(kind), record_id)

    async def _load(self, kind: str) -> list[dict]:
        client = await self._get_client()
        ids = sorted(await client.smembers(self._index_key(kind)))
        if not ids:
            return []
        raw = await client.mget([self.build_key(kind, i) for i in ids])
        return [json.loads(r) for r in raw if r is not None]

    async def load_flags(self) -> list[FeatureFlag]:
        return [FeatureFlag.from_dict(d) for d in await self._load("flag")]

    async def load_brands(self) -> list[BrandRecord]:
        return [BrandRecord.from_dict(d) for d in await self._load("brand")]

    async def save_flag(self, flag: FeatureFlag) -> None:
        await self._save("flag", flag.id, flag.to_dict())

    async def save_brand(self, brand: BrandRecord) -> None:
        await self._save("brand", brand.id, brand.to_dict())

    async def get_pointer(self, name: str) -> str | None:
        client = await self._get_client()
        return await client.get(self.build_key("ptr", name))

    async def set_pointer(self, name: str, value: str | None) -> None:
        client = await self._get_client()
        key = self.build_key("ptr", name)
        if value is None:
            await client.delete(key)
        else:
            await client.set(key, value)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

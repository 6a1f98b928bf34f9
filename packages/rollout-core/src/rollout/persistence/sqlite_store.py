"""SQLite-backed record storage (aiosqlite)."""

from __future__ import annotations

import json
import time

import aiosqlite

from rollout.control.flags import FeatureFlag
from rollout.models import BrandRecord
from rollout.persistence.base import StateBackend


class SqliteBackend(StateBackend):
    """Stores each record as a JSON document keyed by its id.

    Each save commits immediately so a later read from any connection
    observes it.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def init(self) -> None:
        self._db = await aiosqlite.connect(self.db_path)
        await self._db.executescript("""
            CREATE TABLE IF NOT EXISTS feature_flags (
                id TEXT PRIMARY KEY,
                body TEXT NOT NULL,
                updated_at REAL NOT NULL
            );

            CREATE TABLE IF NOT EXISTS brands (
                id TEXT PRIMARY KEY,
                body TEXT NOT NULL,
                updated_at REAL NOT NULL
            );

            CREATE TABLE IF NOT EXISTS pointers (
                name TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
        """)
        await self._db.commit()

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("SqliteBackend.init() has not been awaited")
        return self._db

    async def _upsert(self, table: str, record_id: str, body: dict) -> None:
        await self.db.execute(
            f"""INSERT INTO {table} (id, body, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET body=excluded.body, updated_at=excluded.updated_at""",
            (record_id, json.dumps(body), time.time()),
        )
        await self.db.commit()

    async def _load(self, table: str) -> list[dict]:
        cursor = await self.db.execute(f"SELECT body FROM {table} ORDER BY id ASC")
        rows = await cursor.fetchall()
        return [json.loads(r[0]) for r in rows]

    async def load_flags(self) -> list[FeatureFlag]:
        return [FeatureFlag.from_dict(d) for d in await self._load("feature_flags")]

    async def load_brands(self) -> list[BrandRecord]:
        return [BrandRecord.from_dict(d) for d in await self._load("brands")]

    async def save_flag(self, flag: FeatureFlag) -> None:
        await self._upsert("feature_flags", flag.id, flag.to_dict())

    async def save_brand(self, brand: BrandRecord) -> None:
        await self._upsert("brands", brand.id, brand.to_dict())

    async def get_pointer(self, name: str) -> str | None:
        cursor = await self.db.execute("SELECT value FROM pointers WHERE name = ?", (name,))
        row = await cursor.fetchone()
        return row[0] if row else None

    async def set_pointer(self, name: str, value: str | None) -> None:
        if value is None:
            await self.db.execute("DELETE FROM pointers WHERE name = ?", (name,))
        else:
            await self.db.execute(
                """INSERT INTO pointers (name, value) VALUES (?, ?)
                   ON CONFLICT(name) DO UPDATE SET value=excluded.value""",
                (name, value),
            )
        await self.db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

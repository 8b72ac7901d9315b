"""SQLite implementation of the SnapshotStore protocol."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

log = logging.getLogger(__name__)

SCHEMA = """
-- Last fully scanned block
CREATE TABLE IF NOT EXISTS cursor (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    last_block INTEGER NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Flat snapshot cache, rehydrated on start-up
CREATE TABLE IF NOT EXISTS snapshot (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    payload TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteSnapshotStore:
    """SQLite-backed implementation of the SnapshotStore protocol."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    # ── Cursor ─────────────────────────────────────────────

    async def get_cursor(self) -> int | None:
        async with self.db.execute("SELECT last_block FROM cursor WHERE id=1") as cur:
            row = await cur.fetchone()
            return row["last_block"] if row else None

    async def set_cursor(self, block: int) -> None:
        await self.db.execute(
            "INSERT INTO cursor (id, last_block, updated_at) VALUES (1, ?, ?)"
            " ON CONFLICT(id) DO UPDATE SET last_block=excluded.last_block,"
            " updated_at=excluded.updated_at",
            (block, _now()),
        )
        await self.db.commit()

    # ── Snapshot ───────────────────────────────────────────

    async def load_snapshot(self) -> dict | None:
        async with self.db.execute("SELECT payload FROM snapshot WHERE id=1") as cur:
            row = await cur.fetchone()
        if row is None:
            return None
        try:
            payload = json.loads(row["payload"])
        except json.JSONDecodeError as exc:
            log.warning("Cached snapshot is corrupt, ignoring it: %s", exc)
            return None
        return payload if isinstance(payload, dict) else None

    async def save_snapshot(self, snapshot: dict) -> None:
        await self.db.execute(
            "INSERT INTO snapshot (id, payload, updated_at) VALUES (1, ?, ?)"
            " ON CONFLICT(id) DO UPDATE SET payload=excluded.payload,"
            " updated_at=excluded.updated_at",
            (json.dumps(snapshot), _now()),
        )
        await self.db.commit()

    async def snapshot_updated_at(self) -> str | None:
        async with self.db.execute("SELECT updated_at FROM snapshot WHERE id=1") as cur:
            row = await cur.fetchone()
            return row["updated_at"] if row else None

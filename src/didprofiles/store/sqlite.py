"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

SQLite-backed profile store.
"""

from __future__ import annotations

import asyncio
import sqlite3
import threading
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from ..errors import ProfileStoreError
from .base import ProfileStore

T = TypeVar("T")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS profile_cache (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""


class SQLiteProfileStore(ProfileStore):
    """
    Store rows in one SQLite table.

    Statements run on worker threads through one shared connection guarded
    by a lock; pending writes are committed by `save()`.
    """

    backend_id = "sqlite"

    def __init__(self, path: str | Path) -> None:
        self._path = str(path)
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    async def setup(self) -> None:
        await asyncio.to_thread(self._open)

    async def get(self, key: str) -> str | None:
        row = await self._run(
            lambda conn: conn.execute(
                "SELECT value FROM profile_cache WHERE key = ?", (key,)
            ).fetchone()
        )
        return row[0] if row is not None else None

    async def set(self, key: str, value: str) -> None:
        await self._run(
            lambda conn: conn.execute(
                "INSERT INTO profile_cache (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )
        )

    async def delete(self, key: str) -> None:
        await self._run(
            lambda conn: conn.execute("DELETE FROM profile_cache WHERE key = ?", (key,))
        )

    async def keys(self) -> list[str]:
        rows = await self._run(
            lambda conn: conn.execute("SELECT key FROM profile_cache").fetchall()
        )
        return [row[0] for row in rows]

    async def save(self) -> None:
        await self._run(lambda conn: conn.commit())

    async def close(self) -> None:
        await asyncio.to_thread(self._close)

    def _open(self) -> None:
        with self._lock:
            if self._conn is not None:
                return
            if self._path != ":memory:":
                Path(self._path).parent.mkdir(parents=True, exist_ok=True)
            try:
                conn = sqlite3.connect(self._path, check_same_thread=False)
                conn.execute(_SCHEMA)
                conn.commit()
            except sqlite3.Error as e:
                raise ProfileStoreError(f"Cannot open SQLite store '{self._path}'") from e
            self._conn = conn

    def _close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.commit()
            self._conn.close()
            self._conn = None

    async def _run(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        def _call() -> T:
            with self._lock:
                if self._conn is None:
                    raise ProfileStoreError("SQLite store used before setup()")
                try:
                    return fn(self._conn)
                except sqlite3.Error as e:
                    raise ProfileStoreError(f"SQLite store error: {e}") from e

        return await asyncio.to_thread(_call)

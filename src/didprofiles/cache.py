"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Expiry-aware profile cache layered over a persistent store.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from enum import Enum

from .store.base import ProfileStore
from .types import CacheEntry, ProfileMetadata, now_ms

logger = logging.getLogger("didprofiles.cache")


class StoreState(str, Enum):
    """Lazy store initialization states."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class ProfileCache:
    """
    TTL cache over a `ProfileStore`.

    The store is opened on first use; concurrent first users share one
    initialization task. If opening fails the cache runs without
    persistence: reads miss and writes are dropped.

    Reads filter stale rows themselves, so correctness never depends on when
    `sweep_expired()` runs. Writes, sweeps and clears are serialized so a
    sweep cannot delete a row written while it was scanning.
    """

    def __init__(
        self,
        store: ProfileStore,
        *,
        ttl_ms: Callable[[], int],
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._state = StoreState.UNINITIALIZED
        self._init_task: asyncio.Task[bool] | None = None
        self._write_lock = asyncio.Lock()

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def store(self) -> ProfileStore:
        return self._store

    async def _ready(self) -> bool:
        if self._state is StoreState.READY:
            return True
        if self._state is StoreState.FAILED:
            return False
        if self._init_task is None:
            self._state = StoreState.INITIALIZING
            self._init_task = asyncio.create_task(self._open())
        return await asyncio.shield(self._init_task)

    async def _open(self) -> bool:
        try:
            await self._store.setup()
        except Exception:  # noqa: BLE001
            logger.exception(
                "Profile store '%s' failed to open; continuing without persistence",
                self._store.backend_id,
            )
            self._state = StoreState.FAILED
            return False
        self._state = StoreState.READY
        return True

    async def get(self, key: str) -> ProfileMetadata | None:
        if not await self._ready():
            return None
        try:
            blob = await self._store.get(key)
        except Exception:  # noqa: BLE001
            logger.warning("Profile cache read failed for %s", key, exc_info=True)
            return None
        entry = CacheEntry.loads(blob)
        if entry is None or not entry.is_valid(self._clock(), self._ttl_ms()):
            return None
        return entry.value

    async def set(self, key: str, value: ProfileMetadata) -> None:
        await self.set_many({key: value})

    async def set_many(self, values: Mapping[str, ProfileMetadata]) -> None:
        """Write every value with one timestamp, then persist once."""
        if not values or not await self._ready():
            return
        stored_at = self._clock()
        async with self._write_lock:
            try:
                for key, value in values.items():
                    await self._store.set(key, CacheEntry(value, stored_at).dumps())
                await self._store.save()
            except Exception:  # noqa: BLE001
                logger.warning(
                    "Profile cache write failed for %d entries", len(values), exc_info=True
                )

    async def sweep_expired(self) -> int:
        """Delete stale or undecodable rows and return how many were removed."""
        if not await self._ready():
            return 0
        removed = 0
        async with self._write_lock:
            try:
                now = self._clock()
                ttl = self._ttl_ms()
                for key in await self._store.keys():
                    entry = CacheEntry.loads(await self._store.get(key))
                    if entry is not None and entry.is_valid(now, ttl):
                        continue
                    await self._store.delete(key)
                    removed += 1
                await self._store.save()
            except Exception:  # noqa: BLE001
                logger.warning("Profile cache sweep failed", exc_info=True)
        if removed:
            logger.debug("Swept %d expired profile entries", removed)
        return removed

    async def clear_all(self) -> int:
        """Delete every row regardless of validity."""
        if not await self._ready():
            return 0
        removed = 0
        async with self._write_lock:
            try:
                for key in await self._store.keys():
                    await self._store.delete(key)
                    removed += 1
                await self._store.save()
            except Exception:  # noqa: BLE001
                logger.warning("Profile cache clear failed", exc_info=True)
        return removed

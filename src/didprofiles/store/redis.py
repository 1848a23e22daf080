"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: store/redis.py.
"""

from __future__ import annotations

from typing import Any

from .base import ProfileStore


class RedisProfileStore(ProfileStore):
    """
    Redis-backed store shared by several processes.

    Requires ``redis.asyncio`` (``pip install redis``). Redis owns its own
    durability, so `save()` has nothing to flush.
    """

    backend_id = "redis"

    def __init__(self, redis_client: Any, *, prefix: str = "didprofiles:cache") -> None:
        self._redis = redis_client
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    async def setup(self) -> None:
        await self._redis.ping()

    async def get(self, key: str) -> str | None:
        blob = await self._redis.get(self._key(key))
        if blob is None:
            return None
        if isinstance(blob, bytes):
            return blob.decode("utf-8")
        return str(blob)

    async def set(self, key: str, value: str) -> None:
        await self._redis.set(self._key(key), value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(self._key(key))

    async def keys(self) -> list[str]:
        start = len(self._prefix) + 1
        out: list[str] = []
        async for raw in self._redis.scan_iter(match=f"{self._prefix}:*"):
            name = raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)
            out.append(name[start:])
        return out

    async def save(self) -> None:
        return None

    async def close(self) -> None:
        close = getattr(self._redis, "aclose", None) or getattr(self._redis, "close", None)
        if close is not None:
            await close()

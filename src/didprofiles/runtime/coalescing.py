"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/coalescing.py.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class RequestCoalescer(Generic[T]):
    """
    Deduplicate identical in-flight requests and cap distinct ones.

    Joining an existing task and registering a new one happen in the same
    critical section, so two callers can never both see "nothing in flight"
    for one key.
    """

    def __init__(self, max_in_flight: Callable[[], int]) -> None:
        self._max_in_flight = max_in_flight
        self._tasks: dict[str, asyncio.Task[T]] = {}
        self._lock = asyncio.Lock()
        self._changed = asyncio.Event()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def in_flight_keys(self) -> list[str]:
        return list(self._tasks.keys())

    def wake_waiters(self) -> None:
        """Make every caller waiting for a slot re-evaluate the cap."""
        changed, self._changed = self._changed, asyncio.Event()
        changed.set()

    async def run(
        self,
        key: str,
        factory: Callable[[], Awaitable[T]],
        *,
        recheck: Callable[[], Awaitable[T | None]] | None = None,
        on_join: Callable[[], None] | None = None,
    ) -> T:
        """
        Await the shared task for `key`, starting it when a slot is free.

        When every slot is taken the caller waits for any task to finish or
        for `wake_waiters`, then consults `recheck` (normally a cache lookup)
        before trying again.
        """
        while True:
            changed = None
            async with self._lock:
                task = self._tasks.get(key)
                if task is not None:
                    if on_join is not None:
                        on_join()
                elif len(self._tasks) < max(1, self._max_in_flight()):
                    task = asyncio.create_task(self._lead(key, factory))
                    self._tasks[key] = task
                else:
                    changed = self._changed

            if task is not None:
                return await asyncio.shield(task)

            await changed.wait()
            if recheck is not None:
                hit = await recheck()
                if hit is not None:
                    return hit

    async def _lead(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        try:
            return await factory()
        finally:
            async with self._lock:
                self._tasks.pop(key, None)
                self.wake_waiters()

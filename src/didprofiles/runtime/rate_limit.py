"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/rate_limit.py.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable


class RequestGate:
    """
    Single shared gate spacing outbound calls by a minimum delay.

    Waiters are granted in arrival order: the lock is held across the
    sleep, and ``asyncio.Lock`` wakes waiters first-in first-out.
    """

    def __init__(
        self,
        delay_ms: Callable[[], int],
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._delay_ms = delay_ms
        self._clock = clock
        self._sleep = sleep
        self._last_granted_s: float | None = None
        self._lock = asyncio.Lock()

    @property
    def last_granted_at(self) -> float | None:
        return self._last_granted_s

    async def await_turn(self) -> None:
        async with self._lock:
            if self._last_granted_s is not None:
                wait_s = self._last_granted_s + self._delay_ms() / 1000.0 - self._clock()
                if wait_s > 0:
                    await self._sleep(wait_s)
            self._last_granted_s = self._clock()

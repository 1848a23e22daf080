"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Profile service facade: cache, coalescing, admission control and rate limiting.
"""

from __future__ import annotations

import asyncio
import logging
import time
import urllib.parse
from collections.abc import Awaitable, Callable, Iterable

from .cache import ProfileCache, StoreState
from .config import MAINNET_WEB_BASE_URL, ServiceConfig
from .directory import ProfileDirectory
from .errors import DirectoryError
from .metrics import NoOpProfileMetrics, ProfileMetrics
from .naming import FallbackNamer, display_name_for, truncated_name
from .runtime.coalescing import RequestCoalescer
from .runtime.rate_limit import RequestGate
from .store.base import ProfileStore
from .store.inmemory import InMemoryProfileStore
from .types import ProfileMetadata, now_ms

logger = logging.getLogger("didprofiles.service")


class ProfileService:
    """
    Resolve identifiers to display metadata without ever failing the caller.

    Lookups are answered from the TTL cache when possible. Misses share one
    in-flight fetch per identifier, at most `max_concurrent_requests`
    distinct identifiers are fetched at once, and every fetch passes one
    shared gate spacing calls by `delay_between_requests_ms`.

    Failed lookups return a synthesized unknown profile that is not cached,
    so the next call retries the directory.

    Construct one instance at the application's composition root and pass it
    to consumers.
    """

    def __init__(
        self,
        *,
        directory: ProfileDirectory,
        store: ProfileStore | None = None,
        config: ServiceConfig | None = None,
        namer: FallbackNamer = truncated_name,
        metrics: ProfileMetrics | None = None,
        web_base_url: str = MAINNET_WEB_BASE_URL,
        batch_size: int = 50,
        clock_ms: Callable[[], int] = now_ms,
        monotonic: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._config = config or ServiceConfig()
        self._directory = directory
        self._namer = namer
        self._metrics = metrics or NoOpProfileMetrics()
        self._web_base_url = web_base_url.rstrip("/")
        self._batch_size = max(1, batch_size)
        self._cache = ProfileCache(
            store if store is not None else InMemoryProfileStore(),
            ttl_ms=lambda: self._config.cache_duration_ms,
            clock=clock_ms,
        )
        self._gate = RequestGate(
            lambda: self._config.delay_between_requests_ms,
            clock=monotonic,
            sleep=sleep,
        )
        self._coalescer: RequestCoalescer[ProfileMetadata] = RequestCoalescer(
            lambda: self._config.max_concurrent_requests
        )

    @property
    def store_state(self) -> StoreState:
        return self._cache.state

    @property
    def in_flight(self) -> int:
        return self._coalescer.in_flight

    def fallback_profile(self, did: str) -> ProfileMetadata:
        """Synthesized unknown profile; a pure function of `did`."""
        return ProfileMetadata(
            id=did,
            display_name=display_name_for(did, self._namer),
            avatar_uri=None,
            is_unknown=True,
        )

    def profile_page_url(self, did: str) -> str:
        return f"{self._web_base_url}/{urllib.parse.quote(did, safe=':')}"

    def _count(self, name: str) -> None:
        try:
            self._metrics.incr(name)
        except Exception:  # noqa: BLE001
            logger.warning("Profile metrics sink failed on %s", name, exc_info=True)

    async def get_profile(self, did: str, *, cache_only: bool = False) -> ProfileMetadata:
        """
        Return metadata for `did`.

        With `cache_only`, a miss returns the fallback without any network
        call.
        """
        if not did.strip():
            return self.fallback_profile(did)

        cached = await self._cache.get(did)
        if cached is not None:
            self._count("cache_hits")
            return cached
        self._count("cache_misses")

        if cache_only:
            return self.fallback_profile(did)

        return await self._coalescer.run(
            did,
            lambda: self._fetch(did),
            recheck=lambda: self._cache.get(did),
            on_join=lambda: self._count("coalesced"),
        )

    async def _fetch(self, did: str) -> ProfileMetadata:
        await self._gate.await_turn()
        self._count("fetches")
        try:
            profile = await self._directory.fetch_profile(did)
        except DirectoryError as e:
            logger.warning("Profile lookup for %s failed: %s", did, e)
            self._count("fallbacks")
            return self.fallback_profile(did)
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected error resolving profile %s", did)
            self._count("fallbacks")
            return self.fallback_profile(did)

        await self._cache.set(did, profile)
        return profile

    async def load_profiles(self, dids: Iterable[str]) -> None:
        """
        Preload many identifiers through the batch endpoint.

        Each batch counts as one call against the gate. Identifiers missing
        from a reply are cached as unknown. A failed batch writes nothing.
        """
        unique = list(dict.fromkeys(did for did in dids if did and did.strip()))
        for start in range(0, len(unique), self._batch_size):
            await self._load_batch(unique[start : start + self._batch_size])

    async def _load_batch(self, batch: list[str]) -> None:
        await self._gate.await_turn()
        self._count("batch_fetches")
        try:
            found = await self._directory.fetch_profiles(batch)
        except DirectoryError as e:
            logger.warning("Batch profile lookup for %d ids failed: %s", len(batch), e)
            return
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected error preloading %d profiles", len(batch))
            return

        values = {did: found.get(did) or self.fallback_profile(did) for did in batch}
        await self._cache.set_many(values)

    async def clear_cache(self) -> None:
        removed = await self._cache.clear_all()
        logger.info("Cleared %d cached profiles", removed)

    async def clear_expired_cache(self) -> None:
        await self._cache.sweep_expired()

    def update_config(self, **changes: int | None) -> ServiceConfig:
        """
        Apply a partial update; it governs the next scheduling decision.

        Callers waiting at the admission cap recheck it at once.
        """
        self._config = self._config.merged(**changes)
        self._coalescer.wake_waiters()
        return self._config

    def get_config(self) -> ServiceConfig:
        return self._config

    async def aclose(self) -> None:
        close = getattr(self._cache.store, "close", None)
        if close is None or self._cache.state is not StoreState.READY:
            return
        try:
            await close()
        except Exception:  # noqa: BLE001
            logger.warning("Profile store close failed", exc_info=True)

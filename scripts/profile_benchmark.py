#!/usr/bin/env python3
"""
Profile service benchmark for coalescing and rate-limit characterization.

Runs many concurrent lookups over a small set of identifiers against a
simulated directory and reports how many network fetches were issued.

Usage examples:
  PYTHONPATH=src python scripts/profile_benchmark.py
  PYTHONPATH=src python scripts/profile_benchmark.py --store sqlite --store-path /tmp/p.sqlite3
"""

from __future__ import annotations

import argparse
import asyncio
import random
import statistics
import time
from collections.abc import Sequence

from didprofiles import (
    InMemoryProfileMetrics,
    InMemoryProfileStore,
    JsonFileProfileStore,
    ProfileMetadata,
    ProfileService,
    ProfileStore,
    SQLiteProfileStore,
    ServiceConfig,
)


class SimulatedDirectory:
    def __init__(self, latency_ms: float, unknown_ratio: float) -> None:
        self._latency_s = latency_ms / 1000.0
        self._unknown_ratio = unknown_ratio

    async def fetch_profile(self, did: str) -> ProfileMetadata:
        await asyncio.sleep(self._latency_s)
        if random.random() < self._unknown_ratio:
            return ProfileMetadata(id=did, display_name=did[-8:], is_unknown=True)
        return ProfileMetadata(id=did, display_name=f"user-{did[-6:]}")

    async def fetch_profiles(self, dids: Sequence[str]) -> dict[str, ProfileMetadata]:
        await asyncio.sleep(self._latency_s)
        return {did: ProfileMetadata(id=did, display_name=f"user-{did[-6:]}") for did in dids}


def build_store(kind: str, path: str | None) -> ProfileStore:
    if kind == "inmemory":
        return InMemoryProfileStore()
    if not path:
        raise ValueError("--store-path is required for file-backed stores")
    if kind == "json":
        return JsonFileProfileStore(path)
    return SQLiteProfileStore(path)


async def run_benchmark(
    *,
    store_kind: str,
    store_path: str | None,
    num_lookups: int,
    num_dids: int,
    delay_ms: int,
    max_concurrent: int,
    latency_ms: float,
) -> None:
    metrics = InMemoryProfileMetrics()
    service = ProfileService(
        directory=SimulatedDirectory(latency_ms=latency_ms, unknown_ratio=0.1),
        store=build_store(store_kind, store_path),
        config=ServiceConfig(
            delay_between_requests_ms=delay_ms,
            max_concurrent_requests=max_concurrent,
        ),
        metrics=metrics,
    )
    dids = [f"did:chia:1bench{i:06d}" for i in range(num_dids)]
    latencies: list[float] = []

    async def lookup(did: str) -> None:
        started = time.perf_counter()
        await service.get_profile(did)
        latencies.append(time.perf_counter() - started)

    started = time.perf_counter()
    await asyncio.gather(*(lookup(random.choice(dids)) for _ in range(num_lookups)))
    elapsed = time.perf_counter() - started
    await service.aclose()

    p50 = statistics.median(latencies) if latencies else 0.0
    p95 = sorted(latencies)[int(0.95 * (len(latencies) - 1))] if latencies else 0.0

    print(f"store={store_kind}")
    print(f"lookups={num_lookups}")
    print(f"distinct_dids={num_dids}")
    print(f"delay_ms={delay_ms}")
    print(f"max_concurrent={max_concurrent}")
    print(f"elapsed_s={elapsed:.3f}")
    print(f"fetches={metrics.get('fetches')}")
    print(f"coalesced={metrics.get('coalesced')}")
    print(f"cache_hits={metrics.get('cache_hits')}")
    print(f"lookup_p50_ms={p50 * 1000:.2f}")
    print(f"lookup_p95_ms={p95 * 1000:.2f}")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Profile service benchmark utility")
    parser.add_argument("--store", choices=("inmemory", "json", "sqlite"), default="inmemory")
    parser.add_argument("--store-path", type=str, default=None)
    parser.add_argument("--num-lookups", type=int, default=500)
    parser.add_argument("--num-dids", type=int, default=20)
    parser.add_argument("--delay-ms", type=int, default=20)
    parser.add_argument("--max-concurrent", type=int, default=3)
    parser.add_argument("--latency-ms", type=float, default=30.0)
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    asyncio.run(
        run_benchmark(
            store_kind=args.store,
            store_path=args.store_path,
            num_lookups=args.num_lookups,
            num_dids=args.num_dids,
            delay_ms=args.delay_ms,
            max_concurrent=args.max_concurrent,
            latency_ms=args.latency_ms,
        )
    )


if __name__ == "__main__":
    main()

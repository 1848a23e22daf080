from __future__ import annotations

import asyncio

import pytest

from didprofiles import InMemoryProfileMetrics, ProfileMetadata, ProfileService, ServiceConfig
from didprofiles.metrics import PROFILE_COUNTERS, PrometheusProfileMetrics

prometheus_client = pytest.importorskip("prometheus_client")


def run_async(coro):
    return asyncio.run(coro)


class _StaticDirectory:
    def __init__(self) -> None:
        self.calls: list[str] = []

    async def fetch_profile(self, did: str) -> ProfileMetadata:
        self.calls.append(did)
        await asyncio.sleep(0)
        return ProfileMetadata(id=did, display_name=did.upper())

    async def fetch_profiles(self, dids):
        await asyncio.sleep(0)
        return {did: ProfileMetadata(id=did, display_name=did.upper()) for did in dids}


def total(registry, name: str) -> float:
    return registry.get_sample_value(f"didprofiles_{name}_total") or 0.0


def test_counters_are_registered_up_front():
    registry = prometheus_client.CollectorRegistry()
    PrometheusProfileMetrics(registry=registry)

    for name in PROFILE_COUNTERS:
        assert registry.get_sample_value(f"didprofiles_{name}_total") == 0.0


def test_two_services_share_one_registry():
    registry = prometheus_client.CollectorRegistry()

    async def scenario() -> None:
        first = ProfileService(
            directory=_StaticDirectory(),
            config=ServiceConfig(delay_between_requests_ms=0),
            metrics=PrometheusProfileMetrics(registry=registry),
        )
        second = ProfileService(
            directory=_StaticDirectory(),
            config=ServiceConfig(delay_between_requests_ms=0),
            metrics=PrometheusProfileMetrics(registry=registry),
        )
        await first.get_profile("did:a")
        await first.get_profile("did:a")
        await second.get_profile("did:b")
        await second.load_profiles(["did:c", "did:d"])

    run_async(scenario())

    assert total(registry, "fetches") == 2
    assert total(registry, "cache_misses") == 2
    assert total(registry, "cache_hits") == 1
    assert total(registry, "batch_fetches") == 1
    assert total(registry, "fallbacks") == 0


def test_separate_registries_keep_separate_totals():
    left = prometheus_client.CollectorRegistry()
    right = prometheus_client.CollectorRegistry()

    PrometheusProfileMetrics(registry=left).incr("fetches", 3)
    PrometheusProfileMetrics(registry=right).incr("fetches")

    assert total(left, "fetches") == 3
    assert total(right, "fetches") == 1


def test_counter_registered_by_other_code_is_reused():
    registry = prometheus_client.CollectorRegistry()
    prometheus_client.Counter(
        "fetches", "Pre-registered", namespace="didprofiles", registry=registry
    )

    PrometheusProfileMetrics(registry=registry).incr("fetches", 2)

    assert total(registry, "fetches") == 2


def test_unknown_metric_names_are_ignored():
    registry = prometheus_client.CollectorRegistry()
    metrics = PrometheusProfileMetrics(registry=registry)

    metrics.incr("not_a_counter", tags={"reason": "x"})

    assert registry.get_sample_value("didprofiles_not_a_counter_total") is None


def test_in_memory_metrics_count_the_same_events():
    metrics = InMemoryProfileMetrics()

    async def scenario() -> None:
        service = ProfileService(
            directory=_StaticDirectory(),
            config=ServiceConfig(delay_between_requests_ms=0),
            metrics=metrics,
        )
        await service.get_profile("did:a")
        await service.get_profile("did:a")

    run_async(scenario())

    assert metrics.get("fetches") == 1
    assert metrics.get("cache_hits") == 1
    assert metrics.get("cache_misses") == 1

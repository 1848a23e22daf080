"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Metrics adapters for profile service observability.
"""

from __future__ import annotations

import threading
import weakref
from collections import Counter
from collections.abc import Mapping
from typing import Any, Protocol


class ProfileMetrics(Protocol):
    """Minimal metrics interface for profile service instrumentation."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        """Increment a counter metric."""


class NoOpProfileMetrics:
    """Default metrics sink when no metrics backend is provided."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        _ = name
        _ = value
        _ = tags


class InMemoryProfileMetrics:
    """Counter totals kept in process, keyed by metric name."""

    def __init__(self) -> None:
        self.counts: Counter[str] = Counter()

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        _ = tags
        self.counts[name] += value

    def get(self, name: str) -> int:
        return self.counts.get(name, 0)


PROFILE_COUNTERS: tuple[str, ...] = (
    "cache_hits",
    "cache_misses",
    "fetches",
    "coalesced",
    "fallbacks",
    "batch_fetches",
)

_registered_lock = threading.Lock()
_registered: weakref.WeakKeyDictionary[Any, dict[str, Any]] = weakref.WeakKeyDictionary()


class PrometheusProfileMetrics:
    """
    Prometheus-backed profile metrics adapter.

    Requires `prometheus_client` package. Counters are created once per
    registry and namespace, so several services may share one registry.
    Names outside `PROFILE_COUNTERS` are ignored.
    """

    def __init__(self, *, namespace: str = "didprofiles", registry: Any = None) -> None:
        try:
            from prometheus_client import REGISTRY, Counter as PromCounter
        except ModuleNotFoundError as exc:  # pragma: no cover
            raise RuntimeError(
                "PrometheusProfileMetrics requires `prometheus_client` to be installed."
            ) from exc

        self.registry = registry if registry is not None else REGISTRY
        self._namespace = namespace
        with _registered_lock:
            known = _registered.setdefault(self.registry, {})
            self._counters = {
                name: self._counter(PromCounter, known, name) for name in PROFILE_COUNTERS
            }

    def _counter(self, factory: Any, known: dict[str, Any], name: str) -> Any:
        full_name = f"{self._namespace}_{name}"
        counter = known.get(full_name)
        if counter is not None:
            return counter
        try:
            counter = factory(
                name=name,
                documentation=f"Profile service {name.replace('_', ' ')}",
                namespace=self._namespace,
                registry=self.registry,
            )
        except ValueError:
            # Registered elsewhere under the same name.
            counter = self.registry._names_to_collectors[full_name]  # noqa: SLF001
        known[full_name] = counter
        return counter

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        _ = tags
        counter = self._counters.get(name)
        if counter is not None:
            counter.inc(value)

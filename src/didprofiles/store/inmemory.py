"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: store/inmemory.py.
"""

from __future__ import annotations

from dataclasses import dataclass

from .base import ProfileStore


@dataclass(slots=True)
class InMemoryProfileStore(ProfileStore):
    """Process-local store for tests and persistence-free setups."""

    backend_id: str = "inmemory"

    def __post_init__(self) -> None:
        self._rows: dict[str, str] = {}

    async def setup(self) -> None:
        return None

    async def get(self, key: str) -> str | None:
        return self._rows.get(key)

    async def set(self, key: str, value: str) -> None:
        self._rows[key] = value

    async def delete(self, key: str) -> None:
        self._rows.pop(key, None)

    async def keys(self) -> list[str]:
        return list(self._rows.keys())

    async def save(self) -> None:
        return None

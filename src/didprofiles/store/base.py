"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: store/base.py.
"""

from __future__ import annotations

from typing import Protocol


class ProfileStore(Protocol):
    """
    Durable string key/value store backing the profile cache.

    Writes become durable only once `save()` has returned.
    """

    backend_id: str

    async def setup(self) -> None: ...

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def keys(self) -> list[str]: ...

    async def save(self) -> None: ...

"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Single-file JSON store, written atomically on save.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path

from ..errors import ProfileStoreError
from .base import ProfileStore


class JsonFileProfileStore(ProfileStore):
    """
    Keep every row in memory and persist the whole map to one JSON file.

    The file is replaced atomically on each `save()`, so a crash mid-write
    leaves the previous snapshot intact.
    """

    backend_id = "json"

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._rows: dict[str, str] = {}
        self._save_lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def setup(self) -> None:
        self._rows = await asyncio.to_thread(self._read)

    async def get(self, key: str) -> str | None:
        return self._rows.get(key)

    async def set(self, key: str, value: str) -> None:
        self._rows[key] = value

    async def delete(self, key: str) -> None:
        self._rows.pop(key, None)

    async def keys(self) -> list[str]:
        return list(self._rows.keys())

    async def save(self) -> None:
        async with self._save_lock:
            await asyncio.to_thread(self._write, dict(self._rows))

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            decoded = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ProfileStoreError(f"Cannot read profile store '{self._path}'") from e
        if not isinstance(decoded, dict):
            raise ProfileStoreError(f"Profile store '{self._path}' is not a JSON object")
        return {k: v for k, v in decoded.items() if isinstance(k, str) and isinstance(v, str)}

    def _write(self, rows: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(rows, fh, ensure_ascii=False, separators=(",", ":"))
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self._path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise ProfileStoreError(f"Cannot write profile store '{self._path}'") from e

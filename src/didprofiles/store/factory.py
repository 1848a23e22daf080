"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Factory helpers for selecting profile store backends from environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from ..config import _env_first
from .base import ProfileStore
from .inmemory import InMemoryProfileStore
from .jsonfile import JsonFileProfileStore
from .sqlite import SQLiteProfileStore

DEFAULT_JSON_PATH = "didprofiles-cache.json"
DEFAULT_SQLITE_PATH = "didprofiles-cache.sqlite3"


def create_profile_store_from_env(*, redis_client: Any | None = None) -> ProfileStore:
    """
    Create a profile store from `DIDPROFILES_STORE_*` environment variables.

    Backends:
    - `inmemory` (default)
    - `json` (file at `DIDPROFILES_STORE_PATH`)
    - `sqlite` (database at `DIDPROFILES_STORE_PATH`)
    - `redis`

    Redis resolution:
    - Uses the provided `redis_client` when supplied.
    - Otherwise builds a client from `DIDPROFILES_REDIS_URL`.
    - If no URL is set, falls back to host/port/db/password variables.
    """
    backend = os.getenv("DIDPROFILES_STORE_BACKEND", "inmemory").strip().lower()

    if backend in ("mem", "memory", "inmemory", "in_memory"):
        return InMemoryProfileStore()

    if backend in ("json", "file"):
        path = _env_first("DIDPROFILES_STORE_PATH", default=DEFAULT_JSON_PATH)
        return JsonFileProfileStore(Path(path or DEFAULT_JSON_PATH).expanduser())

    if backend in ("sqlite", "sqlite3"):
        path = _env_first("DIDPROFILES_STORE_PATH", default=DEFAULT_SQLITE_PATH)
        return SQLiteProfileStore(Path(path or DEFAULT_SQLITE_PATH).expanduser())

    if backend in ("redis",):
        from .redis import RedisProfileStore

        prefix = (
            _env_first("DIDPROFILES_REDIS_PREFIX", default="didprofiles:cache")
            or "didprofiles:cache"
        )

        client = redis_client
        if client is None:
            try:
                import redis.asyncio as redis
            except ModuleNotFoundError as exc:  # pragma: no cover
                raise RuntimeError(
                    "Redis profile store requires `redis` to be installed."
                ) from exc

            url = _env_first("DIDPROFILES_REDIS_URL")
            if not url:
                host = _env_first("DIDPROFILES_REDIS_HOST", default="localhost") or "localhost"
                port = _env_first("DIDPROFILES_REDIS_PORT", default="6379") or "6379"
                db = _env_first("DIDPROFILES_REDIS_DB", default="0") or "0"
                password = _env_first("DIDPROFILES_REDIS_PASSWORD", default="") or ""
                if password:
                    url = f"redis://:{password}@{host}:{port}/{db}"
                else:
                    url = f"redis://{host}:{port}/{db}"

            client = redis.Redis.from_url(url)

        return RedisProfileStore(client, prefix=prefix)

    raise ValueError(f"Unknown DIDPROFILES_STORE_BACKEND: {backend}")

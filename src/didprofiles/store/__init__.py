"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: store/__init__.py.
"""

from .base import ProfileStore
from .factory import create_profile_store_from_env
from .inmemory import InMemoryProfileStore
from .jsonfile import JsonFileProfileStore
from .redis import RedisProfileStore
from .sqlite import SQLiteProfileStore

__all__ = [
    "ProfileStore",
    "InMemoryProfileStore",
    "JsonFileProfileStore",
    "SQLiteProfileStore",
    "RedisProfileStore",
    "create_profile_store_from_env",
]

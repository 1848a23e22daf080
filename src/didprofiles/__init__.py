"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Public API for the DID profile metadata cache client.
"""

from .cache import ProfileCache, StoreState
from .config import ProfileServiceSettings, ServiceConfig
from .directory import DirectoryClient, HttpReply, ProfileDirectory
from .errors import (
    DidProfilesError,
    DirectoryCallError,
    DirectoryError,
    DirectoryProtocolError,
    ProfileConfigError,
    ProfileStoreError,
)
from .factory import create_profile_service_from_env
from .metrics import (
    InMemoryProfileMetrics,
    NoOpProfileMetrics,
    ProfileMetrics,
    PrometheusProfileMetrics,
)
from .naming import FallbackNamer, make_fallback_namer, truncated_name
from .service import ProfileService
from .store import (
    InMemoryProfileStore,
    JsonFileProfileStore,
    ProfileStore,
    RedisProfileStore,
    SQLiteProfileStore,
    create_profile_store_from_env,
)
from .types import CacheEntry, ProfileMetadata

__all__ = [
    "ProfileService",
    "ServiceConfig",
    "ProfileServiceSettings",
    "ProfileMetadata",
    "CacheEntry",
    "ProfileCache",
    "StoreState",
    "DirectoryClient",
    "ProfileDirectory",
    "HttpReply",
    "FallbackNamer",
    "truncated_name",
    "make_fallback_namer",
    "ProfileStore",
    "InMemoryProfileStore",
    "JsonFileProfileStore",
    "SQLiteProfileStore",
    "RedisProfileStore",
    "create_profile_store_from_env",
    "create_profile_service_from_env",
    "ProfileMetrics",
    "NoOpProfileMetrics",
    "InMemoryProfileMetrics",
    "PrometheusProfileMetrics",
    "DidProfilesError",
    "DirectoryError",
    "DirectoryCallError",
    "DirectoryProtocolError",
    "ProfileStoreError",
    "ProfileConfigError",
]

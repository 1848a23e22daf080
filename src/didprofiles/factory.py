"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Assemble a profile service from environment settings.
"""

from __future__ import annotations

from typing import Any

from .config import ProfileServiceSettings
from .directory import DirectoryClient, ProfileDirectory
from .metrics import ProfileMetrics
from .naming import FallbackNamer, truncated_name
from .service import ProfileService
from .store.factory import create_profile_store_from_env


def create_profile_service_from_env(
    *,
    settings: ProfileServiceSettings | None = None,
    redis_client: Any | None = None,
    directory: ProfileDirectory | None = None,
    namer: FallbackNamer = truncated_name,
    metrics: ProfileMetrics | None = None,
) -> ProfileService:
    """
    Build a `ProfileService` from `DIDPROFILES_*` environment variables.

    `settings` overrides the environment; `directory` replaces the HTTP
    client (tests, custom transports).
    """
    resolved = settings or ProfileServiceSettings.from_env()
    client = directory or DirectoryClient(
        resolved.resolved_api_base_url,
        timeout_s=resolved.request_timeout_s,
        namer=namer,
    )
    return ProfileService(
        directory=client,
        store=create_profile_store_from_env(redis_client=redis_client),
        config=resolved.to_service_config(),
        namer=namer,
        metrics=metrics,
        web_base_url=resolved.web_base_url,
        batch_size=resolved.batch_size,
    )

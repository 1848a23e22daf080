"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Runtime tunables and explicit environment settings for the profile service.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Any, Literal

from .errors import ProfileConfigError

Network = Literal["mainnet", "testnet"]

MAINNET_API_BASE_URL = "https://api.mintgarden.io"
TESTNET_API_BASE_URL = "https://api.testnet.mintgarden.io"
MAINNET_WEB_BASE_URL = "https://mintgarden.io"
TESTNET_WEB_BASE_URL = "https://testnet.mintgarden.io"


@dataclass(frozen=True, slots=True)
class ServiceConfig:
    """
    Scheduling and expiry parameters, replaceable while the service runs.

    Attributes:
        delay_between_requests_ms: Minimum gap between two outbound calls.
        cache_duration_ms: How long a stored entry stays valid.
        max_concurrent_requests: Cap on distinct identifiers fetched at once.
    """

    delay_between_requests_ms: int = 1000
    cache_duration_ms: int = 15 * 60 * 1000
    max_concurrent_requests: int = 3

    def __post_init__(self) -> None:
        if self.delay_between_requests_ms < 0:
            raise ProfileConfigError("delay_between_requests_ms must be >= 0")
        if self.cache_duration_ms < 0:
            raise ProfileConfigError("cache_duration_ms must be >= 0")
        if self.max_concurrent_requests < 1:
            raise ProfileConfigError("max_concurrent_requests must be >= 1")

    def merged(self, **changes: Any) -> "ServiceConfig":
        """Return a copy with `changes` applied; `None` values are ignored."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ProfileConfigError(f"Unknown config fields: {', '.join(unknown)}")
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _env_first(*names: str, default: str | None = None) -> str | None:
    """Return the first non-empty environment variable in `names`."""
    for name in names:
        raw = os.getenv(name)
        if raw is None:
            continue
        value = raw.strip()
        if value:
            return value
    return default


@dataclass(frozen=True, slots=True)
class ProfileServiceSettings:
    """Explicit settings used to assemble a profile service."""

    network: Network = "mainnet"
    api_base_url: str | None = None
    request_timeout_s: float = 10.0
    batch_size: int = 50

    delay_between_requests_ms: int = 1000
    cache_duration_ms: int = 15 * 60 * 1000
    max_concurrent_requests: int = 3

    @property
    def resolved_api_base_url(self) -> str:
        if self.api_base_url:
            return self.api_base_url.rstrip("/")
        return TESTNET_API_BASE_URL if self.network == "testnet" else MAINNET_API_BASE_URL

    @property
    def web_base_url(self) -> str:
        return TESTNET_WEB_BASE_URL if self.network == "testnet" else MAINNET_WEB_BASE_URL

    @staticmethod
    def from_env() -> "ProfileServiceSettings":
        """Load settings from `DIDPROFILES_*` environment variables."""
        network = (_env_first("DIDPROFILES_NETWORK", default="mainnet") or "mainnet").lower()
        if network not in ("mainnet", "testnet"):
            raise ProfileConfigError(f"Unknown DIDPROFILES_NETWORK: {network}")
        return ProfileServiceSettings(
            network=network,  # type: ignore[arg-type]
            api_base_url=_env_first("DIDPROFILES_API_BASE_URL"),
            request_timeout_s=float(
                _env_first("DIDPROFILES_REQUEST_TIMEOUT_S", default="10") or "10"
            ),
            batch_size=int(_env_first("DIDPROFILES_BATCH_SIZE", default="50") or "50"),
            delay_between_requests_ms=int(
                _env_first("DIDPROFILES_DELAY_MS", default="1000") or "1000"
            ),
            cache_duration_ms=int(
                _env_first("DIDPROFILES_CACHE_DURATION_MS", default="900000") or "900000"
            ),
            max_concurrent_requests=int(
                _env_first("DIDPROFILES_MAX_CONCURRENT", default="3") or "3"
            ),
        )

    def to_service_config(self) -> ServiceConfig:
        return ServiceConfig(
            delay_between_requests_ms=self.delay_between_requests_ms,
            cache_duration_ms=self.cache_duration_ms,
            max_concurrent_requests=self.max_concurrent_requests,
        )

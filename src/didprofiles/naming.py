"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Deterministic display names for identifiers without directory metadata.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import partial
from typing import TypeAlias

FallbackNamer: TypeAlias = Callable[[str], str]

# `did:chia:` is nine characters long.
DEFAULT_PREFIX_START = 9
DEFAULT_PREFIX_END = 19
DEFAULT_SUFFIX_LENGTH = 4


def truncated_name(
    did: str,
    *,
    prefix_start: int = DEFAULT_PREFIX_START,
    prefix_end: int = DEFAULT_PREFIX_END,
    suffix_length: int = DEFAULT_SUFFIX_LENGTH,
) -> str:
    """
    Shorten `did` to a fixed-width prefix and suffix joined by an ellipsis.

    For `did:chia:1qwertyuiopasdfgh...zxcv` the default offsets return
    `1qwertyuio...zxcv`.
    """
    suffix = did[-suffix_length:] if suffix_length > 0 else ""
    return f"{did[prefix_start:prefix_end]}...{suffix}"


def make_fallback_namer(
    *,
    prefix_start: int = DEFAULT_PREFIX_START,
    prefix_end: int = DEFAULT_PREFIX_END,
    suffix_length: int = DEFAULT_SUFFIX_LENGTH,
) -> FallbackNamer:
    """Bind truncation offsets into a reusable namer."""
    if prefix_start < 0 or prefix_end < prefix_start or suffix_length < 0:
        raise ValueError(
            "Fallback name offsets must satisfy 0 <= prefix_start <= prefix_end "
            "and suffix_length >= 0"
        )
    return partial(
        truncated_name,
        prefix_start=prefix_start,
        prefix_end=prefix_end,
        suffix_length=suffix_length,
    )


def display_name_for(did: str, namer: FallbackNamer = truncated_name) -> str:
    """Apply `namer`, falling back to the raw identifier for blank output."""
    name = namer(did).strip()
    if name and name != "...":
        return name
    return did.strip() or "unknown"

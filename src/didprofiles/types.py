"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

This module defines the profile and cache entry types shared by every layer.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, TypeAlias

JSONPrimitive: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = dict[str, JSONValue]


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class ProfileMetadata:
    """
    Display metadata resolved for one identifier.

    Attributes:
        id: Identifier the metadata was resolved for.
        display_name: Human-readable name, never empty.
        avatar_uri: Optional avatar image URI.
        is_unknown: True when no directory record backs this value.
    """

    id: str
    display_name: str
    avatar_uri: str | None = None
    is_unknown: bool = False

    def to_json(self) -> JSONObject:
        """Serialize using the directory service field names."""
        return {
            "encoded_id": self.id,
            "name": self.display_name,
            "avatar_uri": self.avatar_uri,
            "is_unknown": self.is_unknown,
        }

    @staticmethod
    def from_json(row: Any) -> "ProfileMetadata | None":
        if not isinstance(row, dict):
            return None
        encoded_id = row.get("encoded_id")
        name = row.get("name")
        if not isinstance(encoded_id, str) or not isinstance(name, str) or not name:
            return None
        avatar_uri = row.get("avatar_uri")
        return ProfileMetadata(
            id=encoded_id,
            display_name=name,
            avatar_uri=avatar_uri if isinstance(avatar_uri, str) else None,
            is_unknown=bool(row.get("is_unknown", False)),
        )


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One persisted profile row with its write timestamp."""

    value: ProfileMetadata
    stored_at_ms: int

    def is_valid(self, now: int, ttl_ms: int) -> bool:
        return now - self.stored_at_ms < ttl_ms

    def dumps(self) -> str:
        return json.dumps(
            {"value": self.value.to_json(), "stored_at": self.stored_at_ms},
            ensure_ascii=False,
            separators=(",", ":"),
        )

    @staticmethod
    def loads(blob: str | bytes | None) -> "CacheEntry | None":
        """Decode a stored row; malformed rows decode to ``None``."""
        if blob is None:
            return None
        try:
            row = json.loads(blob)
        except (TypeError, ValueError):
            return None
        if not isinstance(row, dict):
            return None
        stored_at = row.get("stored_at")
        if not isinstance(stored_at, int) or isinstance(stored_at, bool):
            return None
        value = ProfileMetadata.from_json(row.get("value"))
        if value is None:
            return None
        return CacheEntry(value=value, stored_at_ms=stored_at)

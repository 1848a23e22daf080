"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error hierarchy for the profile cache client.
"""

from __future__ import annotations


class DidProfilesError(RuntimeError):
    """Base profile client error."""


class DirectoryError(DidProfilesError):
    """Base error for remote directory lookups."""


class DirectoryCallError(DirectoryError):
    """Raised when the directory call fails in transport or returns a bad status."""


class DirectoryProtocolError(DirectoryError):
    """Raised when the directory response shape is invalid."""


class ProfileStoreError(DidProfilesError):
    """Raised when a persistent store cannot be opened or written."""


class ProfileConfigError(ValueError):
    """Raised when service configuration values are out of range."""

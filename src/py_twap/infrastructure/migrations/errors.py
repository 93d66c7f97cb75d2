"""Migration error types."""

from __future__ import annotations


class MigrationError(Exception):
    """Base exception for migration errors."""


class VersionMismatchError(MigrationError):
    """Schema version does not match expected version."""


__all__ = [
    "MigrationError",
    "VersionMismatchError",
]

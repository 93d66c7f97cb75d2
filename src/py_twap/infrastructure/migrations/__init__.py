"""Migration API module."""

from .errors import MigrationError, VersionMismatchError
from .runner import MigrationRunner

__all__ = [
    "MigrationError",
    "MigrationRunner",
    "VersionMismatchError",
]

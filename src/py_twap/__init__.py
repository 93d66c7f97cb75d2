"""Top-level package for py_twap.

Incremental time/volume weighted average price accumulator for ordered
liquidity-pool and oracle observations.
"""

from __future__ import annotations

__version__ = "0.1.0"
__version_schema__ = "0001_initial"

__version_schema__: str
"""Database schema version (last migration file name).

Used to verify that the application code is compatible with the database schema.
Should match the latest migration in infrastructure/migrations/versions/.

Example:
    >>> from py_twap import __version_schema__
    >>> print(__version_schema__)
    '0001_initial'
"""

__all__ = [
    "__version__",
    "__version_schema__",
]

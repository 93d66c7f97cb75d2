"""Domain error taxonomy.

- DomainError: base class for all domain failures.
- ValidationError: malformed inputs (observation fields, reserves).
- StateCorruptionError: the accumulation chain references records that do not
  exist, or an immutable record would be overwritten. Never recoverable by
  re-bootstrapping.
- DivisionByZeroError: a zero divisor was detected before dividing.
"""
from __future__ import annotations

__all__ = [
    "DomainError",
    "ValidationError",
    "StateCorruptionError",
    "DivisionByZeroError",
]


class DomainError(Exception):
    """Base domain error."""


class ValidationError(DomainError):
    """Invalid input rejected by domain rules."""


class StateCorruptionError(DomainError):
    """Persisted accumulator state is inconsistent; processing must halt."""


class DivisionByZeroError(DomainError, ArithmeticError):
    """Checked fixed-point division met a zero divisor."""

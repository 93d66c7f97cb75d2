"""SDK public error classes and exception mapping.

Public exceptions:
- UserInputError: malformed observation or settings
- DomainViolation: arithmetic/domain rule violations (e.g. zero reserve)
- StateCorrupted: the stored accumulation chain is inconsistent; stop processing
- UnexpectedError: any other error not classified above

map_exception(exc) keeps the original message and returns an instance of the
public exception type best matching the input.
"""
from __future__ import annotations

from py_twap.domain.errors import DomainError, StateCorruptionError, ValidationError

__all__ = [
    "UserInputError",
    "DomainViolation",
    "StateCorrupted",
    "UnexpectedError",
    "map_exception",
]


class UserInputError(Exception):
    """Raised when an observation or configuration value is invalid."""


class DomainViolation(Exception):
    """Raised when domain rules are violated."""


class StateCorrupted(Exception):
    """Raised when persisted state references records that do not exist.

    Not recoverable by retrying the observation.
    """


class UnexpectedError(Exception):
    """Raised when an unexpected error occurs inside the SDK/use cases."""


def map_exception(exc: Exception) -> Exception:
    """Map internal exceptions to public SDK exceptions.

    Rules:
    - ValidationError -> UserInputError
    - StateCorruptionError -> StateCorrupted
    - DomainError (incl. DivisionByZeroError) -> DomainViolation
    - ValueError -> UserInputError
    - any other -> UnexpectedError
    """
    msg = str(exc)
    if isinstance(exc, ValidationError):
        return UserInputError(msg)
    if isinstance(exc, StateCorruptionError):
        return StateCorrupted(msg)
    if isinstance(exc, DomainError):
        return DomainViolation(msg)
    if isinstance(exc, ValueError):
        return UserInputError(msg)
    return UnexpectedError(msg)

"""Integer fixed-point helpers.

Prices are plain ``int`` values scaled by 10^18; the oracle feed answers with
8 decimals and is lifted to 18 by multiplying with 10^10. Division truncates
toward zero (Python's ``//`` floors, so it is never used on signed operands
directly).
"""
from __future__ import annotations

from .errors import DivisionByZeroError

__all__ = ["SCALE_8", "SCALE_10", "SCALE_18", "checked_div", "mul_div"]

SCALE_8 = 10**8
SCALE_10 = 10**10
SCALE_18 = 10**18


def checked_div(numerator: int, divisor: int, *, what: str = "value") -> int:
    """Divide integers truncating toward zero; raise on a zero divisor.

    Args:
        numerator: Dividend.
        divisor: Divisor; must be non-zero.
        what: Name of the quantity being computed, used in the error message.

    Raises:
        DivisionByZeroError: if ``divisor == 0``.
    """
    if divisor == 0:
        raise DivisionByZeroError(f"Division by zero while computing {what}")
    quotient = abs(numerator) // abs(divisor)
    if (numerator < 0) != (divisor < 0):
        return -quotient
    return quotient


def mul_div(a: int, b: int, divisor: int, *, what: str = "value") -> int:
    """Return ``a * b / divisor`` with the product taken at full precision."""
    return checked_div(a * b, divisor, what=what)

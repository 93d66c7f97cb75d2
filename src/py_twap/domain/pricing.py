"""Price derivation from a pool exchange rate chained with an oracle feed.

Public API:
- PriceQuote: immutable result of one derivation.
- derive_price_quote: compute the three fixed-point prices from raw inputs.

The pool rate is ``reserve0 / reserve1`` (token A priced in token B). The feed
prices token B in the quote asset with 8 decimals. Their product, rescaled,
prices token A in the quote asset. No I/O; all arithmetic is integer.
"""
from __future__ import annotations

from dataclasses import dataclass

from .errors import ValidationError
from .fixed_point import SCALE_10, SCALE_18, checked_div, mul_div

__all__ = ["PriceQuote", "derive_price_quote"]


@dataclass(slots=True, frozen=True)
class PriceQuote:
    """Derived prices for one observation.

    Attributes:
        reserve0: Raw pool reserve of token A (kept for volume weighting).
        reserve1: Raw pool reserve of token B.
        price_a_to_b: reserve0 * 10^18 / reserve1.
        price_b_to_c: Feed answer normalized to 18 decimals.
        price_composite: price_a_to_b * price_b_to_c / 10^18.
    """

    reserve0: int
    reserve1: int
    price_a_to_b: int
    price_b_to_c: int
    price_composite: int


def derive_price_quote(reserve0: int, reserve1: int, latest_answer: int) -> PriceQuote:
    """Derive the composite price for an observation.

    Raises:
        ValidationError: if a reserve is negative (reserves are unsigned).
        DivisionByZeroError: if ``reserve1 == 0``.
    """
    if reserve0 < 0 or reserve1 < 0:
        raise ValidationError(f"Reserves must be non-negative: ({reserve0}, {reserve1})")
    price_a_to_b = checked_div(reserve0 * SCALE_18, reserve1, what="pool price (reserve1 is zero)")
    price_b_to_c = latest_answer * SCALE_10
    price_composite = mul_div(price_a_to_b, price_b_to_c, SCALE_18, what="composite price")
    return PriceQuote(
        reserve0=reserve0,
        reserve1=reserve1,
        price_a_to_b=price_a_to_b,
        price_b_to_c=price_b_to_c,
        price_composite=price_composite,
    )

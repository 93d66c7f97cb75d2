from __future__ import annotations

import pytest

from py_twap.domain.errors import DivisionByZeroError, ValidationError
from py_twap.domain.fixed_point import SCALE_18
from py_twap.domain.pricing import PriceQuote, derive_price_quote


def test_reference_quote():
    q = derive_price_quote(2000 * SCALE_18, 1000 * SCALE_18, 300_000_000)
    assert q == PriceQuote(
        reserve0=2000 * SCALE_18,
        reserve1=1000 * SCALE_18,
        price_a_to_b=2 * SCALE_18,
        price_b_to_c=3 * SCALE_18,
        price_composite=6 * SCALE_18,
    )


def test_pool_price_truncates():
    q = derive_price_quote(1, 3, 100_000_000)
    assert q.price_a_to_b == 333_333_333_333_333_333
    assert q.price_b_to_c == SCALE_18
    assert q.price_composite == 333_333_333_333_333_333


def test_negative_answer_truncates_toward_zero():
    q = derive_price_quote(1, 3, -1)
    assert q.price_b_to_c == -(10**10)
    # floor division would give -3333333334
    assert q.price_composite == -3_333_333_333


def test_zero_reserve0_gives_zero_price():
    q = derive_price_quote(0, 5, 300_000_000)
    assert q.price_a_to_b == 0
    assert q.price_composite == 0


def test_zero_reserve1_raises():
    with pytest.raises(DivisionByZeroError):
        derive_price_quote(10, 0, 300_000_000)


@pytest.mark.parametrize(("r0", "r1"), [(-1, 1), (1, -1)])
def test_negative_reserves_rejected(r0: int, r1: int):
    with pytest.raises(ValidationError):
        derive_price_quote(r0, r1, 1)


def test_quote_is_frozen():
    q = derive_price_quote(1, 1, 1)
    with pytest.raises(AttributeError):
        q.price_composite = 0  # type: ignore[misc]

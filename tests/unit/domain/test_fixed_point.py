from __future__ import annotations

import pytest

from py_twap.domain.errors import DivisionByZeroError, DomainError
from py_twap.domain.fixed_point import SCALE_8, SCALE_10, SCALE_18, checked_div, mul_div


def test_scales_compose():
    assert SCALE_8 * SCALE_10 == SCALE_18


@pytest.mark.parametrize(
    ("numerator", "divisor", "expected"),
    [
        (7, 2, 3),
        (-7, 2, -3),
        (7, -2, -3),
        (-7, -2, 3),
        (0, 5, 0),
        (6, 3, 2),
    ],
)
def test_checked_div_truncates_toward_zero(numerator: int, divisor: int, expected: int):
    assert checked_div(numerator, divisor) == expected


def test_checked_div_zero_divisor_raises_before_dividing():
    with pytest.raises(DivisionByZeroError) as ei:
        checked_div(1, 0, what="pool price")
    assert "pool price" in str(ei.value)
    assert isinstance(ei.value, DomainError)
    assert isinstance(ei.value, ArithmeticError)


def test_mul_div_keeps_full_precision():
    big = 2**200
    assert mul_div(big, big, big) == big
    assert mul_div(3, 5, 2) == 7
    assert mul_div(-3, 5, 2) == -7

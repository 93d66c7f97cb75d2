"""Weighted-average accumulator: weighting modes and the incremental fold.

Public API:
- WeightingMode: how an interval between two samples is weighted.
- SamplePoint: the slice of a sample the weighting needs.
- WeightedSum: immutable (numerator, denominator) pair with bootstrap/fold.
- WeightingPolicy: computes weights for a configured mode.

The fold always weights the price of the *previous* sample, i.e. the price
that was in effect during the interval that just ended. The average itself
(``numerator / denominator``) is left to readers.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import ValidationError

__all__ = ["WeightingMode", "SamplePoint", "WeightedSum", "WeightingPolicy"]


class WeightingMode(str, Enum):
    """Interval weighting mode.

    - TIME: plain elapsed seconds between samples.
    - TIME_ID_SCALED: elapsed seconds multiplied by the new sample id. Legacy
      behaviour of early deployments; skews the average toward later samples.
    - VOLUME: absolute change of reserve A between samples.
    """

    TIME = "time"
    TIME_ID_SCALED = "time_id_scaled"
    VOLUME = "volume"

    @property
    def is_legacy(self) -> bool:
        return self is WeightingMode.TIME_ID_SCALED


@dataclass(slots=True, frozen=True)
class SamplePoint:
    """Inputs of a single sample relevant to weighting."""

    id: int
    timestamp: int
    raw_reserve_a: int
    price_composite: int


@dataclass(slots=True, frozen=True)
class WeightedSum:
    """Cumulative weighted price sum and total weight."""

    numerator: int
    denominator: int

    @classmethod
    def bootstrap(cls) -> WeightedSum:
        """Seed value for the first sample: nothing has been weighted yet."""
        return cls(numerator=0, denominator=0)

    def fold(self, price: int, weight: int) -> WeightedSum:
        """Return a new sum with ``price * weight`` added.

        Raises:
            ValidationError: if ``weight`` is negative.
        """
        if weight < 0:
            raise ValidationError(f"Weight must be non-negative, got {weight}")
        return WeightedSum(
            numerator=self.numerator + price * weight,
            denominator=self.denominator + weight,
        )


@dataclass(slots=True, frozen=True)
class WeightingPolicy:
    """Strategy computing the weight of the interval ``previous -> current``."""

    mode: WeightingMode = WeightingMode.TIME

    def weight(self, previous: SamplePoint, current: SamplePoint) -> int:
        if self.mode is WeightingMode.VOLUME:
            return abs(current.raw_reserve_a - previous.raw_reserve_a)
        elapsed = abs(current.timestamp - previous.timestamp)
        if self.mode is WeightingMode.TIME_ID_SCALED:
            return elapsed * current.id
        return elapsed

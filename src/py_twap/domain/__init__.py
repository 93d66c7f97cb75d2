from .errors import DivisionByZeroError, DomainError, StateCorruptionError, ValidationError
from .fixed_point import SCALE_8, SCALE_10, SCALE_18, checked_div, mul_div
from .pricing import PriceQuote, derive_price_quote
from .weighting import SamplePoint, WeightedSum, WeightingMode, WeightingPolicy

__all__ = [
    "DomainError",
    "ValidationError",
    "StateCorruptionError",
    "DivisionByZeroError",
    "SCALE_8",
    "SCALE_10",
    "SCALE_18",
    "checked_div",
    "mul_div",
    "PriceQuote",
    "derive_price_quote",
    "SamplePoint",
    "WeightedSum",
    "WeightingMode",
    "WeightingPolicy",
]

from __future__ import annotations

import pytest

from py_twap.domain.errors import ValidationError
from py_twap.domain.fixed_point import SCALE_18
from py_twap.domain.weighting import SamplePoint, WeightedSum, WeightingMode, WeightingPolicy


def _pt(id_: int, ts: int, reserve_a: int = 0, price: int = 0) -> SamplePoint:
    return SamplePoint(id=id_, timestamp=ts, raw_reserve_a=reserve_a, price_composite=price)


def test_bootstrap_is_zero_over_zero():
    assert WeightedSum.bootstrap() == WeightedSum(0, 0)


def test_fold_adds_price_times_weight():
    s = WeightedSum.bootstrap().fold(6 * SCALE_18, 60)
    assert s == WeightedSum(360 * SCALE_18, 60)
    s2 = s.fold(4 * SCALE_18, 40)
    assert s2 == WeightedSum(520 * SCALE_18, 100)


def test_fold_zero_weight_is_identity():
    s = WeightedSum(123, 7)
    assert s.fold(10**30, 0) == s


def test_fold_negative_weight_rejected():
    with pytest.raises(ValidationError):
        WeightedSum(0, 0).fold(1, -1)


def test_default_policy_is_plain_elapsed_time():
    policy = WeightingPolicy()
    assert policy.mode is WeightingMode.TIME
    assert policy.weight(_pt(1, 100), _pt(2, 160)) == 60
    assert policy.weight(_pt(1, 100), _pt(2, 100)) == 0


def test_time_id_scaled_multiplies_by_new_id():
    policy = WeightingPolicy(WeightingMode.TIME_ID_SCALED)
    assert policy.weight(_pt(4, 100), _pt(5, 160)) == 300


def test_volume_uses_absolute_reserve_change():
    policy = WeightingPolicy(WeightingMode.VOLUME)
    assert policy.weight(_pt(1, 0, reserve_a=2000), _pt(2, 999, reserve_a=2500)) == 500
    assert policy.weight(_pt(1, 0, reserve_a=2500), _pt(2, 999, reserve_a=2000)) == 500


def test_mode_parsing_and_legacy_flag():
    assert WeightingMode("time_id_scaled").is_legacy is True
    assert WeightingMode("time").is_legacy is False
    assert WeightingMode("volume").is_legacy is False
    with pytest.raises(ValueError):
        WeightingMode("blocks")

from __future__ import annotations

import pytest

from py_twap.application.use_cases_async import AsyncBuildPriceSample
from py_twap.domain.errors import DivisionByZeroError, StateCorruptionError
from py_twap.domain.fixed_point import SCALE_18
from py_twap.infrastructure.config.settings import DEFAULT_ORACLE_FEED_ADDRESS
from py_twap.infrastructure.persistence.inmemory import (
    InMemoryUnitOfWork,
    StaticOracleFeedSource,
    StaticPoolReserveSource,
)

pytestmark = pytest.mark.asyncio


def _builder(uow, reserves, oracle) -> AsyncBuildPriceSample:
    return AsyncBuildPriceSample(uow, reserves, oracle, DEFAULT_ORACLE_FEED_ADDRESS)


async def test_builds_and_persists_sample(
    inmemory_uow: InMemoryUnitOfWork,
    reserves: StaticPoolReserveSource,
    oracle: StaticOracleFeedSource,
    make_observation,
):
    obs = make_observation(100, block_height=7)
    async with inmemory_uow as uow:
        sample = await _builder(uow, reserves, oracle)(obs, 1)
        stored = await uow.samples.get("1")
    assert stored == sample
    assert sample.id == "1"
    assert (sample.timestamp, sample.block_height) == (100, 7)
    assert sample.raw_reserve_a == 2000 * SCALE_18
    assert sample.price_a_to_b == 2 * SCALE_18
    assert sample.price_b_to_c == 3 * SCALE_18
    assert sample.price_composite == 6 * SCALE_18
    assert sample.source_address == obs.source_address


async def test_quote_does_not_write(
    inmemory_uow: InMemoryUnitOfWork,
    reserves: StaticPoolReserveSource,
    oracle: StaticOracleFeedSource,
    make_observation,
):
    async with inmemory_uow as uow:
        quote = await _builder(uow, reserves, oracle).quote(make_observation(100))
    assert quote.price_composite == 6 * SCALE_18
    assert len(inmemory_uow.samples_repo) == 0


async def test_existing_sample_id_is_corruption(
    inmemory_uow: InMemoryUnitOfWork,
    reserves: StaticPoolReserveSource,
    oracle: StaticOracleFeedSource,
    make_observation,
):
    async with inmemory_uow as uow:
        builder = _builder(uow, reserves, oracle)
        await builder(make_observation(100), 1)
        with pytest.raises(StateCorruptionError):
            await builder(make_observation(200), 1)


async def test_zero_reserve1_writes_nothing(
    inmemory_uow: InMemoryUnitOfWork,
    oracle: StaticOracleFeedSource,
    make_observation,
):
    obs = make_observation(100)
    reserves = StaticPoolReserveSource({obs.source_address: (5, 0)})
    with pytest.raises(DivisionByZeroError):
        await _builder(inmemory_uow, reserves, oracle)(obs, 1)
    assert len(inmemory_uow.samples_repo) == 0


async def test_unknown_pair_propagates_source_error(
    inmemory_uow: InMemoryUnitOfWork,
    reserves: StaticPoolReserveSource,
    oracle: StaticOracleFeedSource,
    make_observation,
):
    with pytest.raises(ValueError):
        await _builder(inmemory_uow, reserves, oracle)(make_observation(1, source="0xunknown"), 1)

"""End-to-end accumulation over a migrated SQLite database."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import DBAPIError

from py_twap.application.dto.models import LAST_POINTER_KEY, METADATA_KEY
from py_twap.domain.errors import DivisionByZeroError, StateCorruptionError
from py_twap.domain.fixed_point import SCALE_18
from py_twap.infrastructure.config import settings as app_settings
from py_twap.infrastructure.persistence.inmemory import StaticOracleFeedSource, StaticPoolReserveSource
from py_twap.infrastructure.persistence.sqlalchemy.models import PriceSampleORM
from py_twap.sdk.bootstrap import init_app

pytestmark = pytest.mark.asyncio


@pytest.fixture
def settings(sqlite_url: str, monkeypatch: pytest.MonkeyPatch) -> app_settings.TestSettingsNoFile:
    monkeypatch.setenv("DATABASE_URL", sqlite_url)
    return app_settings.TestSettingsNoFile()


async def test_observations_persist_across_units_of_work(
    settings: app_settings.TestSettingsNoFile,
    reserves: StaticPoolReserveSource,
    oracle: StaticOracleFeedSource,
    make_observation,
) -> None:
    app = init_app(reserves, oracle, settings)
    await app.migrate()
    try:
        first = await app.process(make_observation(100))
        second = await app.process(make_observation(160))
        oracle.set_answer(settings.oracle_feed_address, 400_000_000)
        third = await app.process(make_observation(200))

        assert first.bootstrapped and not second.bootstrapped
        assert (second.aggregate.numerator, second.aggregate.denominator) == (360 * SCALE_18, 60)
        # interval 160..200 is weighted with the price of sample 2 (6e18)
        assert (third.aggregate.numerator, third.aggregate.denominator) == (600 * SCALE_18, 100)
        assert third.sample.price_composite == 8 * SCALE_18

        async with app.uow_factory() as uow:
            md = await uow.metadata.get(METADATA_KEY)
            pointer = await uow.last_pointer.get(LAST_POINTER_KEY)
            snap = await uow.snapshots.get(160)
            stored = await uow.aggregates.get("3")
        assert md is not None and (md.next_sample_id, md.transaction_count) == (4, 3)
        assert pointer is not None and pointer.last_aggregate_id == "3"
        assert snap is not None and snap.count == 2
        assert stored == third.aggregate
    finally:
        await app.aclose()


async def test_failure_leaves_database_untouched(
    settings: app_settings.TestSettingsNoFile,
    reserves: StaticPoolReserveSource,
    oracle: StaticOracleFeedSource,
    make_observation,
) -> None:
    app = init_app(reserves, oracle, settings)
    await app.migrate()
    try:
        await app.process(make_observation(100))
        reserves.set_reserves("0xpair", 5, 0)
        with pytest.raises(DivisionByZeroError):
            await app.process(make_observation(160))

        async with app.uow_factory() as uow:
            md = await uow.metadata.get(METADATA_KEY)
            assert await uow.samples.get("2") is None
            assert await uow.snapshots.get(160) is None
        assert md is not None and (md.next_sample_id, md.transaction_count) == (2, 1)
    finally:
        await app.aclose()


async def test_missing_pointed_sample_halts(
    settings: app_settings.TestSettingsNoFile,
    reserves: StaticPoolReserveSource,
    oracle: StaticOracleFeedSource,
    make_observation,
) -> None:
    app = init_app(reserves, oracle, settings)
    await app.migrate()
    try:
        await app.process(make_observation(100))
        async with app.uow_factory() as uow:
            await uow.session.delete(await uow.session.get(PriceSampleORM, "1"))

        with pytest.raises(StateCorruptionError):
            await app.process(make_observation(160))

        async with app.uow_factory() as uow:
            md = await uow.metadata.get(METADATA_KEY)
        assert md is not None and md.transaction_count == 1
    finally:
        await app.aclose()


async def test_transient_commit_failure_replays_observation(
    settings: app_settings.TestSettingsNoFile,
    reserves: StaticPoolReserveSource,
    oracle: StaticOracleFeedSource,
    make_observation,
    flaky_commit,
) -> None:
    fast = settings.model_copy(update={"db_retry_attempts": 3, "db_retry_backoff_ms": 1, "db_retry_max_backoff_ms": 2})
    app = init_app(reserves, oracle, fast)
    await app.migrate()
    try:
        calls = flaky_commit(1)
        result = await app.process(make_observation(100))
        assert calls["commit"] == 2
        assert result.sample.id == "1" and result.bootstrapped

        async with app.uow_factory() as uow:
            md = await uow.metadata.get(METADATA_KEY)
            sample = await uow.samples.get("1")
            snap = await uow.snapshots.get(100)
            pointer = await uow.last_pointer.get(LAST_POINTER_KEY)
        assert md is not None and (md.next_sample_id, md.transaction_count) == (2, 1)
        assert sample == result.sample
        assert snap is not None and snap.count == 1
        assert pointer is not None and pointer.last_sample_id == "1"
    finally:
        await app.aclose()


async def test_exhausted_retries_raise_and_persist_nothing(
    settings: app_settings.TestSettingsNoFile,
    reserves: StaticPoolReserveSource,
    oracle: StaticOracleFeedSource,
    make_observation,
    flaky_commit,
) -> None:
    fast = settings.model_copy(update={"db_retry_attempts": 2, "db_retry_backoff_ms": 1, "db_retry_max_backoff_ms": 2})
    app = init_app(reserves, oracle, fast)
    await app.migrate()
    try:
        calls = flaky_commit(2)
        with pytest.raises(DBAPIError):
            await app.process(make_observation(100))
        assert calls["commit"] == 2

        async with app.uow_factory() as uow:
            assert await uow.metadata.get(METADATA_KEY) is None
            assert await uow.samples.get("1") is None
            assert await uow.snapshots.get(100) is None
    finally:
        await app.aclose()

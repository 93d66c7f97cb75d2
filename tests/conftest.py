from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterator
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from py_twap.application.dto.models import ObservationDTO
from py_twap.domain.fixed_point import SCALE_18
from py_twap.infrastructure.config.settings import DEFAULT_ORACLE_FEED_ADDRESS, get_settings
from py_twap.infrastructure.persistence.inmemory import (
    InMemoryUnitOfWork,
    StaticOracleFeedSource,
    StaticPoolReserveSource,
)
from py_twap.infrastructure.persistence.sqlalchemy.models import Base
from py_twap.infrastructure.persistence.sqlalchemy.uow import AsyncSqlAlchemyUnitOfWork

PAIR = "0xpair"
FEED = DEFAULT_ORACLE_FEED_ADDRESS
RESERVE0 = 2000 * SCALE_18
RESERVE1 = 1000 * SCALE_18
ANSWER = 300_000_000  # 3.00000000 with 8 decimals


class SerializationFailure(Exception):
    sqlstate = "40001"


def _observation(timestamp: int, block_height: int | None = None, source: str = PAIR) -> ObservationDTO:
    return ObservationDTO(
        source_address=source,
        block_height=block_height if block_height is not None else timestamp,
        timestamp=timestamp,
    )


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for key in (
        "ENV",
        "DATABASE_URL",
        "PYTWAP__DATABASE_URL",
        "WEIGHTING_MODE",
        "PYTWAP__WEIGHTING_MODE",
        "SEQUENCE_START",
        "PYTWAP__SEQUENCE_START",
        "ORACLE_FEED_ADDRESS",
        "LOG_FILE",
    ):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def reserves() -> StaticPoolReserveSource:
    return StaticPoolReserveSource({PAIR: (RESERVE0, RESERVE1)})


@pytest.fixture
def oracle() -> StaticOracleFeedSource:
    return StaticOracleFeedSource({FEED: ANSWER})


@pytest.fixture
def inmemory_uow() -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork()


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'twap.db'}"


@pytest_asyncio.fixture
async def async_uow(sqlite_url: str) -> AsyncIterator[AsyncSqlAlchemyUnitOfWork]:
    """Provide an entered AsyncSqlAlchemyUnitOfWork bound to a file-based SQLite DB.

    Schema is created from ORM metadata outside of the session transaction;
    the context is exited (commit or rollback) on teardown.
    """
    uow = AsyncSqlAlchemyUnitOfWork(url=sqlite_url)
    async with uow.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await uow.__aenter__()
    try:
        yield uow
    finally:
        await uow.__aexit__(None, None, None)
        await uow.engine.dispose()


@pytest.fixture
def make_observation():
    """Factory for observations on the default pair; block height defaults to the timestamp."""
    return _observation


@pytest.fixture
def flaky_commit(monkeypatch: pytest.MonkeyPatch) -> Callable[[int], dict[str, int]]:
    """Make the first ``failures`` session commits raise SQLSTATE 40001; later ones commit for real.

    Returns the commit call counter.
    """

    def _install(failures: int) -> dict[str, int]:
        real_commit = AsyncSession.commit
        calls = {"commit": 0}

        async def _commit(self: AsyncSession) -> None:
            calls["commit"] += 1
            if calls["commit"] <= failures:
                raise DBAPIError("COMMIT", {}, SerializationFailure(), connection_invalidated=False)
            await real_commit(self)

        monkeypatch.setattr(AsyncSession, "commit", _commit)
        return calls

    return _install

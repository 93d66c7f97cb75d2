"""SDK bootstrap: init application context with validated settings and UoW.

Provides a single entrypoint ``init_app`` that loads or accepts settings,
builds the weighting policy and a UoW factory, and returns an AppContext that
processes observations one unit of work at a time.
"""
from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine
from structlog.stdlib import BoundLogger

from py_twap.application.dto.models import ObservationDTO, ObservationResult
from py_twap.application.ports import AsyncOracleFeedSource, AsyncPoolReserveSource, AsyncUnitOfWork
from py_twap.application.use_cases_async.pipeline import AsyncProcessObservation
from py_twap.domain.weighting import WeightingMode, WeightingPolicy
from py_twap.infrastructure.config.settings import BaseAppSettings, get_settings
from py_twap.infrastructure.logging.config import get_logger
from py_twap.infrastructure.migrations import MigrationRunner
from py_twap.infrastructure.persistence.sqlalchemy.uow import is_transient_error, sqlstate_of
from py_twap.sdk.uow import build_uow_factory

__all__ = ["AppContext", "init_app"]


@dataclass(slots=True)
class AppContext:
    """Application bootstrap context for SDK users.

    Attributes:
        uow_factory: Callable producing async UnitOfWork instances.
        reserves: Pool reserve source.
        oracle: Oracle feed source.
        policy: Weighting policy resolved from settings.
        settings: Settings instance used to configure the app.
        logger: structlog logger.
        engine: Shared engine when the default SQLAlchemy factory is used.
    """

    uow_factory: Callable[[], AsyncUnitOfWork]
    reserves: AsyncPoolReserveSource
    oracle: AsyncOracleFeedSource
    policy: WeightingPolicy
    settings: BaseAppSettings
    logger: BoundLogger
    engine: AsyncEngine | None = field(default=None)

    async def process(self, observation: ObservationDTO) -> ObservationResult:
        """Process one observation in its own unit of work.

        Commits when the pipeline succeeds; any exception rolls back every
        write of this observation and propagates unchanged.

        Transient database errors (serialization failure, deadlock, dropped
        connection) are retried up to ``db_retry_attempts`` times with
        exponential backoff. Each attempt opens a fresh unit of work and runs
        the whole pipeline again, re-reading reserves and the feed.
        """
        attempts = max(1, int(self.settings.db_retry_attempts))
        backoff_ms = max(1, int(self.settings.db_retry_backoff_ms))
        max_backoff_ms = max(backoff_ms, int(self.settings.db_retry_max_backoff_ms))
        attempt = 1
        while True:
            try:
                return await self._process_once(observation)
            except DBAPIError as exc:
                if not is_transient_error(exc) or attempt >= attempts:
                    raise
                delay_ms = min(max_backoff_ms, backoff_ms * (2 ** (attempt - 1)))
                self.logger.warning(
                    "transient_db_failure",
                    attempt=attempt,
                    attempts=attempts,
                    sqlstate=sqlstate_of(exc),
                    error=type(exc).__name__,
                    retry_in_ms=delay_ms,
                    timestamp=observation.timestamp,
                )
                await asyncio.sleep(delay_ms / 1000.0)
                attempt += 1

    async def _process_once(self, observation: ObservationDTO) -> ObservationResult:
        async with self.uow_factory() as uow:
            result = await AsyncProcessObservation(
                uow,
                self.reserves,
                self.oracle,
                self.settings.oracle_feed_address,
                policy=self.policy,
                sequence_start=self.settings.sequence_start,
            )(observation)
            await uow.commit()
        return result

    async def migrate(self) -> None:
        """Upgrade the database schema to head (SQLAlchemy factory only)."""
        if self.engine is None:
            raise RuntimeError("migrate() requires the default SQLAlchemy unit of work factory")
        await MigrationRunner(self.engine).upgrade_to_head()

    async def aclose(self) -> None:
        """Dispose the shared engine, if any."""
        if self.engine is not None:
            await self.engine.dispose()


def init_app(
    reserves: AsyncPoolReserveSource,
    oracle: AsyncOracleFeedSource,
    settings: BaseAppSettings | None = None,
    *,
    uow_factory: Callable[[], AsyncUnitOfWork] | None = None,
) -> AppContext:
    """Initialize the application context for SDK consumers.

    Steps:
    1) Use the cached settings if none are provided.
    2) Resolve the weighting policy; warn when a legacy mode is selected.
    3) Build the SQLAlchemy UoW factory from DATABASE_URL unless one is given.

    Notes:
    - No I/O is performed here; connections are opened when a UoW is entered.
    - Schema is not created; call ``AppContext.migrate()`` or run Alembic.
    """
    if settings is None:
        settings = get_settings()

    logger = get_logger("py_twap")
    mode = WeightingMode(settings.weighting_mode)
    if mode.is_legacy:
        logger.warning("legacy_weighting_mode", weighting_mode=mode.value)

    engine: AsyncEngine | None = None
    if uow_factory is None:
        uow_factory, engine = build_uow_factory(settings)

    return AppContext(
        uow_factory=uow_factory,
        reserves=reserves,
        oracle=oracle,
        policy=WeightingPolicy(mode),
        settings=settings,
        logger=logger,
        engine=engine,
    )

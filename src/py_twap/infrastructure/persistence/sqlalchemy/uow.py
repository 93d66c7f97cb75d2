from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from py_twap.infrastructure.config.settings import BaseAppSettings, get_settings
from py_twap.infrastructure.persistence.sqlalchemy.async_engine import (
    get_async_engine,
    get_async_session_factory,
)
from py_twap.infrastructure.persistence.sqlalchemy.repositories_async import (
    AsyncSqlAlchemyAggregateRepository,
    AsyncSqlAlchemyLastPointerRepository,
    AsyncSqlAlchemyMetadataRepository,
    AsyncSqlAlchemySampleRepository,
    AsyncSqlAlchemySnapshotRepository,
)

logger = logging.getLogger(__name__)

_TRANSIENT_SQLSTATES = frozenset({"40001", "40P01"})

__all__ = ["AsyncSqlAlchemyUnitOfWork", "is_transient_error", "sqlstate_of"]


def sqlstate_of(err: BaseException) -> str | None:
    orig = getattr(err, "orig", None)
    if orig is None:
        return None
    # asyncpg exposes .sqlstate, psycopg .pgcode
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return str(code) if code else None


def is_transient_error(exc: BaseException) -> bool:
    """Return True if the DB error is considered transient and safe to retry.

    Checks:
    - DBAPIError/OperationalError with connection_invalidated True
    - SQLSTATE codes for serialization failure (40001) and deadlock (40P01)

    A transient failure aborts the whole transaction, so a retry must replay
    every write in a fresh unit of work, not just the commit.
    """
    if not isinstance(exc, DBAPIError | OperationalError):
        return False
    if getattr(exc, "connection_invalidated", False):
        return True
    return sqlstate_of(exc) in _TRANSIENT_SQLSTATES


class AsyncSqlAlchemyUnitOfWork:
    """Asynchronous SQLAlchemy Unit of Work (async context manager).

    One context equals one observation: every write made by the pipeline for
    that observation lands in the same transaction, so a failure anywhere
    leaves the store untouched.

    Behavior:
    - On enter: open a session, begin a transaction and, for PostgreSQL,
      optionally ``SET LOCAL statement_timeout = :ms`` when configured.
    - On commit: a single attempt. Any failure, transient or not, propagates
      and the transaction is rolled back on exit; replaying the observation
      is the caller's job (see ``AppContext.process``).
    - An instance may be entered again after the previous context exited;
      nested entry raises ``RuntimeError``.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        echo: bool = False,
        engine: AsyncEngine | None = None,
        settings: BaseAppSettings | None = None,
    ) -> None:
        """Create Async UoW.

        Parameters:
        - url: Database URL (async driver recommended). Defaults to an in-memory SQLite if None.
        - echo: Enable SQLAlchemy echo for debugging.
        - engine: Share an existing engine (and its pool) instead of creating one from ``url``.
        - settings: Settings for pool sizing and statement timeout; the cached
          application settings when omitted.
        """
        self._settings = settings or get_settings()
        self._url = url or "sqlite+aiosqlite:///:memory:"
        self._engine: AsyncEngine = (
            engine if engine is not None else get_async_engine(self._url, echo=echo, settings=self._settings)
        )
        self._session_factory = get_async_session_factory(self._engine)
        self._session: AsyncSession | None = None
        self._entered: bool = False
        self._committed: bool = False
        self._commit_attempted: bool = False
        self._repos: dict[str, Any] = {}

    @property
    def engine(self) -> AsyncEngine:
        """Return the internal ``AsyncEngine`` (primarily for tests/schema setup)."""
        return self._engine

    @property
    def session(self) -> AsyncSession:
        """Return the active AsyncSession.

        Raises:
        - RuntimeError: if accessed outside of an active context manager.
        """
        if not self._session:
            raise RuntimeError("AsyncSqlAlchemyUnitOfWork.session is only available inside 'async with' block")
        return self._session

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory

    async def __aenter__(self) -> AsyncSqlAlchemyUnitOfWork:
        if self._entered:
            raise RuntimeError("AsyncSqlAlchemyUnitOfWork instance cannot be re-entered")
        self._entered = True
        self._committed = False
        self._commit_attempted = False
        logger.debug("AsyncUoW: opening session and beginning transaction")
        self._session = self._session_factory()
        await self._session.begin()
        dialect_name = str(getattr(self._engine.dialect, "name", ""))
        timeout_ms = int(self._settings.db_statement_timeout_ms)
        if timeout_ms > 0 and dialect_name.startswith("postgresql"):
            logger.debug("AsyncUoW: applying SET LOCAL statement_timeout=%s ms", timeout_ms)
            await self._session.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))
        self._repos = {}
        return self

    async def _commit_once(self) -> None:
        """Commit the current transaction in a single attempt.

        A failed commit is recorded so ``__aexit__`` rolls back instead of
        committing again; the error is logged with its SQLSTATE and re-raised.
        """
        if not self._session:
            logger.warning("AsyncUoW.commit() called without an active session; no-op")
            return None
        self._commit_attempted = True
        try:
            await self._session.commit()
        except (DBAPIError, OperationalError) as exc:
            logger.warning(
                "AsyncUoW: commit failed (transient=%s, sqlstate=%s): %s",
                is_transient_error(exc),
                sqlstate_of(exc),
                type(exc).__name__,
            )
            raise
        self._committed = True
        return None

    async def __aexit__(self, exc_type, exc: BaseException | None, tb: Any) -> None:  # noqa: D401
        """Exit async context with safe finalization.

        Rules:
        - If an exception occurred inside the block -> rollback.
        - If no exception and commit previously succeeded -> no-op (already committed).
        - If no exception and commit was attempted but failed -> rollback.
        - If no exception and no commit attempted -> commit once.
        Always close the session.
        """
        try:
            if not self._session:
                logger.warning("AsyncUoW.__aexit__ called without an active session; no-op")
                return None
            if exc is not None:
                logger.debug("AsyncUoW: exception detected -> rollback", exc_info=exc)
                await self._session.rollback()
            elif self._committed:
                pass
            elif self._commit_attempted:
                logger.debug("AsyncUoW: prior commit attempt failed -> rollback on exit")
                await self._session.rollback()
            else:
                logger.debug("AsyncUoW: committing transaction on exit")
                try:
                    await self._commit_once()
                except Exception:
                    logger.exception("AsyncUoW: commit on exit failed; rolling back")
                    await self._session.rollback()
                    raise
        finally:
            if self._session is not None:
                try:
                    await self._session.close()
                finally:
                    self._session = None
                    self._entered = False
                    self._committed = False
                    self._commit_attempted = False
                    self._repos = {}

    async def commit(self) -> None:
        """Explicitly commit the current transaction if a session is active.

        Raises the driver error on failure; nothing of this unit of work is kept.
        """
        if not self._session:
            logger.warning("AsyncUoW.commit() called without an active session; no-op")
            return None
        await self._commit_once()

    async def rollback(self) -> None:
        """Explicitly rollback the current transaction if a session is active."""
        if not self._session:
            logger.warning("AsyncUoW.rollback() called without an active session; no-op")
            return None
        await self._session.rollback()

    def _repo(self, name: str, factory: type) -> Any:
        if not self._session:
            raise RuntimeError(f"AsyncSqlAlchemyUnitOfWork.{name} requires an active session")
        repo = self._repos.get(name)
        if repo is None:
            repo = self._repos[name] = factory(self._session)
        return repo

    # Async repositories (lazy properties)
    @property
    def metadata(self) -> AsyncSqlAlchemyMetadataRepository:
        return self._repo("metadata", AsyncSqlAlchemyMetadataRepository)

    @property
    def samples(self) -> AsyncSqlAlchemySampleRepository:
        return self._repo("samples", AsyncSqlAlchemySampleRepository)

    @property
    def aggregates(self) -> AsyncSqlAlchemyAggregateRepository:
        return self._repo("aggregates", AsyncSqlAlchemyAggregateRepository)

    @property
    def last_pointer(self) -> AsyncSqlAlchemyLastPointerRepository:
        return self._repo("last_pointer", AsyncSqlAlchemyLastPointerRepository)

    @property
    def snapshots(self) -> AsyncSqlAlchemySnapshotRepository:
        return self._repo("snapshots", AsyncSqlAlchemySnapshotRepository)

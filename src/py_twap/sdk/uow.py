"""SDK UoW factory helpers.

Bridges settings with the infrastructure async Unit of Work, exposing a small
factory builder usable by apps.
"""
from __future__ import annotations

from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncEngine

from py_twap.infrastructure.config.settings import BaseAppSettings
from py_twap.infrastructure.persistence.sqlalchemy.async_engine import get_async_engine
from py_twap.infrastructure.persistence.sqlalchemy.uow import AsyncSqlAlchemyUnitOfWork

__all__ = ["build_uow_factory"]


def build_uow_factory(
    settings: BaseAppSettings,
    *,
    engine: AsyncEngine | None = None,
) -> tuple[Callable[[], AsyncSqlAlchemyUnitOfWork], AsyncEngine]:
    """Construct a factory returning a fresh AsyncSqlAlchemyUnitOfWork on each call.

    All units of work share one engine (and its connection pool), created from
    ``settings.database_url`` unless ``engine`` is given. Each unit of work reads its
    statement timeout from the same ``settings``.

    Returns:
        (factory, engine) so the caller can dispose the engine on shutdown.

    Raises:
        ValueError: if settings.database_url is empty.
    """
    url = (settings.database_url or "").strip()
    if engine is None:
        if not url:
            raise ValueError("DATABASE_URL is required to build the default unit of work factory")
        engine = get_async_engine(url, settings=settings)
    shared = engine

    def factory() -> AsyncSqlAlchemyUnitOfWork:
        return AsyncSqlAlchemyUnitOfWork(engine=shared, settings=settings)

    return factory, shared

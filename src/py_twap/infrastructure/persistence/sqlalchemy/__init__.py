"""Async SQLAlchemy persistence adapter: models, repositories and unit of work."""

from .async_engine import get_async_engine, get_async_session_factory, normalize_async_url, to_sync_url
from .models import Base, BigIntText
from .uow import AsyncSqlAlchemyUnitOfWork

__all__ = [
    "AsyncSqlAlchemyUnitOfWork",
    "Base",
    "BigIntText",
    "get_async_engine",
    "get_async_session_factory",
    "normalize_async_url",
    "to_sync_url",
]

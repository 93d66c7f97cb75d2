from __future__ import annotations

import pytest
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine

from py_twap.infrastructure.config import settings as app_settings
from py_twap.infrastructure.persistence.sqlalchemy.async_engine import (
    _engine_kwargs_for_dialect,
    get_async_engine,
    normalize_async_url,
    to_sync_url,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("sqlite:///./twap.db", "sqlite+aiosqlite:///./twap.db"),
        ("sqlite+pysqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
        ("sqlite+aiosqlite:///x.db", "sqlite+aiosqlite:///x.db"),
        ("postgresql://u:p@h:5432/db", "postgresql+asyncpg://u:p@h:5432/db"),
        ("postgresql+psycopg://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
    ],
)
def test_normalize_async_url(raw: str, expected: str) -> None:
    got, want = make_url(normalize_async_url(raw)), make_url(expected)
    assert got.drivername == want.drivername
    assert got.database == want.database
    assert (got.username, got.password, got.host, got.port) == (want.username, want.password, want.host, want.port)


def test_normalized_memory_url_keeps_database() -> None:
    assert make_url(normalize_async_url("sqlite:///:memory:")).database == ":memory:"


def test_normalize_rejects_empty() -> None:
    with pytest.raises(ValueError):
        normalize_async_url("  ")


def test_to_sync_url() -> None:
    assert to_sync_url("sqlite+aiosqlite:///x.db") == "sqlite+pysqlite:///x.db"
    assert to_sync_url("postgresql+asyncpg://u:p@h/db") == "postgresql+psycopg://u:p@h/db"


def test_postgres_kwargs_use_pool_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DB_POOL_SIZE", "7")
    monkeypatch.setenv("DB_CONNECT_TIMEOUT_SEC", "3")
    kw = _engine_kwargs_for_dialect("postgresql+asyncpg://u:p@h/db", echo=False, user_kwargs={"pool_recycle": 5})
    assert kw["pool_size"] == 7
    assert kw["connect_args"] == {"timeout": 3}
    assert kw["pool_recycle"] == 5


def test_postgres_kwargs_use_given_settings_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DB_POOL_SIZE", "7")
    given = app_settings.TestSettingsNoFile(DB_POOL_SIZE=11, DB_MAX_OVERFLOW=2, DB_CONNECT_TIMEOUT_SEC=4)
    kw = _engine_kwargs_for_dialect("postgresql+asyncpg://u:p@h/db", echo=False, user_kwargs=None, settings=given)
    assert kw["pool_size"] == 11
    assert kw["max_overflow"] == 2
    assert kw["connect_args"] == {"timeout": 4}


def test_sqlite_kwargs_have_no_pool_sizing() -> None:
    kw = _engine_kwargs_for_dialect("sqlite+aiosqlite:///:memory:", echo=True, user_kwargs=None)
    assert kw == {"echo": True, "pool_pre_ping": True}


@pytest.mark.asyncio
async def test_get_async_engine_normalizes() -> None:
    engine = get_async_engine("sqlite:///:memory:")
    try:
        assert isinstance(engine, AsyncEngine)
        assert engine.url.drivername == "sqlite+aiosqlite"
    finally:
        await engine.dispose()

"""Alembic environment for the bundled py_twap migrations.

Only synchronous drivers are accepted here; ``MigrationRunner`` converts the
application's async URL before invoking Alembic.
"""
from __future__ import annotations

import logging
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import make_url

from py_twap.infrastructure.persistence.sqlalchemy.models import Base

config = context.config
log = logging.getLogger("alembic.env")

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata

_ASYNC_TOKENS = ("asyncpg", "aiosqlite", "+async")


def get_sync_url() -> str:
    """Return a validated synchronous SQLAlchemy URL for Alembic.

    Resolution order: programmatic ``sqlalchemy.url`` from Config, then the
    ``DATABASE_URL`` environment variable.

    Raises:
    - ValueError: no URL configured.
    - RuntimeError: the URL names an async driver.
    """
    raw_url = (config.get_main_option("sqlalchemy.url") or "").strip() or (os.getenv("DATABASE_URL") or "").strip()
    if not raw_url:
        raise ValueError(
            "No synchronous database URL found (sqlalchemy.url or DATABASE_URL). "
            "Provide a sync URL e.g. postgresql+psycopg or sqlite+pysqlite."
        )
    sa_url = make_url(raw_url)
    driver = (sa_url.drivername or "").lower()
    if any(tok in driver for tok in _ASYNC_TOKENS):
        raise RuntimeError(
            "Async driver not supported for Alembic; use a synchronous URL (e.g., postgresql+psycopg or sqlite+pysqlite)."
        )
    return sa_url.render_as_string(hide_password=False)


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (emit SQL without connecting)."""
    context.configure(
        url=get_sync_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode using a sync Engine with NullPool."""
    section = dict(config.get_section(config.config_ini_section) or {})
    section["sqlalchemy.url"] = get_sync_url()
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()
    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

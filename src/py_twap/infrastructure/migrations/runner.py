"""Programmatic API for py_twap database migrations."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine

from py_twap.infrastructure.migrations.errors import VersionMismatchError
from py_twap.infrastructure.persistence.sqlalchemy.async_engine import to_sync_url

logger = logging.getLogger(__name__)

_MIGRATIONS_DIR = Path(__file__).parent


class MigrationRunner:
    """Programmatic API for py_twap database migrations.

    Alembic runs synchronously, so the runner derives a sync URL from the
    engine (aiosqlite -> pysqlite, asyncpg -> psycopg) and executes commands
    in the default executor.

    Examples:
        runner = MigrationRunner(engine)
        await runner.upgrade_to_head()
    """

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        alembic_config_path: str | Path | None = None,
    ) -> None:
        """Initialize migration runner.

        Args:
            engine: AsyncEngine for database operations
            alembic_config_path: Path to an alembic.ini (optional); script
                location always points at the bundled versions
        """
        self.engine = engine
        self._config = self._load_alembic_config(alembic_config_path)

    def _load_alembic_config(self, config_path: str | Path | None) -> Config:
        config = Config(str(config_path)) if config_path is not None else Config()
        config.set_main_option("script_location", str(_MIGRATIONS_DIR))
        url_str = to_sync_url(self.engine.url.render_as_string(hide_password=False))
        # ConfigParser interpolation treats '%' specially
        config.set_main_option("sqlalchemy.url", url_str.replace("%", "%%"))
        return config

    async def upgrade_to_head(self) -> None:
        """Apply all pending migrations to head."""
        await self._run_in_sync(lambda: command.upgrade(self._config, "head"))
        logger.info("Successfully upgraded to head")

    async def upgrade_to_version(self, version: str) -> None:
        """Apply migrations up to ``version`` (revision id)."""
        await self._run_in_sync(lambda: command.upgrade(self._config, version))
        logger.info("Successfully upgraded to version %s", version)

    async def downgrade(self, *, steps: int = 1, target: str | None = None) -> None:
        """Downgrade migrations.

        Args:
            steps: Number of steps to downgrade (if target is None)
            target: Target revision or "base" for full downgrade
        """
        if target is None:
            target = f"-{steps}"
        await self._run_in_sync(lambda: command.downgrade(self._config, target))
        logger.info("Successfully downgraded to %s", target)

    async def get_current_version(self) -> str | None:
        """Return the applied revision id or None if the database is not initialized."""
        async with self.engine.connect() as conn:
            try:
                result = await conn.execute(text("SELECT version_num FROM alembic_version LIMIT 1"))
            except DBAPIError:
                # alembic_version table does not exist yet
                return None
            row = result.first()
            return row[0] if row else None

    async def get_pending_migrations(self) -> list[str]:
        """Return revision ids not yet applied, newest first."""
        script = ScriptDirectory.from_config(self._config)
        current = await self.get_current_version()
        if current is None:
            return [rev.revision for rev in script.walk_revisions()]
        return [rev.revision for rev in script.iterate_revisions("head", current) if rev.revision != current]

    async def validate_schema_version(self, expected: str) -> None:
        """Raise VersionMismatchError unless the applied revision equals ``expected``."""
        current = await self.get_current_version()
        if current != expected:
            raise VersionMismatchError(f"Schema version mismatch: current={current}, expected={expected}")

    async def _run_in_sync(self, func: Callable[[], None]) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, func)


__all__ = ["MigrationRunner"]

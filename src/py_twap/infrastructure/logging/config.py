from __future__ import annotations

import logging
import logging.handlers
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import IO, Any

import structlog

from py_twap.infrastructure.config.settings import BaseAppSettings, get_settings


def _resolve_level(level_name: str) -> int:
    """Return logging level from name; unknown names fall back to INFO."""
    level = logging.getLevelName(level_name.upper())
    return level if isinstance(level, int) else logging.INFO


def _build_handler(settings: BaseAppSettings, stream: IO[str] | None) -> logging.Handler:
    """Rotating file handler for JSON logs with LOG_FILE set, else a stream handler."""
    if not (settings.json_logs and settings.log_file):
        return logging.StreamHandler(stream or sys.stdout)
    if settings.log_rotation == "size":
        return logging.handlers.RotatingFileHandler(
            filename=settings.log_file,
            maxBytes=max(1024, settings.log_max_bytes),
            backupCount=max(1, settings.log_backup_count),
            encoding="utf-8",
        )
    return logging.handlers.TimedRotatingFileHandler(
        filename=settings.log_file,
        when=settings.log_rotate_when,
        interval=1,
        backupCount=max(1, settings.log_backup_count),
        utc=settings.log_rotate_utc,
        encoding="utf-8",
    )


def configure_logging(stream: IO[str] | None = None) -> None:
    """Initialize structlog on top of stdlib logging.

    - Single handler: stdout (or ``stream``), or a rotating file in JSON mode when LOG_FILE is set
    - Contextvars merged so per-observation bindings reach every record
    - JSON or console renderer depending on settings.json_logs
    - Reconfigures forcefully so repeated calls do not stack handlers
    """
    settings = get_settings()
    if not settings.logging_enabled:
        logging.basicConfig(handlers=[], level=logging.CRITICAL, force=True)
        structlog.configure(cache_logger_on_first_use=True)
        return

    timestamper = structlog.processors.TimeStamper(fmt="iso")
    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        timestamper,
    ]
    renderer: structlog.types.Processor
    if settings.json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    handler = _build_handler(settings, stream)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain))
    logging.basicConfig(handlers=[handler], level=_resolve_level(settings.log_level), force=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            timestamper,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,  # type: ignore[arg-type]
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "py_twap") -> structlog.BoundLogger:
    """Return a structured logger; configure on first use if needed."""
    if not logging.getLogger().handlers:
        if get_settings().logging_enabled:
            configure_logging()
        else:
            logging.basicConfig(handlers=[], level=logging.CRITICAL, force=True)
    return structlog.get_logger(name)


@contextmanager
def bind_observation_context(**fields: Any) -> Iterator[None]:
    """Bind observation identifiers to every log record emitted inside the block."""
    with structlog.contextvars.bound_contextvars(**fields):
        yield

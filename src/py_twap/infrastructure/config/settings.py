from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["test", "production"]
WeightingModeName = Literal["time", "time_id_scaled", "volume"]

DEFAULT_ORACLE_FEED_ADDRESS = "0xf4766552D15AE4d256Ad41B6cf2933482B0680dc"


def _prefixed(name: str) -> AliasChoices:
    return AliasChoices(f"PYTWAP__{name}", name)


class BaseAppSettings(BaseSettings):
    """
    Common application settings.

    Loaded from ENV/.env by pydantic-settings. Every field can be given either
    as ``NAME`` or namespaced as ``PYTWAP__NAME``.

    Groups:
    - Accumulator: weighting mode, first sample id, oracle feed address
    - Logging: level, JSON rendering, rotating file
    - Database pool/timeouts and transient-error commit retries (async stack)
    """

    model_config = SettingsConfigDict(env_file=(".env",), env_file_encoding="utf-8", extra="ignore")

    # Not bound to ENV directly; get_settings() sets it from the selected profile
    env: EnvName = Field(default="test")
    database_url: str = Field(alias="DATABASE_URL", validation_alias=_prefixed("DATABASE_URL"))
    log_level: str = Field(alias="LOG_LEVEL", default="INFO", validation_alias=_prefixed("LOG_LEVEL"))
    json_logs: bool = Field(alias="JSON_LOGS", default=False, validation_alias=_prefixed("JSON_LOGS"))
    logging_enabled: bool = Field(alias="LOGGING_ENABLED", default=True, validation_alias=_prefixed("LOGGING_ENABLED"))

    # Rotation options (used mainly when json_logs is true)
    log_file: str | None = Field(alias="LOG_FILE", default=None, validation_alias=_prefixed("LOG_FILE"))
    log_rotation: Literal["time", "size"] = Field(alias="LOG_ROTATION", default="time", validation_alias=_prefixed("LOG_ROTATION"))
    log_max_bytes: int = Field(alias="LOG_MAX_BYTES", default=10_485_760, validation_alias=_prefixed("LOG_MAX_BYTES"))
    log_backup_count: int = Field(alias="LOG_BACKUP_COUNT", default=7, validation_alias=_prefixed("LOG_BACKUP_COUNT"))
    log_rotate_when: str = Field(alias="LOG_ROTATE_WHEN", default="midnight", validation_alias=_prefixed("LOG_ROTATE_WHEN"))
    log_rotate_utc: bool = Field(alias="LOG_ROTATE_UTC", default=True, validation_alias=_prefixed("LOG_ROTATE_UTC"))

    # Accumulator
    weighting_mode: WeightingModeName = Field(alias="WEIGHTING_MODE", default="time", validation_alias=_prefixed("WEIGHTING_MODE"))
    sequence_start: int = Field(alias="SEQUENCE_START", default=1, ge=0, validation_alias=_prefixed("SEQUENCE_START"))
    oracle_feed_address: str = Field(
        alias="ORACLE_FEED_ADDRESS",
        default=DEFAULT_ORACLE_FEED_ADDRESS,
        validation_alias=_prefixed("ORACLE_FEED_ADDRESS"),
    )

    # Database pool/timeouts and retry settings (runtime async only)
    db_pool_size: int = Field(alias="DB_POOL_SIZE", default=5, validation_alias=_prefixed("DB_POOL_SIZE"))
    db_max_overflow: int = Field(alias="DB_MAX_OVERFLOW", default=10, validation_alias=_prefixed("DB_MAX_OVERFLOW"))
    db_pool_timeout: int = Field(alias="DB_POOL_TIMEOUT", default=30, validation_alias=_prefixed("DB_POOL_TIMEOUT"))
    db_pool_recycle_sec: int = Field(alias="DB_POOL_RECYCLE_SEC", default=1800, validation_alias=_prefixed("DB_POOL_RECYCLE_SEC"))
    db_connect_timeout_sec: int = Field(alias="DB_CONNECT_TIMEOUT_SEC", default=10, validation_alias=_prefixed("DB_CONNECT_TIMEOUT_SEC"))
    db_statement_timeout_ms: int = Field(alias="DB_STATEMENT_TIMEOUT_MS", default=0, validation_alias=_prefixed("DB_STATEMENT_TIMEOUT_MS"))
    db_retry_attempts: int = Field(alias="DB_RETRY_ATTEMPTS", default=3, validation_alias=_prefixed("DB_RETRY_ATTEMPTS"))
    db_retry_backoff_ms: int = Field(alias="DB_RETRY_BACKOFF_MS", default=50, validation_alias=_prefixed("DB_RETRY_BACKOFF_MS"))
    db_retry_max_backoff_ms: int = Field(alias="DB_RETRY_MAX_BACKOFF_MS", default=1000, validation_alias=_prefixed("DB_RETRY_MAX_BACKOFF_MS"))

    @field_validator("oracle_feed_address")
    @classmethod
    def validate_feed_address(cls, v: str) -> str:
        """Feed address must be a non-empty string."""
        if not v or not v.strip():
            raise ValueError("ORACLE_FEED_ADDRESS must not be empty")
        return v.strip()


class TestSettings(BaseAppSettings):
    """
    Test profile.

    - In-memory SQLite by default
    - DEBUG logs rendered for the console
    """

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    env: EnvName = Field(default="test")
    database_url: str = Field(alias="DATABASE_URL", default="sqlite+aiosqlite:///:memory:", validation_alias=_prefixed("DATABASE_URL"))
    log_level: str = Field(alias="LOG_LEVEL", default="DEBUG", validation_alias=_prefixed("LOG_LEVEL"))
    json_logs: bool = Field(alias="JSON_LOGS", default=False, validation_alias=_prefixed("JSON_LOGS"))


class ProdSettings(BaseAppSettings):
    """
    Production profile.

    Critical variables must be set explicitly.
    """

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    env: EnvName = Field(default="production")
    # placeholder keeps the field typed as str; the validator rejects it
    database_url: str = Field(alias="DATABASE_URL", default="__MISSING_DB_URL__", validation_alias=_prefixed("DATABASE_URL"))
    log_level: str = Field(alias="LOG_LEVEL", default="INFO", validation_alias=_prefixed("LOG_LEVEL"))
    json_logs: bool = Field(alias="JSON_LOGS", default=True, validation_alias=_prefixed("JSON_LOGS"))

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Ensure DATABASE_URL provided for production profile."""
        if v == "__MISSING_DB_URL__":
            raise ValueError("DATABASE_URL required")
        return v


# Profiles that never read .env, for isolated tests
class TestSettingsNoFile(TestSettings):
    model_config = SettingsConfigDict(env_file=(), extra="ignore")


class ProdSettingsNoFile(ProdSettings):
    model_config = SettingsConfigDict(env_file=(), extra="ignore")


@lru_cache(maxsize=8)
def get_settings(forced_env: EnvName | None = None, *, ignore_env_file: bool = False) -> BaseAppSettings:
    """
    Cached settings factory selecting the profile from ENV.

    Parameters:
    - forced_env: Explicit profile ("test" or "production"), overrides ENV.
    - ignore_env_file: Do not read .env (uses the *NoFile classes).

    Returns:
    - Settings instance of the selected profile.
    """
    import os

    selector: EnvName = forced_env or os.getenv("ENV", "test")  # type: ignore[assignment]
    if selector == "production":
        cls = ProdSettingsNoFile if ignore_env_file else ProdSettings
    else:
        cls = TestSettingsNoFile if ignore_env_file else TestSettings

    instance = cls()
    instance.env = selector  # keep env consistent with the selected profile
    return instance

"""Connection targets and pool tuning.

DatabaseConfig is a Pydantic model describing one connection target.
PoolSettings is a pydantic-settings model so pool limits can be tuned from
``POLY_QUERY_POOL_*`` environment variables.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from poly_query.core.enums import DatabaseDialect

_FILE_BASED = frozenset({DatabaseDialect.SQLITE})


class DatabaseConfig(BaseModel):
    """Configuration for a single database target."""

    dialect: DatabaseDialect
    host: str | None = None
    port: int | None = None
    database: str
    username: str | None = None
    password: str | None = Field(default=None, repr=False)
    filename: str | None = None
    options: dict[str, Any] = Field(default_factory=dict)

    @field_validator("dialect", mode="before")
    @classmethod
    def _lower_dialect(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.lower()
        return value

    @property
    def target(self) -> str:
        """Database name, or the file path for file-based dialects."""
        if self.dialect in _FILE_BASED and self.filename:
            return self.filename
        return self.database


def fingerprint(config: DatabaseConfig) -> str:
    """Return the pool key identifying *config*'s connection target.

    Two configs with the same dialect, user, host, port and database share
    a pool. The password is not part of the key.
    """
    user = config.username or ""
    host = config.host or ""
    port = "" if config.port is None else str(config.port)
    return f"{config.dialect.value}://{user}@{host}:{port}/{config.target}"


class PoolSettings(BaseSettings):
    """Tuning knobs for ConnectionPoolManager. Durations are in seconds."""

    model_config = SettingsConfigDict(env_prefix="POLY_QUERY_POOL_", extra="ignore")

    max_pool_size: int = 10
    max_idle_time: float = 30 * 60
    cleanup_interval: float = 5 * 60
    acquire_timeout: float = 30.0
    poll_interval: float = 0.1
    shutdown_timeout: float = 30.0

    @field_validator(
        "max_pool_size",
        "max_idle_time",
        "cleanup_interval",
        "acquire_timeout",
        "poll_interval",
        "shutdown_timeout",
    )
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

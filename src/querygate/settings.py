"""Environment-driven engine settings.

``DatabaseSettings`` reads ``QUERYGATE_*`` environment variables (and a
``.env`` file) so deployments configure the engine without code::

    QUERYGATE_DRIVER=mysql
    QUERYGATE_HOST=db.internal
    QUERYGATE_DATABASE=shop
    QUERYGATE_USERNAME=shop
    QUERYGATE_PASSWORD=secret
    QUERYGATE_FAILURE_LOG_DIR=/var/log/querygate

Examples:
    >>> from querygate import Database
    >>> from querygate.settings import DatabaseSettings
    >>> db = Database.from_settings(DatabaseSettings(driver="sqlite", path=":memory:"))
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from querygate.adapters.types import DatabaseType
from querygate.logging import configure_logging
from querygate.recovery import DEFAULT_RETRY_ATTEMPTS


class DatabaseSettings(BaseSettings):
    """Connection and recovery settings for one engine."""

    model_config = SettingsConfigDict(
        env_prefix="QUERYGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Connection ───────────────────────────────────────────────
    driver: DatabaseType = DatabaseType.MYSQL
    host: str = "localhost"
    port: int | None = None
    database: str = ""
    username: str | None = None
    password: str | None = None
    charset: str = "utf8mb4"
    path: str = Field(default=":memory:", description="SQLite database file")

    # ── Recovery ─────────────────────────────────────────────────
    auto_reconnect: bool = True
    retry_attempts: int = Field(default=DEFAULT_RETRY_ATTEMPTS, ge=0)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    failure_log_dir: Path | None = None

    def adapter_kwargs(self) -> dict[str, Any]:
        """Constructor arguments for the adapter selected by ``driver``."""
        if self.driver is DatabaseType.SQLITE:
            return {"path": self.path}
        kwargs: dict[str, Any] = {
            "host": self.host,
            "database": self.database,
            "username": self.username,
            "password": self.password,
        }
        if self.port is not None:
            kwargs["port"] = self.port
        if self.driver is DatabaseType.MYSQL:
            kwargs["charset"] = self.charset
        return kwargs

    def configure_logging(self, *, json_format: bool | None = None) -> None:
        """Apply ``log_level`` to the structlog configuration."""
        configure_logging(level=self.log_level, json_format=json_format)


__all__ = ["DatabaseSettings"]

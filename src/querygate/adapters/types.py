"""Database types and configuration."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from querygate.errors import ConfigError


class DatabaseType(str, Enum):
    """Supported database types."""

    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"


DEFAULT_PORTS: dict[DatabaseType, int] = {
    DatabaseType.MYSQL: 3306,
    DatabaseType.POSTGRESQL: 5432,
}


@dataclass
class DatabaseConfig:
    """
    Configuration for database connection.

    Different fields are used by different database types.
    """

    # Common
    db_type: DatabaseType = DatabaseType.MYSQL

    # SQLite
    path: str | None = None

    # PostgreSQL / MySQL
    host: str = "localhost"
    port: int | None = None
    database: str = ""
    username: str | None = None
    password: str | None = None
    charset: str = "utf8"

    # Options
    connect_timeout: int = 10

    # Extra options (driver-specific)
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def resolved_port(self) -> int | None:
        return self.port if self.port is not None else DEFAULT_PORTS.get(self.db_type)

    def to_dsn(self) -> str:
        """Render the connection string template for the database type."""
        match self.db_type:
            case DatabaseType.MYSQL:
                return (
                    f"mysql:host={self.host};port={self.resolved_port};"
                    f"dbname={self.database};charset={self.charset};"
                )
            case DatabaseType.POSTGRESQL:
                return f"pgsql:host={self.host};port={self.resolved_port};dbname={self.database};"
            case DatabaseType.SQLITE:
                return f"sqlite:{self.path or ':memory:'}"
            case _:
                raise ConfigError(f"Connection string not supported for: {self.db_type}")

    def log_key(self) -> str:
        """Failure-log key: database name plus a digest of the password.

        Keeps logs of different credentials apart without writing the
        password itself anywhere.
        """
        if self.database:
            name = self.database
        elif self.path and self.path != ":memory:":
            name = Path(self.path).stem
        else:
            name = "memory"
        digest = hashlib.md5((self.password or "").encode("utf-8")).hexdigest()
        return f"{name}{digest}"


__all__ = [
    "DatabaseType",
    "DatabaseConfig",
    "DEFAULT_PORTS",
]

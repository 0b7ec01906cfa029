"""MySQL database adapter.

Uses ``mysql.connector`` from the ``mysql-connector-python`` package.
MySQL uses **pyformat** (``%s`` / ``%(name)s``) placeholder style.

Install the driver::

    pip install mysql-connector-python
    # or:  pip install querygate[mysql]

This adapter is import-guarded: if ``mysql.connector`` is not installed
a clear :class:`~querygate.errors.ConfigError` is raised at
``connect()`` time.
"""

from __future__ import annotations

from typing import Any

from querygate.errors import ConfigError

from .base import DriverAdapter
from .types import DatabaseConfig, DatabaseType


class MySQLAdapter(DriverAdapter):
    """MySQL / MariaDB database adapter."""

    # mysql.connector substitutes placeholders without unescaping ``%%``
    escape_percent = False
    identifier_quote = "`"
    disconnect_signatures = (
        "connection lost",
        "server has gone away",
        "lost connection to mysql server",
        "mysql connection not available",
    )

    def __init__(
        self,
        host: str = "localhost",
        port: int = 3306,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        *,
        charset: str = "utf8mb4",
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.MYSQL,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            charset=charset,
            options=kwargs,
        )
        super().__init__(config)

    def _load_driver(self) -> Any:
        try:
            import mysql.connector
        except ImportError:
            raise ConfigError(
                "mysql-connector-python is required for MySQL. "
                "Install with: pip install mysql-connector-python"
            ) from None
        return mysql.connector

    def _open(self) -> Any:
        return self.driver.connect(
            host=self._config.host,
            port=self._config.resolved_port,
            database=self._config.database,
            user=self._config.username,
            password=self._config.password,
            charset=self._config.charset,
            connect_timeout=self._config.connect_timeout,
            autocommit=True,
            **self._config.options,
        )

    def open_cursor(self, raw: Any, *, streaming: bool = False) -> Any:
        # Unbuffered cursors pull rows from the server one fetch at a time
        return raw.cursor(buffered=not streaming)

    def begin(self, raw: Any) -> None:
        raw.start_transaction()

    def in_transaction(self, raw: Any) -> bool:
        return raw.in_transaction


__all__ = [
    "MySQLAdapter",
]

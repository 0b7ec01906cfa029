"""PostgreSQL driver adapter.

Uses ``psycopg2`` (``pyformat`` placeholders). Install the driver::

    pip install querygate[postgresql]
"""

from __future__ import annotations

import uuid
from typing import Any

from querygate.errors import ConfigError

from .base import DriverAdapter, DriverConnection
from .types import DatabaseConfig, DatabaseType


class PostgreSQLAdapter(DriverAdapter):
    """
    PostgreSQL database adapter.

    Connections run with ``autocommit`` on; ``begin()`` switches it off
    until the transaction ends. Streaming cursors are server-side named
    cursors declared ``WITH HOLD`` so they also work outside a
    transaction.
    """

    identifier_quote = '"'
    disconnect_signatures = (
        "connection lost",
        "server closed the connection unexpectedly",
        "terminating connection",
        "connection already closed",
        "ssl connection has been closed unexpectedly",
        "could not receive data from server",
    )

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.POSTGRESQL,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            options=kwargs,
        )
        super().__init__(config)

    def _load_driver(self) -> Any:
        try:
            import psycopg2
        except ImportError:
            raise ConfigError(
                "psycopg2 is required for PostgreSQL. Install with: pip install psycopg2-binary"
            ) from None
        return psycopg2

    def _open(self) -> Any:
        conn = self.driver.connect(
            host=self._config.host,
            port=self._config.resolved_port,
            dbname=self._config.database,
            user=self._config.username,
            password=self._config.password,
            connect_timeout=self._config.connect_timeout,
            **self._config.options,
        )
        conn.autocommit = True
        return conn

    def open_cursor(self, raw: Any, *, streaming: bool = False) -> Any:
        if streaming:
            return raw.cursor(name=f"querygate_{uuid.uuid4().hex}", withhold=True)
        return raw.cursor()

    def begin(self, raw: Any) -> None:
        raw.autocommit = False

    def commit(self, raw: Any) -> None:
        try:
            raw.commit()
        finally:
            raw.autocommit = True

    def rollback(self, raw: Any) -> None:
        try:
            raw.rollback()
        finally:
            raw.autocommit = True

    def in_transaction(self, raw: Any) -> bool:
        extensions = self.driver.extensions
        return raw.info.transaction_status in (
            extensions.TRANSACTION_STATUS_INTRANS,
            extensions.TRANSACTION_STATUS_INERROR,
        )

    def last_insert_id(self, connection: DriverConnection) -> Any:
        # psycopg2 has no lastrowid for tables without OIDs
        cursor = connection.raw.cursor()
        try:
            cursor.execute("SELECT lastval()")
            row = cursor.fetchone()
        finally:
            cursor.close()
        return row[0] if row else None


__all__ = [
    "PostgreSQLAdapter",
]

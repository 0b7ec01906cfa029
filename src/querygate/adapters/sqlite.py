"""SQLite driver adapter.

Uses the built-in sqlite3 module, which understands ``:name`` and ``?``
placeholders natively. Suitable for development, tests and
single-process tools.
"""

from __future__ import annotations

from typing import Any

from .base import DriverAdapter
from .types import DatabaseConfig, DatabaseType


class SQLiteAdapter(DriverAdapter):
    """SQLite adapter; the connection runs in autocommit mode."""

    paramstyle = "native"
    escape_percent = False
    disconnect_signatures = (
        "connection lost",
        "cannot operate on a closed database",
    )

    def __init__(
        self,
        path: str = ":memory:",
        *,
        timeout: float = 5.0,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            options=kwargs,
        )
        super().__init__(config)
        self._timeout = timeout

    def _load_driver(self) -> Any:
        import sqlite3

        return sqlite3

    def _open(self) -> Any:
        path = self._config.path or ":memory:"
        conn = self.driver.connect(
            path,
            timeout=self._timeout,
            check_same_thread=False,
            isolation_level=None,
            uri=path.startswith("file:"),
        )
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def begin(self, raw: Any) -> None:
        raw.execute("BEGIN")

    def in_transaction(self, raw: Any) -> bool:
        return raw.in_transaction


__all__ = [
    "SQLiteAdapter",
]

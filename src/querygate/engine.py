"""
The query engine: one connection, one request surface.

``Database`` owns a single driver connection and exposes the calls an
application makes against it: run a statement, fetch rows eagerly or
through a lazy cursor, structured insert/update helpers, and
transaction control. Each call is captured as a closure and run through
the recovery controller, which reconnects and re-runs it when the server
connection was lost.

Manifesto:
    - **Keyword dispatch:** ``SELECT``/``SHOW``/``CALL``/``DESCRIBE``
      return rows, ``INSERT``/``UPDATE``/``DELETE`` return a count,
      everything else returns ``None``
    - **Fresh statement per call:** no statement outlives the call that
      created it, except behind a ``RowCursor``
    - **Original parameters on retry:** array expansion and binding run
      again from the caller's own parameters
    - **One engine per thread:** no locking; use one ``Database`` per
      thread or task

Examples:
    >>> from querygate import Database
    >>> db = Database.from_url("sqlite:///:memory:")
    >>> db.query("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, age INTEGER)")
    >>> db.insert("users", {"name": "a", "age": 5})
    1
    >>> db.query("SELECT name FROM users WHERE id IN (:ids)", {"ids": [1, 2]})
    [{'name': 'a'}]
    >>> db.update("users", {"age": 6}, {"id": 1})
    1

Tags:
    querygate, engine, query-execution, reconnect, transactions
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any, Literal
from urllib.parse import unquote, urlparse

from querygate.adapters.base import DriverAdapter, DriverConnection
from querygate.adapters.registry import get_adapter
from querygate.cursor import RowCursor
from querygate.dispatch import StatementKind, classify
from querygate.errors import ConfigError, DatabaseError, ShapeError
from querygate.logging import get_logger
from querygate.params import Params, rewrite
from querygate.protocols import FailChannel, FailureSink
from querygate.recovery import DEFAULT_RETRY_ATTEMPTS, ConnectionState, RecoveryController
from querygate.settings import DatabaseSettings
from querygate.sinks import FileFailureSink, StructlogFailureSink
from querygate.statement import FetchMode, Statement

logger = get_logger(__name__)


class Database:
    """Connection-managing query engine over one driver adapter."""

    def __init__(
        self,
        adapter: DriverAdapter,
        *,
        sink: FailureSink | None = None,
        fail_channel: FailChannel | None = None,
        auto_reconnect: bool = True,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
    ) -> None:
        self.adapter = adapter
        self._state = ConnectionState()
        self._recovery = RecoveryController(
            self._state,
            adapter,
            sink=sink or StructlogFailureSink(),
            log_key=adapter.config.log_key(),
            fail_channel=fail_channel,
            auto_reconnect=auto_reconnect,
            retry_attempts=retry_attempts,
        )
        self.row_count = 0
        self.column_count = 0
        self.query_count = 0

    # -- construction ------------------------------------------------------

    @classmethod
    def from_settings(
        cls,
        settings: DatabaseSettings | None = None,
        *,
        sink: FailureSink | None = None,
        fail_channel: FailChannel | None = None,
    ) -> Database:
        """Build an engine from ``QUERYGATE_*`` settings."""
        settings = settings or DatabaseSettings()
        adapter = get_adapter(settings.driver, **settings.adapter_kwargs())
        if sink is None and settings.failure_log_dir is not None:
            sink = FileFailureSink(settings.failure_log_dir)
        return cls(
            adapter,
            sink=sink,
            fail_channel=fail_channel,
            auto_reconnect=settings.auto_reconnect,
            retry_attempts=settings.retry_attempts,
        )

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> Database:
        """Build an engine from ``mysql://``, ``postgresql://`` or ``sqlite:///`` URLs."""
        parsed = urlparse(url)
        scheme = parsed.scheme.lower()
        if scheme == "sqlite":
            path = parsed.path[1:] if parsed.path.startswith("/") else parsed.path
            return cls(get_adapter("sqlite", path=path or ":memory:"), **kwargs)
        if not scheme:
            raise ConfigError(f"Database URL has no scheme: {url!r}")

        adapter_kwargs: dict[str, Any] = {
            "host": parsed.hostname or "localhost",
            "database": unquote(parsed.path.lstrip("/")),
            "username": unquote(parsed.username) if parsed.username else None,
            "password": unquote(parsed.password) if parsed.password else None,
        }
        if parsed.port is not None:
            adapter_kwargs["port"] = parsed.port
        return cls(get_adapter(scheme, **adapter_kwargs), **kwargs)

    # -- connection --------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state.is_open

    def _connection(self) -> DriverConnection:
        if self._state.handle is None:
            self._state.handle = self.adapter.connect()
        return self._state.handle

    def connect(self) -> None:
        """Open the connection now instead of on first use."""
        self._recovery.run(self._connection, name="connect", retryable=False)

    def close_connection(self) -> None:
        self._state.invalidate()

    # -- statements --------------------------------------------------------

    def _prepare(self, sql: str, params: Params, *, streaming: bool = False) -> Statement:
        rewritten_sql, rewritten_params = rewrite(sql, params)
        statement = self._connection().prepare(rewritten_sql, streaming=streaming)
        statement.bind_all(rewritten_params)
        return statement

    @contextmanager
    def _executed(self, sql: str, params: Params) -> Iterator[Statement]:
        statement = self._prepare(sql, params)
        try:
            statement.execute()
            self.query_count += 1
            yield statement
        finally:
            statement.close_cursor()

    def _run(
        self,
        sql: str,
        params: Params,
        fetch_mode: FetchMode,
        name: str,
    ) -> list[Any] | int | None:
        kind = classify(sql)

        def operation() -> list[Any] | int | None:
            with self._executed(sql, params) as statement:
                if kind is StatementKind.ROWS:
                    return statement.fetch_all(fetch_mode)
                if kind is StatementKind.AFFECTED:
                    return statement.row_count
                return None

        return self._recovery.run(operation, sql=sql, name=name)

    def query(
        self,
        sql: str,
        params: Params = None,
        fetch_mode: FetchMode | str = FetchMode.ASSOC,
    ) -> list[Any] | int | None:
        """Run a statement.

        Returns:
            All rows for row-returning statements, the affected row count
            for ``INSERT``/``UPDATE``/``DELETE``, ``None`` otherwise.
        """
        return self._run(sql.strip(), params, FetchMode(fetch_mode), "query")

    def iterator(
        self,
        sql: str,
        params: Params = None,
        fetch_mode: FetchMode | str = FetchMode.ASSOC,
    ) -> RowCursor | int | None:
        """Like :meth:`query`, but row-returning statements stream through a ``RowCursor``.

        The statement is executed and the first row fetched before this
        returns, so connection loss at that point is still recovered.
        """
        sql = sql.strip()
        fetch_mode = FetchMode(fetch_mode)
        if classify(sql) is not StatementKind.ROWS:
            return self._run(sql, params, fetch_mode, "iterator")

        def report(error: DatabaseError) -> None:
            self._recovery.record_failure(error, sql)

        def operation() -> RowCursor:
            cursor = RowCursor(self._prepare(sql, params, streaming=True), fetch_mode, on_error=report)
            try:
                cursor.start()
            except BaseException:
                cursor.close()
                raise
            self.query_count += 1
            return cursor

        return self._recovery.run(operation, sql=sql, name="iterator")

    def column(self, sql: str, params: Params = None) -> list[Any]:
        """First-column values of every row."""
        sql = sql.strip()

        def operation() -> list[Any]:
            with self._executed(sql, params) as statement:
                values = statement.fetch_all(FetchMode.COLUMN)
                self.row_count = statement.row_count
                self.column_count = statement.column_count
                return values

        return self._recovery.run(operation, sql=sql, name="column")

    def row(
        self,
        sql: str,
        params: Params = None,
        fetch_mode: FetchMode | str = FetchMode.ASSOC,
    ) -> Any | None:
        """First row, or ``None`` when there is none."""
        sql = sql.strip()
        fetch_mode = FetchMode(fetch_mode)

        def operation() -> Any | None:
            with self._executed(sql, params) as statement:
                result = statement.fetch(fetch_mode)
                self.row_count = statement.row_count
                self.column_count = statement.column_count
                return result

        return self._recovery.run(operation, sql=sql, name="row")

    def single(self, sql: str, params: Params = None) -> Any | None:
        """First column of the first row, or ``None``."""
        sql = sql.strip()

        def operation() -> Any | None:
            with self._executed(sql, params) as statement:
                return statement.fetch_column()

        return self._recovery.run(operation, sql=sql, name="single")

    # -- structured writes -------------------------------------------------

    def insert(self, table: str, values: Mapping[str, Any]) -> Any | Literal[False]:
        """Insert one row.

        Returns:
            The last inserted id, or ``False`` when no row was inserted.
        """
        if not values:
            raise ShapeError(f"insert into {table} needs at least one column")
        quote = self.adapter.quote_identifier
        columns = list(values)
        sql = (
            f"INSERT INTO {quote(table)} ({', '.join(quote(c) for c in columns)}) "
            f"VALUES ({', '.join(f':{c}' for c in columns)})"
        )
        if self._run(sql, dict(values), FetchMode.ASSOC, "insert") == 0:
            return False
        return self.last_insert_id()

    def insert_multi(self, table: str, rows: Sequence[Mapping[str, Any]]) -> bool:
        """Insert several rows with one multi-row ``INSERT``.

        Every row must have the same columns in the same order as the
        first one.
        """
        if not rows:
            return False
        columns = list(rows[0])
        if not columns:
            raise ShapeError(f"insert into {table} needs at least one column")
        for index, row in enumerate(rows):
            if list(row) != columns:
                raise ShapeError(
                    f"Row {index} has columns {list(row)}, expected {columns} as in the first row"
                )

        quote = self.adapter.quote_identifier
        group = f"({', '.join('?' for _ in columns)})"
        sql = (
            f"INSERT INTO {quote(table)} ({', '.join(quote(c) for c in columns)}) "
            f"VALUES {', '.join(group for _ in rows)}"
        )
        values = [row[column] for row in rows for column in columns]
        return (self._run(sql, values, FetchMode.ASSOC, "insert_multi") or 0) > 0

    def update(
        self,
        table: str,
        values: Mapping[str, Any],
        where: Mapping[str, Any] | None = None,
    ) -> int:
        """Update rows matching every ``where`` condition (AND-combined).

        Returns:
            The affected row count; ``0`` without a query when ``values``
            is empty.
        """
        if not values:
            return 0
        quote = self.adapter.quote_identifier
        sql = f"UPDATE {quote(table)} SET {', '.join(f'{quote(c)}=?' for c in values)}"
        params = list(values.values())
        if where:
            sql += " WHERE 1=1" + "".join(f" AND {quote(c)}=?" for c in where)
            params.extend(where.values())
        return self._run(sql, params, FetchMode.ASSOC, "update") or 0

    def last_insert_id(self) -> Any:
        return self._recovery.run(
            lambda: self._connection().last_insert_id(),
            name="last_insert_id",
            retryable=False,
        )

    # -- transactions ------------------------------------------------------

    def begin_transaction(self) -> bool:
        return self._recovery.run(
            lambda: self._connection().begin_transaction(),
            name="begin_transaction",
        )

    def commit(self) -> bool:
        return self._recovery.run(
            lambda: self._connection().commit(),
            name="commit",
            retryable=False,
        )

    def rollback(self) -> bool:
        return self._recovery.run(
            lambda: self._connection().rollback(),
            name="rollback",
            retryable=False,
        )

    def in_transaction(self) -> bool:
        return self._state.in_transaction

    @contextmanager
    def transaction(self) -> Iterator[Database]:
        """Commit on success, roll back and re-raise on any exception."""
        self.begin_transaction()
        try:
            yield self
        except BaseException:
            if self.in_transaction():
                self.rollback()
            raise
        self.commit()

    # -- context manager ---------------------------------------------------

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *args) -> None:
        self.close_connection()

    def __repr__(self) -> str:
        state = "connected" if self.is_connected else "idle"
        return f"Database({self.adapter.db_type.value}, {state}, queries={self.query_count})"


__all__ = ["Database"]

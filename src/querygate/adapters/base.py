"""Driver adapter base class and the connection handle.

Manifesto:
    The engine talks to every database the same way: prepare, bind,
    execute, fetch, transaction control. ``DriverAdapter`` hides what
    differs between DB-API drivers (paramstyle, identifier quoting,
    transaction switches, how a lost connection is reported) and
    ``DriverConnection`` is the opaque handle the engine owns.

Features:
    - Import-guarded drivers: a missing driver is a ``ConfigError`` at
      connect time, never at import time
    - ``:name`` / ``?`` placeholders translated to the driver's paramstyle
    - Disconnect detection by case-insensitive message signatures
    - Explicit transaction flag, checked before any automatic retry

Tags:
    querygate, database, abstract-base, adapter-pattern
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from querygate.errors import (
    ConnectError,
    DatabaseError,
    PermanentQueryError,
    TransientDisconnectError,
)
from querygate.logging import get_logger
from querygate.protocols import RawConnection
from querygate.statement import Statement

from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)

# Quoted literals are copied through untouched; ``::`` is a cast, not a placeholder
_TOKEN_RE = re.compile(
    r"(?P<literal>'(?:[^'\\]|\\.|'')*'|\"(?:[^\"\\]|\\.|\"\")*\"|`[^`]*`)"
    r"|(?P<cast>::)"
    r"|:(?P<name>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<qmark>\?)"
    r"|(?P<percent>%)"
)


def to_pyformat(sql: str, *, escape_percent: bool = True) -> str:
    """Translate ``:name`` → ``%(name)s`` and ``?`` → ``%s``.

    With ``escape_percent`` a literal ``%`` (including inside quoted
    strings) is doubled, as psycopg2 requires whenever parameters are
    passed.
    """

    def _replace(match: re.Match[str]) -> str:
        literal = match.group("literal")
        if literal is not None:
            return literal.replace("%", "%%") if escape_percent else literal
        if match.group("cast") is not None:
            return "::"
        if match.group("name") is not None:
            return f"%({match.group('name')})s"
        if match.group("qmark") is not None:
            return "%s"
        return "%%" if escape_percent else "%"

    return _TOKEN_RE.sub(_replace, sql)


class DriverAdapter(ABC):
    """
    Abstract base class for driver adapters.

    Subclasses load their DB-API module lazily and open raw connections;
    everything else has a sensible default.
    """

    #: "native" drivers accept ``:name`` and ``?`` as written
    paramstyle: ClassVar[str] = "pyformat"
    escape_percent: ClassVar[bool] = True
    identifier_quote: ClassVar[str] = '"'
    disconnect_signatures: ClassVar[tuple[str, ...]] = ("connection lost",)

    def __init__(self, config: DatabaseConfig):
        self._config = config
        self._driver: Any = None

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def db_type(self) -> DatabaseType:
        return self._config.db_type

    @property
    def driver(self) -> Any:
        """The DB-API module, imported on first use."""
        if self._driver is None:
            self._driver = self._load_driver()
        return self._driver

    @property
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        """Exception types raised by the driver."""
        return (self.driver.Error,)

    @abstractmethod
    def _load_driver(self) -> Any:
        """Import the DB-API module or raise ``ConfigError``."""
        ...

    @abstractmethod
    def _open(self) -> RawConnection:
        """Open a raw driver connection in autocommit mode."""
        ...

    def connect(self) -> DriverConnection:
        """Open a new connection handle."""
        driver_errors = self.driver_errors
        try:
            raw = self._open()
        except driver_errors as e:
            raise ConnectError(
                f"Failed to connect to {self.db_type.value}: {e}",
                cause=e,
            ).with_context(driver=self.db_type.value, database=self._config.database) from e

        logger.debug("connection_opened", driver=self.db_type.value, dsn=self._config.to_dsn())
        return DriverConnection(self, raw)

    # -- SQL text ------------------------------------------------------------

    def translate(self, sql: str, *, has_params: bool) -> str:
        if self.paramstyle == "native" or not has_params:
            return sql
        return to_pyformat(sql, escape_percent=self.escape_percent)

    def quote_identifier(self, name: str) -> str:
        quote = self.identifier_quote
        return f"{quote}{name.replace(quote, quote * 2)}{quote}"

    # -- errors --------------------------------------------------------------

    def is_disconnect(self, error: BaseException) -> bool:
        message = str(error).lower()
        return any(signature in message for signature in self.disconnect_signatures)

    def classify(self, error: BaseException) -> DatabaseError:
        """Wrap a driver exception in a transient or permanent error."""
        error_type = TransientDisconnectError if self.is_disconnect(error) else PermanentQueryError
        return error_type(str(error).strip() or type(error).__name__, cause=error).with_context(
            driver=self.db_type.value
        )

    # -- cursors and transactions -------------------------------------------

    def open_cursor(self, raw: Any, *, streaming: bool = False) -> Any:
        return raw.cursor()

    def begin(self, raw: Any) -> None:
        ...

    def commit(self, raw: Any) -> None:
        raw.commit()

    def rollback(self, raw: Any) -> None:
        raw.rollback()

    def in_transaction(self, raw: Any) -> bool:
        """Whether the driver reports an open transaction on ``raw``."""
        return False

    def last_insert_id(self, connection: DriverConnection) -> Any:
        return connection.last_row_id

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._config.to_dsn()!r})"


class DriverConnection:
    """The connection handle owned by one engine.

    Combines the flag set by ``begin_transaction()`` with the state the
    driver last reported, so a transaction opened with plain SQL still
    blocks automatic retries after the server has gone away.
    """

    def __init__(self, adapter: DriverAdapter, raw: Any) -> None:
        self.adapter = adapter
        self.raw = raw
        self.last_row_id: Any = None
        self._in_transaction = False
        # Last state the driver reported while the connection was alive
        self._driver_in_transaction = False

    def prepare(self, sql: str, *, streaming: bool = False) -> Statement:
        return Statement(self, sql, streaming=streaming)

    def open_cursor(self, *, streaming: bool = False) -> Any:
        return self.adapter.open_cursor(self.raw, streaming=streaming)

    @property
    def in_transaction(self) -> bool:
        """Open via ``begin_transaction()`` or via SQL such as ``BEGIN``."""
        return self._in_transaction or self._driver_in_transaction

    def refresh_transaction_state(self) -> None:
        """Ask the driver whether a transaction is open.

        Called after every executed statement. A connection that can no
        longer answer keeps the last known state.
        """
        try:
            self._driver_in_transaction = bool(self.adapter.in_transaction(self.raw))
        except self.adapter.driver_errors as e:
            logger.debug("transaction_state_unavailable", driver=self.adapter.db_type.value, error=str(e))

    def _end_transaction(self) -> None:
        self._in_transaction = False
        self._driver_in_transaction = False

    def begin_transaction(self) -> bool:
        if self.in_transaction:
            raise PermanentQueryError("There is already an active transaction")
        self.adapter.begin(self.raw)
        self._in_transaction = True
        return True

    def commit(self) -> bool:
        if not self.in_transaction:
            raise PermanentQueryError("There is no active transaction")
        try:
            self.adapter.commit(self.raw)
        finally:
            self._end_transaction()
        return True

    def rollback(self) -> bool:
        if not self.in_transaction:
            raise PermanentQueryError("There is no active transaction")
        try:
            self.adapter.rollback(self.raw)
        finally:
            self._end_transaction()
        return True

    def last_insert_id(self) -> Any:
        return self.adapter.last_insert_id(self)

    def close(self) -> None:
        """Close the raw connection; a dead server is not an error here."""
        try:
            self.raw.close()
        except self.adapter.driver_errors as e:
            logger.debug("connection_close_failed", driver=self.adapter.db_type.value, error=str(e))

    def __repr__(self) -> str:
        return f"DriverConnection({self.adapter.db_type.value}, in_transaction={self.in_transaction})"


__all__ = [
    "DriverAdapter",
    "DriverConnection",
    "to_pyformat",
]

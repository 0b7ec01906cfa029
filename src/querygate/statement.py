"""Prepared statements over a DB-API cursor.

A :class:`Statement` is created fresh for every logical operation by
:meth:`DriverConnection.prepare`. Parameters are bound by value, either
all positionally (1-based indexes) or all by name, and the driver cursor
is only opened when the statement is executed.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any

from querygate.errors import ShapeError
from querygate.logging import get_logger
from querygate.params import BindingMode, Params, binding_mode, named_values, positional_values

if TYPE_CHECKING:
    from querygate.adapters.base import DriverConnection

logger = get_logger(__name__)


class FetchMode(str, Enum):
    """Shape of each fetched row."""

    ASSOC = "assoc"     # dict keyed by column name
    NUM = "num"         # tuple in column order
    COLUMN = "column"   # value of the first column


class Statement:
    """One statement, one cursor, one set of bound parameters."""

    def __init__(self, connection: DriverConnection, sql: str, *, streaming: bool = False) -> None:
        self.connection = connection
        self.sql = sql
        self.streaming = streaming
        self._positional: dict[int, Any] = {}
        self._named: dict[str, Any] = {}
        self._cursor: Any = None

    # -- binding -----------------------------------------------------------

    def bind(self, key: int | str, value: Any) -> None:
        """Bind ``value`` to a 1-based position or to a ``:name`` placeholder."""
        if isinstance(key, int):
            if self._named:
                raise ShapeError("Cannot bind positional parameters to a statement with named parameters")
            if key < 1:
                raise ShapeError(f"Positional placeholders are 1-based, got {key}")
            self._positional[key] = value
        else:
            if self._positional:
                raise ShapeError("Cannot bind named parameters to a statement with positional parameters")
            self._named[key.lstrip(":")] = value

    def bind_all(self, params: Params) -> None:
        if not params:
            return
        if binding_mode(params) is BindingMode.POSITIONAL:
            for index, value in enumerate(positional_values(params), start=1):
                self.bind(index, value)
        else:
            for name, value in named_values(params).items():
                self.bind(name, value)

    @property
    def parameters(self) -> tuple[Any, ...] | dict[str, Any] | None:
        """Bound parameters in the form the driver expects."""
        if self._positional:
            positions = sorted(self._positional)
            if positions != list(range(1, len(positions) + 1)):
                raise ShapeError(f"Positional parameters must be bound contiguously from 1, got {positions}")
            return tuple(self._positional[i] for i in positions)
        if self._named:
            return dict(self._named)
        return None

    # -- execution ---------------------------------------------------------

    def execute(self) -> None:
        """Run the statement, discarding any result still open from a previous run."""
        self.close_cursor()
        params = self.parameters
        sql = self.connection.adapter.translate(self.sql, has_params=params is not None)
        self._cursor = self.connection.open_cursor(streaming=self.streaming)
        if params is None:
            self._cursor.execute(sql)
        else:
            self._cursor.execute(sql, params)
        # Statements that insert nothing leave the previous id in place
        lastrowid = getattr(self._cursor, "lastrowid", None)
        if lastrowid:
            self.connection.last_row_id = lastrowid
        self.connection.refresh_transaction_state()

    @property
    def executed(self) -> bool:
        return self._cursor is not None

    def _columns(self) -> list[str]:
        description: Sequence[Sequence[Any]] | None = self._cursor.description
        return [column[0] for column in description or ()]

    def _shape(self, row: Any, mode: FetchMode) -> Any:
        if mode is FetchMode.COLUMN:
            return row[0]
        if mode is FetchMode.NUM:
            return tuple(row)
        return dict(zip(self._columns(), row))

    def fetch(self, mode: FetchMode = FetchMode.ASSOC) -> Any | None:
        """Next row, or ``None`` once the result is exhausted."""
        row = self._cursor.fetchone()
        if row is None:
            return None
        return self._shape(row, mode)

    def fetch_all(self, mode: FetchMode = FetchMode.ASSOC) -> list[Any]:
        return [self._shape(row, mode) for row in self._cursor.fetchall()]

    def fetch_column(self) -> Any | None:
        """First column of the next row, or ``None``."""
        return self.fetch(FetchMode.COLUMN)

    @property
    def row_count(self) -> int:
        return self._cursor.rowcount if self._cursor is not None else 0

    @property
    def column_count(self) -> int:
        if self._cursor is None:
            return 0
        return len(self._cursor.description or ())

    def close_cursor(self) -> None:
        """Release the driver cursor. Safe to call more than once."""
        if self._cursor is not None:
            cursor, self._cursor = self._cursor, None
            try:
                cursor.close()
            except self.connection.adapter.driver_errors as e:
                logger.debug("cursor_close_failed", sql=self.sql, error=str(e))

    def __repr__(self) -> str:
        return f"Statement({self.sql!r}, streaming={self.streaming})"


__all__ = [
    "FetchMode",
    "Statement",
]

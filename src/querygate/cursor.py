"""Lazy, single-pass row cursor.

``RowCursor`` streams a result set without materializing it: it holds
exactly one row of lookahead so ``has_more()`` can answer without
consuming anything. The driver cursor is closed the first time the
lookahead comes back empty, and the cursor cannot be started again
after that; run the query again for a fresh one.

Usage::

    for row in db.iterator("SELECT * FROM events WHERE day = :day", {"day": day}):
        handle(row)
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

from querygate.errors import CursorClosedError, DatabaseError
from querygate.logging import get_logger
from querygate.statement import FetchMode, Statement

logger = get_logger(__name__)

_END = object()


class RowCursor:
    """Forward-only iterator over the rows of one statement.

    ``start()`` lets driver exceptions through untouched so the caller
    (normally the engine's recovery loop) can classify and retry them.
    Failures while advancing are wrapped in a ``DatabaseError`` and
    reported to ``on_error`` before being raised.
    """

    def __init__(
        self,
        statement: Statement,
        fetch_mode: FetchMode = FetchMode.ASSOC,
        *,
        on_error: Callable[[DatabaseError], None] | None = None,
    ) -> None:
        self._statement = statement
        self._fetch_mode = fetch_mode
        self._on_error = on_error
        self._position = 0
        self._lookahead: Any = _END
        self._started = False
        self._closed = False

    @property
    def position(self) -> int:
        return self._position

    @property
    def started(self) -> bool:
        return self._started

    @property
    def closed(self) -> bool:
        return self._closed

    def _next_row(self) -> Any:
        row = self._statement.fetch(self._fetch_mode)
        return _END if row is None else row

    def start(self) -> None:
        """Execute the statement and load the first row into the lookahead."""
        if self._closed:
            raise CursorClosedError("Row cursor is exhausted; run the query again for a new cursor")
        self._position = 0
        self._started = True
        self._statement.execute()
        self._lookahead = self._next_row()

    def current(self) -> Any:
        """The lookahead row, without advancing."""
        return None if self._lookahead is _END else self._lookahead

    def advance(self) -> None:
        self._position += 1
        adapter = self._statement.connection.adapter
        try:
            self._lookahead = self._next_row()
        except adapter.driver_errors as e:
            self.close()
            error = adapter.classify(e).with_context(sql=self._statement.sql, operation="iterator")
            if self._on_error is not None:
                self._on_error(error)
            raise error from e

    def has_more(self) -> bool:
        if not self._started:
            return False
        if self._lookahead is _END:
            self.close()
            return False
        return True

    def close(self) -> None:
        """Release the driver cursor; only the first call does anything."""
        if self._closed:
            return
        self._closed = True
        self._lookahead = _END
        self._statement.close_cursor()
        logger.debug("row_cursor_closed", rows=self._position)

    def __iter__(self) -> Iterator[Any]:
        if not self._started:
            self.start()
        while self.has_more():
            yield self.current()
            self.advance()

    def __enter__(self) -> RowCursor:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else ("open" if self._started else "pending")
        return f"RowCursor({self._statement.sql!r}, position={self._position}, {state})"


__all__ = ["RowCursor"]

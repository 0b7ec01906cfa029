"""
Protocol definitions for the capabilities querygate consumes.

The engine never imports a database driver, a log backend or a web
framework directly. It programs against these structural types:

- ``RawConnection`` / ``RawCursor``: the DB-API 2.0 subset the driver
  adapters rely on (``sqlite3``, ``psycopg2``, ``mysql.connector``).
- ``FailureSink``: durable failure log keyed by a caller-chosen key.
- ``FailChannel``: terminates the current request with a server error.
  Only configured when running inside a request-serving context.

Tags:
    protocol, connection, dbapi, contracts, querygate
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, NoReturn, Protocol, runtime_checkable


@runtime_checkable
class RawCursor(Protocol):
    """DB-API 2.0 cursor subset."""

    description: Sequence[Sequence[Any]] | None
    rowcount: int
    lastrowid: Any

    def execute(self, operation: str, parameters: Any = ...) -> Any:
        ...

    def fetchone(self) -> Any:
        ...

    def fetchall(self) -> list[Any]:
        ...

    def close(self) -> Any:
        ...


@runtime_checkable
class RawConnection(Protocol):
    """DB-API 2.0 connection subset."""

    def cursor(self, *args: Any, **kwargs: Any) -> Any:
        ...

    def commit(self) -> Any:
        ...

    def rollback(self) -> Any:
        ...

    def close(self) -> Any:
        ...


@runtime_checkable
class FailureSink(Protocol):
    """Durable failure log.

    ``write`` must not raise for ordinary I/O problems; nothing inspects
    its return value.
    """

    def write(self, message: str, key: str) -> None:
        ...


@runtime_checkable
class FailChannel(Protocol):
    """Terminates the current request with a server-error indication."""

    def report_fatal(self, message: str) -> NoReturn:
        ...


__all__ = [
    "RawCursor",
    "RawConnection",
    "FailureSink",
    "FailChannel",
]

"""querygate -- one connection, reconnect-on-disconnect, a small query surface.

Manifesto:
    Long-running workers and request handlers share the same failure:
    the database server drops an idle connection and the next query
    dies with "server has gone away". ``querygate`` wraps a single
    DB-API connection so that every call is re-run on a fresh
    connection when that happens, a bounded number of times, and never
    in the middle of a transaction.

    - **Bounded recovery:** at most ``retry_attempts`` reconnects in a row
    - **Array parameters:** ``IN (:ids)`` with a list just works
    - **Keyword dispatch:** rows, an affected count, or nothing
    - **Import-guarded drivers:** psycopg2 and mysql-connector are extras

Architecture::

    engine.py          Database: the public query surface
    recovery.py        Reconnect-and-retry controller
    params.py          Binding-mode detection, array expansion
    statement.py       Prepared statement over a DB-API cursor
    cursor.py          Lazy single-pass RowCursor
    dispatch.py        Leading-keyword classification
    adapters/          MySQL, PostgreSQL and SQLite adapters
    errors.py          Structured error hierarchy
    sinks.py           Failure log sinks
    web.py             FastAPI fail channel (``web`` extra)
    settings.py        QUERYGATE_* environment settings
    logging.py         structlog configuration

Examples:
    >>> from querygate import Database
    >>> db = Database.from_url("sqlite://")
    >>> db.single("SELECT 1 + 1")
    2
"""

__version__ = "0.1.0"

from querygate.adapters import DatabaseType, get_adapter
from querygate.cursor import RowCursor
from querygate.engine import Database
from querygate.errors import (
    ConfigError,
    ConnectError,
    CursorClosedError,
    DatabaseError,
    PermanentQueryError,
    QueryGateError,
    ShapeError,
    TransientDisconnectError,
)
from querygate.settings import DatabaseSettings
from querygate.sinks import FileFailureSink, StructlogFailureSink
from querygate.statement import FetchMode

__all__ = [
    "__version__",
    "Database",
    "DatabaseSettings",
    "DatabaseType",
    "FetchMode",
    "RowCursor",
    "get_adapter",
    # Sinks
    "FileFailureSink",
    "StructlogFailureSink",
    # Errors
    "QueryGateError",
    "ConfigError",
    "DatabaseError",
    "ConnectError",
    "TransientDisconnectError",
    "PermanentQueryError",
    "CursorClosedError",
    "ShapeError",
]

"""Driver adapters -- one handle interface over three DB-API drivers.

Each adapter is **import-guarded**: the database driver is only required
at ``connect()`` time, not at import time. Install the corresponding
extra::

    pip install querygate[postgresql]   # psycopg2-binary
    pip install querygate[mysql]        # mysql-connector-python

Architecture::

    DriverAdapter (base.py)          paramstyle, quoting, disconnect signatures
        |-- MySQLAdapter             mysql.connector (optional)
        |-- PostgreSQLAdapter        psycopg2 (optional)
        |-- SQLiteAdapter            stdlib sqlite3 (always available)
    DriverConnection (base.py)       The connection handle the engine owns

    AdapterRegistry (registry.py)    DatabaseType -> adapter class
    DatabaseConfig (types.py)        Connection parameters + DSN template
    DatabaseType (types.py)          Enum of supported backends
"""

from .base import DriverAdapter, DriverConnection, to_pyformat
from .mysql import MySQLAdapter
from .postgresql import PostgreSQLAdapter
from .registry import AdapterRegistry, adapter_registry, get_adapter
from .sqlite import SQLiteAdapter
from .types import DatabaseConfig, DatabaseType

__all__ = [
    # Types
    "DatabaseType",
    "DatabaseConfig",
    # Base classes
    "DriverAdapter",
    "DriverConnection",
    "to_pyformat",
    # Implementations
    "MySQLAdapter",
    "PostgreSQLAdapter",
    "SQLiteAdapter",
    # Registry
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]

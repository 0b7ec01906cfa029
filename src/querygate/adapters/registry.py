"""Adapter lookup by driver name.

``Database.from_url()`` and ``Database.from_settings()`` only know a
driver name (a URL scheme or ``QUERYGATE_DRIVER``), so they resolve the
adapter class here. Scheme spellings seen in the wild (``mariadb``,
``postgres``, ``pgsql``) are aliases of the three built-in adapters.

Tags:
    querygate, adapters, registry, url-scheme
"""

from __future__ import annotations

from typing import Any

from querygate.errors import ConfigError

from .base import DriverAdapter
from .mysql import MySQLAdapter
from .postgresql import PostgreSQLAdapter
from .sqlite import SQLiteAdapter
from .types import DatabaseType

_BUILTIN: dict[str, type[DriverAdapter]] = {
    "mysql": MySQLAdapter,
    "mariadb": MySQLAdapter,
    "postgresql": PostgreSQLAdapter,
    "postgres": PostgreSQLAdapter,
    "pgsql": PostgreSQLAdapter,
    "sqlite": SQLiteAdapter,
}


class AdapterRegistry:
    """Case-insensitive map from driver name to adapter class."""

    def __init__(self) -> None:
        self._adapters = dict(_BUILTIN)

    def register(self, name: str, adapter_class: type[DriverAdapter]) -> None:
        """Add or replace the adapter for ``name``."""
        self._adapters[name.lower()] = adapter_class

    def create(self, name: str, **kwargs: Any) -> DriverAdapter:
        """Instantiate the adapter for ``name`` with connection arguments."""
        adapter_class = self._adapters.get(name.lower())
        if adapter_class is None:
            raise ConfigError(f"Unknown database adapter: {name.lower()}")
        return adapter_class(**kwargs)

    def list_adapters(self) -> list[str]:
        return sorted(self._adapters)


adapter_registry = AdapterRegistry()


def get_adapter(db_type: DatabaseType | str, **kwargs: Any) -> DriverAdapter:
    """Build an adapter from a ``DatabaseType`` or a scheme name.

    Examples:
        >>> get_adapter(DatabaseType.SQLITE, path="app.db")
        SQLiteAdapter('sqlite:app.db')
        >>> get_adapter("mariadb", host="db.internal", database="shop")
        MySQLAdapter('mysql:host=db.internal;port=3306;dbname=shop;charset=utf8mb4;')
    """
    name = db_type.value if isinstance(db_type, DatabaseType) else db_type
    return adapter_registry.create(name, **kwargs)


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]

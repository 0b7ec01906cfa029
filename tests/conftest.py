"""
Shared pytest fixtures and configuration for querygate tests.

This module provides:
- A ready SQLite engine with a ``users`` table
- A recording failure sink
- A scripted adapter whose driver errors are fully under test control

Usage:
    Fixtures are auto-discovered by pytest. Use them as function
    arguments (pytest injects them automatically).

    def test_something(db, sink):
        ...
"""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any, Generator
from unittest.mock import MagicMock

import pytest

from querygate.adapters.base import DriverAdapter
from querygate.adapters.sqlite import SQLiteAdapter
from querygate.adapters.types import DatabaseConfig, DatabaseType
from querygate.engine import Database


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark every test without an explicit marker as a unit test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Sinks and drivers
# =============================================================================


class RecordingSink:
    """Failure sink that keeps every ``(message, key)`` pair in memory."""

    def __init__(self) -> None:
        self.entries: list[tuple[str, str]] = []

    def write(self, message: str, key: str) -> None:
        self.entries.append((message, key))

    @property
    def messages(self) -> list[str]:
        return [message for message, _ in self.entries]


class FakeDriverError(Exception):
    """Stands in for a DB-API ``Error`` class."""


class ScriptedAdapter(DriverAdapter):
    """Adapter over mock connections, with MySQL-style disconnect messages."""

    disconnect_signatures = ("server has gone away", "lost connection to mysql server")

    def __init__(self) -> None:
        super().__init__(DatabaseConfig(db_type=DatabaseType.MYSQL, database="shop", password="pw"))
        self.opened: list[MagicMock] = []

    def _load_driver(self) -> Any:
        return SimpleNamespace(Error=FakeDriverError)

    def _open(self) -> Any:
        raw = MagicMock(name=f"raw_connection_{len(self.opened)}")
        self.opened.append(raw)
        return raw


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def scripted_adapter() -> ScriptedAdapter:
    return ScriptedAdapter()


# =============================================================================
# Engines
# =============================================================================


USERS_DDL = """
    CREATE TABLE users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        age INTEGER
    )
"""


@pytest.fixture
def db(sink: RecordingSink) -> Generator[Database, None, None]:
    """In-memory SQLite engine with an empty ``users`` table."""
    engine = Database(SQLiteAdapter(":memory:"), sink=sink)
    engine.query(USERS_DDL)
    yield engine
    engine.close_connection()


@pytest.fixture
def file_db(tmp_path: Path, sink: RecordingSink) -> Generator[Database, None, None]:
    """File-backed SQLite engine; data survives a reconnect."""
    engine = Database(SQLiteAdapter(str(tmp_path / "app.db")), sink=sink)
    engine.query(USERS_DDL)
    yield engine
    engine.close_connection()


@pytest.fixture
def seeded_db(db: Database) -> Database:
    """``db`` with three users: ana (30), ben (25), cy (41)."""
    db.insert_multi(
        "users",
        [
            {"name": "ana", "age": 30},
            {"name": "ben", "age": 25},
            {"name": "cy", "age": 41},
        ],
    )
    return db

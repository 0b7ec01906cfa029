"""Tests for ``querygate.adapters.postgresql`` — PostgreSQL adapter."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from querygate.adapters.postgresql import PostgreSQLAdapter
from querygate.errors import ConnectError


class TestPostgreSQLAdapterInit:
    def test_default_config(self):
        adapter = PostgreSQLAdapter()
        assert adapter.db_type.value == "postgresql"
        assert adapter.config.resolved_port == 5432

    def test_custom_config(self):
        adapter = PostgreSQLAdapter(
            host="db.example.com",
            port=5433,
            database="events",
            username="admin",
            password="secret",
            sslmode="require",
        )
        assert adapter.config.options == {"sslmode": "require"}
        assert "dbname=events" in adapter.config.to_dsn()


class TestPostgreSQLAdapterConnect:
    @patch("psycopg2.connect")
    def test_connect_success(self, mock_connect):
        raw = MagicMock()
        mock_connect.return_value = raw

        adapter = PostgreSQLAdapter(host="localhost", database="events", username="app", sslmode="require")
        handle = adapter.connect()

        assert handle.raw is raw
        assert raw.autocommit is True
        kwargs = mock_connect.call_args.kwargs
        assert kwargs["dbname"] == "events"
        assert kwargs["user"] == "app"
        assert kwargs["sslmode"] == "require"
        assert kwargs["connect_timeout"] == 10

    @patch("psycopg2.connect")
    def test_connect_failure(self, mock_connect):
        import psycopg2

        mock_connect.side_effect = psycopg2.OperationalError("Connection refused")

        adapter = PostgreSQLAdapter(host="bad-host", database="events")
        with pytest.raises(ConnectError, match="Failed to connect") as exc_info:
            adapter.connect()
        assert exc_info.value.context.database == "events"

    def test_driver_errors(self):
        import psycopg2

        assert PostgreSQLAdapter().driver_errors == (psycopg2.Error,)


class TestPostgreSQLAdapterCursors:
    def test_buffered_cursor(self):
        raw = MagicMock()
        PostgreSQLAdapter().open_cursor(raw)
        raw.cursor.assert_called_once_with()

    def test_streaming_cursor_is_named(self):
        raw = MagicMock()
        PostgreSQLAdapter().open_cursor(raw, streaming=True)
        kwargs = raw.cursor.call_args.kwargs
        assert kwargs["name"].startswith("querygate_")
        assert kwargs["withhold"] is True


class TestPostgreSQLAdapterTransactions:
    @patch("psycopg2.connect")
    def test_begin_and_commit_toggle_autocommit(self, mock_connect):
        raw = MagicMock()
        mock_connect.return_value = raw
        handle = PostgreSQLAdapter(database="events").connect()

        handle.begin_transaction()
        assert raw.autocommit is False
        assert handle.in_transaction is True

        handle.commit()
        raw.commit.assert_called_once()
        assert raw.autocommit is True
        assert handle.in_transaction is False

    @patch("psycopg2.connect")
    def test_rollback_restores_autocommit_on_failure(self, mock_connect):
        import psycopg2

        raw = MagicMock()
        raw.rollback.side_effect = psycopg2.InterfaceError("connection already closed")
        mock_connect.return_value = raw
        handle = PostgreSQLAdapter(database="events").connect()
        handle.begin_transaction()

        with pytest.raises(psycopg2.InterfaceError):
            handle.rollback()
        assert raw.autocommit is True
        assert handle.in_transaction is False

    @patch("psycopg2.connect")
    def test_last_insert_id_uses_lastval(self, mock_connect):
        raw = MagicMock()
        raw.cursor.return_value.fetchone.return_value = (42,)
        mock_connect.return_value = raw
        handle = PostgreSQLAdapter(database="events").connect()

        assert handle.last_insert_id() == 42
        raw.cursor.return_value.execute.assert_called_once_with("SELECT lastval()")
        raw.cursor.return_value.close.assert_called_once()

    @patch("psycopg2.connect")
    def test_transaction_opened_with_sql(self, mock_connect):
        import psycopg2.extensions

        raw = MagicMock()
        raw.cursor.return_value.description = None
        raw.info.transaction_status = psycopg2.extensions.TRANSACTION_STATUS_INTRANS
        mock_connect.return_value = raw
        handle = PostgreSQLAdapter(database="events").connect()

        handle.prepare("BEGIN").execute()
        assert handle.in_transaction is True

        raw.info.transaction_status = psycopg2.extensions.TRANSACTION_STATUS_IDLE
        handle.prepare("COMMIT").execute()
        assert handle.in_transaction is False

    def test_failed_transaction_counts_as_open(self):
        import psycopg2.extensions

        raw = MagicMock()
        raw.info.transaction_status = psycopg2.extensions.TRANSACTION_STATUS_INERROR
        assert PostgreSQLAdapter().in_transaction(raw) is True

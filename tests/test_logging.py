"""
Tests for the logging module.

Tests verify:
- Context binding is scoped
- JSON output uses ECS-compatible field names
"""

import json
import logging

import pytest
import structlog

from querygate.logging import LogContext, bind_context, configure_logging, get_logger, unbind_context


@pytest.fixture
def reset_structlog():
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


class TestContext:
    """Test contextvars binding helpers."""

    def setup_method(self):
        structlog.contextvars.clear_contextvars()

    def test_bind_and_unbind(self):
        bind_context(database="shop")
        assert structlog.contextvars.get_contextvars() == {"database": "shop"}
        unbind_context("database")
        assert structlog.contextvars.get_contextvars() == {}

    def test_log_context_is_scoped(self):
        with LogContext(database="shop", request_id="abc123"):
            assert structlog.contextvars.get_contextvars()["request_id"] == "abc123"
        assert structlog.contextvars.get_contextvars() == {}


class TestConfigureLogging:
    """Test structlog configuration."""

    def test_json_format(self, caplog, reset_structlog):
        configure_logging(level="INFO", json_format=True, service="orders-api")
        with caplog.at_level(logging.INFO):
            get_logger("querygate.tests").error("query_failed", driver="mysql")

        payload = json.loads(caplog.records[-1].getMessage())
        assert payload["event"] == "query_failed"
        assert payload["driver"] == "mysql"
        assert payload["log.level"] == "error"
        assert payload["service.name"] == "orders-api"
        assert "@timestamp" in payload

    def test_level_filters_debug(self, caplog, reset_structlog):
        configure_logging(level="INFO", json_format=True)
        with caplog.at_level(logging.DEBUG):
            get_logger("querygate.tests").debug("connection_opened")
        assert not [r for r in caplog.records if "connection_opened" in r.getMessage()]

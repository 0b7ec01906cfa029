"""Tests for querygate.errors module."""

import pytest

from querygate.errors import (
    ConfigError,
    ConnectError,
    CursorClosedError,
    DatabaseError,
    ErrorCategory,
    ErrorContext,
    PermanentQueryError,
    QueryGateError,
    ShapeError,
    TransientDisconnectError,
    is_retryable,
)


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_empty_context_serializes_to_empty_dict(self):
        assert ErrorContext().to_dict() == {}

    def test_only_set_fields_serialized(self):
        ctx = ErrorContext(sql="SELECT 1", driver="mysql", metadata={"table": "users"})
        assert ctx.to_dict() == {"sql": "SELECT 1", "driver": "mysql", "table": "users"}


class TestHierarchy:
    """Test the error class tree and defaults."""

    @pytest.mark.parametrize(
        "error_type",
        [ConnectError, TransientDisconnectError, PermanentQueryError, CursorClosedError],
    )
    def test_database_errors(self, error_type):
        error = error_type("boom")
        assert isinstance(error, DatabaseError)
        assert isinstance(error, QueryGateError)
        assert error.category is ErrorCategory.DATABASE

    def test_only_disconnects_are_retryable(self):
        assert TransientDisconnectError("gone").retryable is True
        assert PermanentQueryError("syntax").retryable is False
        assert ConnectError("refused").retryable is False

    def test_shape_and_config_categories(self):
        assert ShapeError("bad").category is ErrorCategory.VALIDATION
        assert ConfigError("missing driver").category is ErrorCategory.CONFIG
        assert not isinstance(ShapeError("bad"), DatabaseError)

    def test_retryable_override(self):
        assert PermanentQueryError("deadlock", retryable=True).retryable is True


class TestQueryGateError:
    """Test the base error's context and serialization."""

    def test_with_context_is_fluent(self):
        error = PermanentQueryError("failed")
        assert error.with_context(sql="SELECT 1", operation="query") is error
        assert error.context.sql == "SELECT 1"
        assert error.context.operation == "query"

    def test_unknown_context_goes_to_metadata(self):
        error = PermanentQueryError("failed").with_context(table="users")
        assert error.context.metadata == {"table": "users"}

    def test_cause_is_chained(self):
        cause = OSError("socket closed")
        error = TransientDisconnectError("gone", cause=cause)
        assert error.__cause__ is cause

    def test_to_dict(self):
        error = TransientDisconnectError("gone", cause=OSError("socket closed")).with_context(driver="mysql")
        assert error.to_dict() == {
            "error_type": "TransientDisconnectError",
            "message": "gone",
            "category": "DATABASE",
            "retryable": True,
            "context": {"driver": "mysql"},
            "cause": "socket closed",
        }

    def test_repr(self):
        assert repr(ShapeError("bad")) == "ShapeError('bad', category=VALIDATION)"


class TestIsRetryable:
    def test_querygate_errors(self):
        assert is_retryable(TransientDisconnectError("gone")) is True
        assert is_retryable(PermanentQueryError("syntax")) is False

    def test_foreign_errors(self):
        assert is_retryable(ConnectionError("reset")) is False

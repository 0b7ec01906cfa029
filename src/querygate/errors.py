"""
Structured error types for querygate.

Every failure that leaves the engine is a ``QueryGateError`` subclass
carrying a category, an explicit retry flag, structured context and the
chained driver exception. The recovery controller decides whether to
reconnect purely from the error type, never from driver internals.

Manifesto:
    - **Two failure families:** transient disconnects are retried,
      everything else is permanent
    - **Explicit retry semantics:** each error knows if it is retryable
    - **Error chaining:** the driver exception is kept as ``cause``
    - **Shape errors stay local:** malformed input is rejected before a
      statement ever reaches the driver

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────┐
        │                     QueryGateError                        │
        │          (category, retryable, context, cause)            │
        ├──────────────────────────────────────────────────────────┤
        │  ConfigError        DatabaseError          ShapeError     │
        │  (CONFIG)           (DATABASE)             (VALIDATION)   │
        │                          │                                │
        │        ConnectError  TransientDisconnectError             │
        │        PermanentQueryError  CursorClosedError             │
        └──────────────────────────────────────────────────────────┘

Examples:
    >>> error = TransientDisconnectError("MySQL server has gone away")
    >>> error.retryable
    True
    >>> PermanentQueryError("syntax error").retryable
    False

Tags:
    error-handling, exception-hierarchy, retry-logic, querygate
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    DATABASE = "DATABASE"         # Driver, connection, query failures
    VALIDATION = "VALIDATION"     # Malformed parameters or write input
    CONFIG = "CONFIG"             # Missing driver, invalid settings
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only non-None fields are serialized by ``to_dict()``. Anything that
    does not fit a typed field goes into ``metadata``.
    """

    sql: str | None = None
    operation: str | None = None
    driver: str | None = None
    database: str | None = None
    attempt: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["sql", "operation", "driver", "database", "attempt"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class QueryGateError(Exception):
    """
    Base exception for all querygate errors.

    Subclasses set ``default_category`` and ``default_retryable`` so the
    common cases need nothing but a message.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> QueryGateError:
        """
        Add context to this error (fluent API).

        Usage:
            raise PermanentQueryError("Failed").with_context(
                sql="SELECT 1", operation="query"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(QueryGateError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(QueryGateError):
    """Database connection, query or cursor error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class ConnectError(DatabaseError):
    """A connection to the server could not be established."""


class TransientDisconnectError(DatabaseError):
    """
    The server-side connection was lost mid-operation.

    The client/server pair is otherwise healthy, so reconnecting and
    running the same logical operation again is expected to succeed.
    """

    default_retryable = True


class PermanentQueryError(DatabaseError):
    """Any other driver failure: syntax, constraint violation, permissions."""


class CursorClosedError(DatabaseError):
    """A row cursor was started again after it had been exhausted."""


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ShapeError(QueryGateError):
    """
    Malformed parameters or structured-write input.

    Raised before anything reaches the driver, so it is never routed
    through connection recovery.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, QueryGateError):
        return error.retryable
    return False


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "QueryGateError",
    "ConfigError",
    "DatabaseError",
    "ConnectError",
    "TransientDisconnectError",
    "PermanentQueryError",
    "CursorClosedError",
    "ShapeError",
    "is_retryable",
]

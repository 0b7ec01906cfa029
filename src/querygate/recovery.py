"""
Connection recovery: bounded reconnect-and-retry around one operation.

Every public engine call is captured as a zero-argument closure and run
through :meth:`RecoveryController.run`. When the driver reports that the
server connection was lost, the controller drops the handle and runs the
same closure again; the closure reconnects lazily and rewrites/binds its
original parameters from scratch.

Architecture:
    ::

        ┌──────────┐  transient disconnect, retryable op,   ┌──────────┐
        │ Healthy  │  no open transaction, retries < max    │ Retrying │
        │          │ ─────────────────────────────────────▶ │          │
        │          │ ◀───────────────────────────────────── │          │
        └──────────┘        operation completes              └──────────┘
              │                                                   │
              │ anything else                                     │ ceiling
              ▼                                                   ▼
        ┌──────────────────────────────────────────────────────────────┐
        │ Failed: raise, or report_fatal() on the fail channel          │
        └──────────────────────────────────────────────────────────────┘

Guardrails:
    - ``retry_count`` lives on the shared ``ConnectionState``, so repeated
      disconnects across different calls still hit the ceiling
    - Retries are disabled while a transaction is open; re-running a
      statement on a fresh connection would silently drop the rest of
      the transaction
    - The old handle is discarded before a new one can be opened

Tags:
    retry-logic, reconnect, state-machine, querygate
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from querygate.errors import DatabaseError, QueryGateError, TransientDisconnectError
from querygate.logging import get_logger
from querygate.protocols import FailChannel, FailureSink

if TYPE_CHECKING:
    from querygate.adapters.base import DriverAdapter, DriverConnection

T = TypeVar("T")

logger = get_logger(__name__)

DEFAULT_RETRY_ATTEMPTS = 3


@dataclass
class ConnectionState:
    """The handle one engine owns plus its reconnect budget."""

    handle: DriverConnection | None = None
    retry_count: int = 0

    @property
    def is_open(self) -> bool:
        return self.handle is not None

    @property
    def in_transaction(self) -> bool:
        return self.handle is not None and self.handle.in_transaction

    def invalidate(self) -> None:
        """Forget the current handle, closing it best-effort."""
        handle, self.handle = self.handle, None
        if handle is not None:
            handle.close()
            logger.debug("connection_invalidated", driver=handle.adapter.db_type.value)


class RecoveryController:
    """Runs captured operations, reconnecting on transient disconnects."""

    def __init__(
        self,
        state: ConnectionState,
        adapter: DriverAdapter,
        *,
        sink: FailureSink,
        log_key: str,
        fail_channel: FailChannel | None = None,
        auto_reconnect: bool = True,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
    ) -> None:
        self.state = state
        self.adapter = adapter
        self.sink = sink
        self.log_key = log_key
        self.fail_channel = fail_channel
        self.auto_reconnect = auto_reconnect
        self.retry_attempts = retry_attempts

    def run(
        self,
        operation: Callable[[], T],
        *,
        sql: str = "",
        name: str | None = None,
        retryable: bool = True,
    ) -> T:
        """Run ``operation`` until it succeeds or fails for good.

        Args:
            operation: The logical operation, capturing its own arguments.
            sql: Raw SQL for the failure log.
            name: Name of the public call, for logs and error context.
            retryable: Whether ``operation`` may be re-run after a reconnect.

        Raises:
            DatabaseError: The operation failed and was not (or no longer)
                retried. ``ShapeError`` and ``ConfigError`` pass through
                untouched.
        """
        while True:
            try:
                result = operation()
            except QueryGateError as e:
                if not isinstance(e, DatabaseError):
                    raise
                error = e
            except self.adapter.driver_errors as e:
                error = self.adapter.classify(e)
            else:
                self.state.retry_count = 0
                return result

            error.with_context(sql=sql or None, operation=name, attempt=self.state.retry_count + 1)
            self.record_failure(error, sql)

            if not self._should_retry(error, retryable):
                self._fail(error)

            self.state.invalidate()
            self.state.retry_count += 1
            self.sink.write(f"Retry {self.state.retry_count} times", self.log_key)
            logger.warning(
                "query_retry",
                attempt=self.state.retry_count,
                max_attempts=self.retry_attempts,
                operation=name,
            )

    def _should_retry(self, error: DatabaseError, retryable: bool) -> bool:
        return (
            self.auto_reconnect
            and retryable
            and isinstance(error, TransientDisconnectError)
            and not self.state.in_transaction
            and self.state.retry_count < self.retry_attempts
        )

    def record_failure(self, error: DatabaseError, sql: str) -> None:
        message = error.message
        if sql:
            message += f"\nRaw SQL : {sql}"
        self.sink.write(message, self.log_key)
        # The sink owns the error-level record
        logger.warning("query_failed", **error.to_dict())

    def _fail(self, error: DatabaseError) -> None:
        if self.fail_channel is not None and not self.state.in_transaction:
            self.fail_channel.report_fatal(error.message)
        raise error


__all__ = [
    "ConnectionState",
    "RecoveryController",
    "DEFAULT_RETRY_ATTEMPTS",
]

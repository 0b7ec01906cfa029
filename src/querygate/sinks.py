"""Failure sinks and the default fail channel.

``FileFailureSink`` appends one timestamped entry per failure to
``<directory>/<key>_<YYYY-MM-DD>.log``. ``StructlogFailureSink`` routes
the same messages through structlog for deployments that ship logs
elsewhere.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import NoReturn

from querygate.errors import DatabaseError
from querygate.logging import get_logger

logger = get_logger(__name__)


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class StructlogFailureSink:
    """Writes failure messages as structlog error events."""

    def write(self, message: str, key: str) -> None:
        logger.error("database_failure", message=message, key=key)


class FileFailureSink:
    """Appends failure messages to a dated log file per key."""

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str, when: datetime | None = None) -> Path:
        when = when or utcnow()
        return self.directory / f"{key}_{when:%Y-%m-%d}.log"

    def write(self, message: str, key: str) -> None:
        now = utcnow()
        path = self.path_for(key, now)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as fh:
                fh.write(f"[{now.isoformat()}] {message}\n")
        except OSError as e:
            logger.warning("failure_log_write_failed", path=str(path), error=str(e))


class RaisingFailChannel:
    """Fail channel that aborts the request by raising.

    Useful for request handlers that translate ``DatabaseError`` into a
    response themselves.
    """

    def report_fatal(self, message: str) -> NoReturn:
        raise DatabaseError(message)


__all__ = [
    "StructlogFailureSink",
    "FileFailureSink",
    "RaisingFailChannel",
]

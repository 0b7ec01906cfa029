"""
Fail channel for FastAPI request handlers.

Passing an ``HTTPFailChannel`` to :class:`~querygate.engine.Database`
marks the engine as running inside a request-serving context: permanent
failures abort the current request with ``500 Internal Server Error``
instead of bubbling up as ``DatabaseError``.

Requires the ``web`` extra::

    pip install querygate[web]
"""

from __future__ import annotations

from typing import NoReturn

from fastapi import HTTPException

FATAL_MESSAGE = "Unhandled Exception. {message} You can find the error back in the log."


class HTTPFailChannel:
    """Raises ``HTTPException(500)`` carrying a short, non-detailed message."""

    def __init__(self, *, expose_detail: bool = False) -> None:
        self.expose_detail = expose_detail

    def report_fatal(self, message: str) -> NoReturn:
        detail = FATAL_MESSAGE.format(message=message) if self.expose_detail else "Internal Server Error"
        raise HTTPException(
            status_code=500,
            detail=detail,
            # Failed database pages must not be indexed
            headers={"X-Robots-Tag": "noindex"},
        )


__all__ = ["HTTPFailChannel", "FATAL_MESSAGE"]

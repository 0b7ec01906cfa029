"""Statement dispatch by leading keyword.

Whether a statement yields rows or an affected-row count is decided from
its first word only. Some drivers cannot tell whether a result set exists
before the first fetch, so the cursor is never consulted.
"""

from __future__ import annotations

from enum import Enum

ROW_KEYWORDS = frozenset({"select", "show", "call", "describe"})
AFFECTED_KEYWORDS = frozenset({"insert", "update", "delete"})


class StatementKind(str, Enum):
    ROWS = "rows"
    AFFECTED = "affected"
    NONE = "none"


def leading_keyword(sql: str) -> str:
    """First whitespace-delimited word of ``sql``, lowercased."""
    words = sql.split(None, 1)
    return words[0].lower() if words else ""


def classify(sql: str) -> StatementKind:
    keyword = leading_keyword(sql)
    if keyword in ROW_KEYWORDS:
        return StatementKind.ROWS
    if keyword in AFFECTED_KEYWORDS:
        return StatementKind.AFFECTED
    return StatementKind.NONE


__all__ = [
    "StatementKind",
    "classify",
    "leading_keyword",
    "ROW_KEYWORDS",
    "AFFECTED_KEYWORDS",
]

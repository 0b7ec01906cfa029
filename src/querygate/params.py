"""
Parameter handling: binding-mode detection and array expansion.

Queries use two placeholder styles, never mixed in one call:

- **named** ``:name`` placeholders with a mapping ``{"name": value}``
- **positional** ``?`` placeholders with a sequence, or a mapping whose
  keys are ``0..n-1``

A named parameter whose value is a list or tuple is expanded into one
scalar placeholder per element, which is how ``IN (...)`` clauses are
written::

    >>> rewrite("SELECT * FROM t WHERE id IN (:ids)", {"ids": [3, 5]})
    ('SELECT * FROM t WHERE id IN (:ids_0, :ids_1)', {'ids_0': 3, 'ids_1': 5})

Expansion is a pure function of its inputs; the caller's query and
mapping are never mutated, so a retried operation can rewrite again from
the originals.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, Union

from querygate.errors import ShapeError

Params = Union[Mapping[str, Any], Mapping[int, Any], Sequence[Any], None]


class BindingMode(str, Enum):
    """How parameters are bound to a statement."""

    POSITIONAL = "positional"
    NAMED = "named"


def is_array(value: Any) -> bool:
    """Lists and tuples expand; strings and bytes are scalars."""
    return isinstance(value, (list, tuple))


def _is_sequence(params: Any) -> bool:
    return isinstance(params, Sequence) and not isinstance(params, (str, bytes, bytearray))


def binding_mode(params: Params) -> BindingMode:
    """Positional when ``params`` is a sequence or has key ``0``, else named."""
    if _is_sequence(params):
        return BindingMode.POSITIONAL
    if not params:
        return BindingMode.NAMED

    keys = list(params.keys())
    int_keys = [k for k in keys if isinstance(k, int)]
    if not int_keys:
        return BindingMode.NAMED
    if len(int_keys) != len(keys):
        raise ShapeError("Positional and named parameters cannot be mixed in one query")
    if sorted(int_keys) != list(range(len(int_keys))):
        raise ShapeError(f"Positional parameter keys must be contiguous from 0, got {sorted(int_keys)}")
    return BindingMode.POSITIONAL


def positional_values(params: Params) -> list[Any]:
    """Positional parameters as a list in placeholder order."""
    if not params:
        return []
    if _is_sequence(params):
        return list(params)
    return [params[i] for i in range(len(params))]


def named_values(params: Params) -> dict[str, Any]:
    """Named parameters keyed by bare name (a leading ``:`` is dropped)."""
    if not params:
        return {}
    return {str(key).lstrip(":"): value for key, value in params.items()}


def _placeholder_pattern(name: str) -> re.Pattern[str]:
    # ``:ids`` must not match ``:ids2`` or the ``::ids`` cast syntax
    return re.compile(rf"(?<![:\w]):{re.escape(name)}(?!\w)")


def rewrite(sql: str, params: Params) -> tuple[str, Params]:
    """Expand array-valued named parameters into scalar placeholders.

    Args:
        sql: Query text with ``:name`` placeholders.
        params: Parameter mapping or sequence.

    Returns:
        ``(sql, params)`` unchanged when no value is an array, otherwise a
        new query and a new mapping where each array entry ``name`` is
        replaced, in place, by ``name_0 .. name_<n-1>``.

    Raises:
        ShapeError: An array is empty (``IN ()`` is not valid SQL), an
            array is passed positionally, or a generated name collides
            with an existing parameter.
    """
    if not params:
        return sql, params

    values = params if _is_sequence(params) else params.values()
    if not any(is_array(v) for v in values):
        return sql, params

    if binding_mode(params) is BindingMode.POSITIONAL:
        raise ShapeError("Array parameters require named placeholders")

    source = named_values(params)
    expanded: dict[str, Any] = {}
    for name, value in source.items():
        if not is_array(value):
            expanded[name] = value
            continue
        if not value:
            raise ShapeError(f"Array parameter :{name} is empty; IN () is not valid SQL")

        generated = [f"{name}_{index}" for index in range(len(value))]
        for placeholder, element in zip(generated, value):
            if placeholder in source:
                raise ShapeError(f"Expanded placeholder :{placeholder} collides with an existing parameter")
            expanded[placeholder] = element

        replacement = ", ".join(f":{placeholder}" for placeholder in generated)
        sql = _placeholder_pattern(name).sub(lambda _m: replacement, sql)

    return sql, expanded


__all__ = [
    "Params",
    "BindingMode",
    "binding_mode",
    "is_array",
    "named_values",
    "positional_values",
    "rewrite",
]

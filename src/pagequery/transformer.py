"""Sanitized filters -> store-native predicate.

The native shape is a mapping of field -> ``{native_key: value}``::

    {"status": {"in": ["active", "pending"]},
     "name": {"contains": "ann", "mode": "insensitive"},
     "author": {"email": {"endsWith": "@example.com"}}}

Only call this on the output of :func:`pagequery.sanitizer.sanitize_filters`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .operators import NATIVE_KEYS, STRING_OPERATORS, FilterOperator, lookup_operator

_MISSING = object()


def transform_filters(filters: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for name, conditions in filters.items():
        if not isinstance(conditions, Mapping):
            result[name] = {"equals": conditions}
        elif is_condition(conditions):
            result[name] = _transform_condition(conditions)
        else:
            result[name] = transform_filters(conditions)
    return result


def is_condition(value: Mapping[str, Any]) -> bool:
    """True when every key of *value* is a filter operator token."""
    return bool(value) and all(lookup_operator(k) is not None for k in value)


def _transform_condition(conditions: Mapping[str, Any]) -> dict[str, Any]:
    native: dict[str, Any] = {}
    negated: Any = _MISSING

    for token, value in conditions.items():
        op = lookup_operator(token)
        if op is None or op is FilterOperator.MODE:
            continue
        if op is FilterOperator.NOT:
            negated = value
            continue
        native[NATIVE_KEYS[op]] = value

    # $not shares the "not" key with $ne and takes precedence over it.
    if negated is not _MISSING:
        if isinstance(negated, Mapping) and is_condition(negated):
            inner = _transform_condition(negated)
            if inner:
                native["not"] = inner
        else:
            native["not"] = {"equals": negated}

    mode = conditions.get(FilterOperator.MODE.value)
    if mode and any(op.value in conditions for op in STRING_OPERATORS):
        native["mode"] = mode
    return native

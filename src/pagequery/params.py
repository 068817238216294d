"""Parameter parsing: raw query-string items -> QueryParams.

Two encodings are accepted for ``filters`` and ``sort``:

* a single key holding a JSON object::

      ?filters={"status": {"$in": ["active", "pending"]}}&sort={"name": "asc"}

* bracketed keys, one condition per key::

      ?filters[status]=in:active,pending&filters[author][name]=contains:ann
      &sort[name]=asc

A JSON value that fails to decode (or is not an object) falls back to the
bracketed keys. Nothing in this module raises on client input.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .config import DEFAULT_CONFIG, PaginationConfig
from .operators import SET_OPERATORS, FilterOperator, lookup_operator

logger = logging.getLogger(__name__)

_BRACKET_PART = re.compile(r"\[([^\[\]]*)\]")
_NUMBER = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")
_INTEGER = re.compile(r"^\s*[+-]?\d+\s*$")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

# Deepest JSON nesting (or bracket path) accepted from a client.
_MAX_DEPTH = 32


@dataclass(frozen=True)
class QueryParams:
    """Parsed, not yet sanitized, pagination parameters."""

    page: int = 1
    items_per_page: int = 10
    filters: dict[str, Any] | None = None
    search: str | None = None
    sort: dict[str, Any] | None = None


def parse_query_params(
    raw: Any, *, config: PaginationConfig | None = None
) -> QueryParams:
    """Extract page, itemsPerPage, filters, sort and search from *raw*.

    Args:
        raw: A mapping of key -> value (or list of values), an iterable of
            ``(key, value)`` pairs, or any object with ``multi_items()``
            such as Starlette's ``QueryParams``.
        config: Key names and defaults; falls back to ``DEFAULT_CONFIG``.
    """
    cfg = config or DEFAULT_CONFIG
    items = _items(raw)

    filters = _json_object(_first(items, cfg.filters_key), cfg.filters_key)
    if filters is not None:
        filters = _normalize_json_filters(filters)
    else:
        filters = _bracketed_filters(items, cfg.filters_key)

    sort = _json_object(_first(items, cfg.sort_key), cfg.sort_key)
    if sort is not None:
        sort = {k: v for k, v in sort.items() if isinstance(k, str) and k}
    else:
        sort = _bracketed_sort(items, cfg.sort_key)

    search = _first(items, cfg.search_key)
    return QueryParams(
        page=_int_param(_first(items, cfg.page_key), cfg.default_page),
        items_per_page=_int_param(
            _first(items, cfg.items_per_page_key), cfg.default_items_per_page
        ),
        filters=filters or None,
        search=str(search) if search else None,
        sort=sort or None,
    )


# -- raw input --------------------------------------------------------------


def _items(raw: Any) -> list[tuple[str, Any]]:
    if raw is None:
        return []
    if hasattr(raw, "multi_items"):
        return list(raw.multi_items())
    if isinstance(raw, Mapping):
        out: list[tuple[str, Any]] = []
        for key, value in raw.items():
            if isinstance(value, (list, tuple)):
                out.extend((key, v) for v in value)
            else:
                out.append((key, value))
        return out
    if isinstance(raw, Iterable):
        return [(key, value) for key, value in raw]
    return []


def _first(items: list[tuple[str, Any]], key: str) -> Any:
    for k, v in items:
        if k == key:
            return v
    return None


def _int_param(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value))
    if match is None:
        return default
    try:
        return int(match.group(1))
    except ValueError:
        # Past the interpreter's int digit limit.
        return default


def _json_object(value: Any, key: str) -> dict[str, Any] | None:
    if isinstance(value, Mapping):
        data: Any = dict(value)
    elif not isinstance(value, str) or not value:
        return None
    else:
        try:
            data = json.loads(value)
        except (ValueError, RecursionError):
            logger.debug("Malformed JSON in %r, falling back to bracketed keys", key)
            return None
    if not isinstance(data, dict):
        logger.debug("JSON in %r is not an object, falling back to bracketed keys", key)
        return None
    if _too_deep(data):
        logger.debug("JSON in %r is nested too deeply, falling back to bracketed keys", key)
        return None
    return data


def _too_deep(data: Any) -> bool:
    stack = [(data, 1)]
    while stack:
        node, depth = stack.pop()
        if depth > _MAX_DEPTH:
            return True
        if isinstance(node, Mapping):
            stack.extend((child, depth + 1) for child in node.values())
        elif isinstance(node, (list, tuple)):
            stack.extend((child, depth + 1) for child in node)
    return False


def _bracket_path(key: str, prefix: str) -> list[str] | None:
    if not key.startswith(prefix + "["):
        return None
    rest = key[len(prefix) :]
    parts = _BRACKET_PART.findall(rest)
    # The whole remainder must be made of [...] groups.
    if not parts or "".join(f"[{p}]" for p in parts) != rest:
        return None
    if any(not p for p in parts) or len(parts) > _MAX_DEPTH:
        return None
    return parts


# -- filters ----------------------------------------------------------------


def _normalize_json_filters(data: Mapping[str, Any]) -> dict[str, Any]:
    """Keep known ``$`` operators; treat operator-less mappings as relations.

    Bare values become ``{"$eq": value}`` as in the bracketed form.
    """
    out: dict[str, Any] = {}
    for name, value in data.items():
        if not isinstance(name, str) or not name:
            continue
        if isinstance(value, Mapping):
            if any(isinstance(k, str) and k.startswith("$") for k in value):
                condition: dict[str, Any] = {}
                for token, operand in value.items():
                    op = lookup_operator(token)
                    if op is None:
                        logger.debug("Dropping unknown operator on field %r", name)
                        continue
                    condition[op.value] = operand
            else:
                condition = _normalize_json_filters(value)
            if condition:
                out[name] = condition
        else:
            out[name] = {FilterOperator.EQ.value: value}
    return out


def _bracketed_filters(items: list[tuple[str, Any]], prefix: str) -> dict[str, Any]:
    filters: dict[str, Any] = {}
    for key, value in items:
        path = _bracket_path(key, prefix)
        if path is None:
            continue
        op, operand = _split_operator(str(value))
        node = filters
        for part in path[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        condition = node.get(path[-1])
        if not isinstance(condition, dict):
            condition = node[path[-1]] = {}
        condition[op.value] = _coerce(operand, op)
    return filters


def _split_operator(value: str) -> tuple[FilterOperator, str]:
    """``"in:a,b"`` -> (IN, "a,b"); unknown prefixes are part of the operand."""
    if ":" in value:
        token, operand = value.split(":", 1)
        op = lookup_operator(token, allow_bare=True)
        if op is not None:
            return op, operand
    return FilterOperator.EQ, value


def _coerce(value: str, op: FilterOperator) -> Any:
    if op in SET_OPERATORS:
        return [_coerce_scalar(v.strip()) for v in value.split(",")]
    return _coerce_scalar(value)


def _coerce_scalar(value: str) -> Any:
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if _INTEGER.match(value):
        try:
            return int(value)
        except ValueError:
            return value
    if _NUMBER.match(value):
        return float(value)
    return value


# -- sort -------------------------------------------------------------------


def _bracketed_sort(items: list[tuple[str, Any]], prefix: str) -> dict[str, Any]:
    sort: dict[str, Any] = {}
    for key, value in items:
        path = _bracket_path(key, prefix)
        if path is None or len(path) != 1:
            continue
        sort[path[0]] = str(value).lower()
    return sort

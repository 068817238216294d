"""InMemoryStore: list-backed store evaluating native predicates in Python.

Useful for unit tests and for paginating data that is already loaded.
Records may be mappings or plain objects; relation filters follow nested
mappings/objects, and lists of related records match when any item does.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from ..exceptions import UnsupportedPredicateError
from .ports import NATIVE_CONDITION_KEYS, is_native_condition

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence


class InMemoryStore:
    """In-memory implementation of ``IPageStore``."""

    def __init__(self, records: Iterable[Any] = ()) -> None:
        self._records: list[Any] = list(records)

    def add(self, *records: Any) -> None:
        self._records.extend(records)

    async def count(self, predicate: Mapping[str, Any]) -> int:
        return sum(1 for r in self._records if matches(r, predicate))

    async def fetch(
        self,
        predicate: Mapping[str, Any],
        order_by: Mapping[str, str] | None,
        skip: int,
        take: int,
        options: Mapping[str, Any],
    ) -> list[Any]:
        rows = [r for r in self._records if matches(r, predicate)]
        if order_by:
            # Stable sorts applied from the least to the most significant key.
            for field, direction in reversed(list(order_by.items())):
                rows.sort(
                    key=lambda r, f=field: _sort_key(_get(r, f)),
                    reverse=direction == "desc",
                )
        rows = rows[skip : skip + take]
        select = options.get("select")
        if select:
            rows = [_project(r, select) for r in rows]
        return rows


# -- predicate evaluation ---------------------------------------------------


def matches(record: Any, predicate: Mapping[str, Any]) -> bool:
    """Return True when *record* satisfies every entry of *predicate*."""
    for key, value in predicate.items():
        if key == "AND":
            if not all(matches(record, p) for p in _as_list(value)):
                return False
        elif key == "OR":
            if not any(matches(record, p) for p in _as_list(value)):
                return False
        elif key == "NOT":
            if any(matches(record, p) for p in _as_list(value)):
                return False
        elif not _match_field(_get(record, key), value):
            return False
    return True


def _match_field(field_value: Any, value: Any) -> bool:
    if is_native_condition(value):
        return _evaluate(field_value, value)
    if isinstance(value, Mapping):
        # Relation filter.
        if field_value is None:
            return False
        if isinstance(field_value, (list, tuple, set)):
            return any(matches(item, value) for item in field_value)
        if isinstance(field_value, (str, bytes, int, float)):
            # A scalar cannot be traversed; the condition holds unknown keys.
            unknown = next(k for k in value if k not in NATIVE_CONDITION_KEYS)
            raise UnsupportedPredicateError(unknown, "InMemoryStore")
        return matches(field_value, value)
    return field_value == value


def _evaluate(field_value: Any, condition: Mapping[str, Any]) -> bool:
    insensitive = condition.get("mode") == "insensitive"
    for key, expected in condition.items():
        if key == "mode":
            continue
        if not _OPERATORS[key](field_value, expected, insensitive):
            return False
    return True


def _fold(value: Any, insensitive: bool) -> Any:
    if insensitive and isinstance(value, str):
        return value.casefold()
    return value


def _equals(actual: Any, expected: Any, insensitive: bool) -> bool:
    return _fold(actual, insensitive) == _fold(expected, insensitive)


def _not(actual: Any, expected: Any, insensitive: bool) -> bool:
    if is_native_condition(expected):
        return not _evaluate(actual, expected)
    return not _equals(actual, expected, insensitive)


def _compare(check: Callable[[Any, Any], bool]) -> Callable[[Any, Any, bool], bool]:
    def op(actual: Any, expected: Any, _insensitive: bool) -> bool:
        if actual is None or expected is None:
            return False
        try:
            return check(actual, expected)
        except TypeError:
            return False

    return op


def _in(actual: Any, expected: Any, insensitive: bool) -> bool:
    folded = _fold(actual, insensitive)
    return any(folded == _fold(v, insensitive) for v in _as_list(expected))


def _not_in(actual: Any, expected: Any, insensitive: bool) -> bool:
    return not _in(actual, expected, insensitive)


def _string(check: Callable[[str, str], bool]) -> Callable[[Any, Any, bool], bool]:
    def op(actual: Any, expected: Any, insensitive: bool) -> bool:
        if actual is None or expected is None:
            return False
        a, e = str(actual), str(expected)
        if insensitive:
            a, e = a.casefold(), e.casefold()
        return check(a, e)

    return op


def _is(actual: Any, expected: Any, _insensitive: bool) -> bool:
    if expected is None or expected is True or expected == "null":
        return actual is None
    if expected is False or expected == "not_null":
        return actual is not None
    return actual == expected


_OPERATORS: dict[str, Callable[[Any, Any, bool], bool]] = {
    "equals": _equals,
    "not": _not,
    "gt": _compare(lambda a, e: a > e),
    "gte": _compare(lambda a, e: a >= e),
    "lt": _compare(lambda a, e: a < e),
    "lte": _compare(lambda a, e: a <= e),
    "in": _in,
    "notIn": _not_in,
    "contains": _string(lambda a, e: e in a),
    "startsWith": _string(lambda a, e: a.startswith(e)),
    "endsWith": _string(lambda a, e: a.endswith(e)),
    "is": _is,
}


# -- helpers ----------------------------------------------------------------


def _get(record: Any, key: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(key)
    return getattr(record, key, None)


def _as_list(value: Any) -> Sequence[Any]:
    if isinstance(value, (list, tuple)):
        return value
    return [value]


def _sort_key(value: Any) -> tuple[int, str, Any]:
    # None sorts first, then numbers, then other values grouped by type.
    if value is None:
        return (0, "", 0)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, "", value)
    return (2, type(value).__name__, value)


def _project(record: Any, select: Any) -> Any:
    if not isinstance(record, Mapping):
        return record
    if isinstance(select, Mapping):
        fields = [name for name, keep in select.items() if keep]
    else:
        fields = list(select)
    return {name: record.get(name) for name in fields}

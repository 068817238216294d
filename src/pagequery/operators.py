from __future__ import annotations

from enum import Enum


class FilterOperator(str, Enum):
    """Operators a client may use in a filter condition."""

    # Comparison
    EQ = "$eq"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"
    NE = "$ne"

    # Set membership
    IN = "$in"
    NOT_IN = "$nin"

    # String matching
    CONTAINS = "$contains"
    STARTS_WITH = "$startsWith"
    ENDS_WITH = "$endsWith"
    MODE = "$mode"

    # Negation / null check
    NOT = "$not"
    IS = "$is"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


_BY_TOKEN: dict[str, FilterOperator] = {op.value: op for op in FilterOperator}

# Bracketed query parameters may omit the leading "$" (``in:a,b``).
_BY_BARE_TOKEN: dict[str, FilterOperator] = {
    op.value[1:]: op for op in FilterOperator
}

_DIRECTION_ALIASES: dict[str, SortDirection] = {
    "asc": SortDirection.ASC,
    "ascending": SortDirection.ASC,
    "desc": SortDirection.DESC,
    "descending": SortDirection.DESC,
}

SET_OPERATORS = frozenset({FilterOperator.IN, FilterOperator.NOT_IN})

STRING_OPERATORS = (
    FilterOperator.CONTAINS,
    FilterOperator.STARTS_WITH,
    FilterOperator.ENDS_WITH,
)

# Filter operator -> store-native predicate key.
NATIVE_KEYS: dict[FilterOperator, str] = {
    FilterOperator.EQ: "equals",
    FilterOperator.GT: "gt",
    FilterOperator.GTE: "gte",
    FilterOperator.LT: "lt",
    FilterOperator.LTE: "lte",
    FilterOperator.NE: "not",
    FilterOperator.IN: "in",
    FilterOperator.NOT_IN: "notIn",
    FilterOperator.CONTAINS: "contains",
    FilterOperator.STARTS_WITH: "startsWith",
    FilterOperator.ENDS_WITH: "endsWith",
    FilterOperator.MODE: "mode",
    FilterOperator.NOT: "not",
    FilterOperator.IS: "is",
}


def lookup_operator(token: object, *, allow_bare: bool = False) -> FilterOperator | None:
    """Return the operator named by *token*, or ``None`` when unknown."""
    if isinstance(token, FilterOperator):
        return token
    if not isinstance(token, str):
        return None
    op = _BY_TOKEN.get(token)
    if op is None and allow_bare:
        op = _BY_BARE_TOKEN.get(token)
    return op


def normalize_direction(value: object) -> SortDirection | None:
    """Case-insensitive direction lookup; ``None`` for anything unrecognised."""
    if isinstance(value, SortDirection):
        return value
    if not isinstance(value, str):
        return None
    return _DIRECTION_ALIASES.get(value.strip().lower())

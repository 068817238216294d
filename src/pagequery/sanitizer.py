"""Allow-list sanitization of client filters and sort.

Anything the policy does not explicitly allow is dropped without error:
an unlisted field may be a probing attempt and must not produce a
response that differs from "no filter applied".
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .operators import FilterOperator, SortDirection, lookup_operator, normalize_direction
from .policy import OperatorSet

if TYPE_CHECKING:
    from .policy import FieldPolicy, FieldRule, NestedPolicy

logger = logging.getLogger(__name__)


def sanitize_filters(
    policy: FieldPolicy | NestedPolicy, client_filters: Mapping[str, Any] | None
) -> dict[str, Any]:
    """Return the subset of *client_filters* allowed by *policy*.

    Bare scalar values are rewritten as ``{"$eq": value}`` when equality is
    allowed for the field.
    """
    if not client_filters or not isinstance(client_filters, Mapping):
        return {}
    return _sanitize_fields(policy.filterable, client_filters)


def _sanitize_fields(
    filterable: Mapping[str, FieldRule], client_filters: Mapping[str, Any]
) -> dict[str, Any]:
    sanitized: dict[str, Any] = {}
    for name, value in client_filters.items():
        rule = filterable.get(name) if isinstance(name, str) else None
        if rule is None:
            logger.debug("Dropping filter on non-filterable field %r", name)
            continue

        if isinstance(rule, OperatorSet):
            condition = _sanitize_condition(rule, value)
        elif isinstance(value, Mapping):
            condition = _sanitize_fields(rule.filterable, value)
        else:
            condition = {}

        if condition:
            sanitized[name] = condition
        else:
            logger.debug("Dropping filter on %r: no allowed operators", name)
    return sanitized


def _sanitize_condition(rule: OperatorSet, value: Any) -> dict[str, Any]:
    if not isinstance(value, Mapping):
        if rule.allows(FilterOperator.EQ):
            return {FilterOperator.EQ.value: value}
        return {}

    condition: dict[str, Any] = {}
    for token, operand in value.items():
        op = lookup_operator(token)
        if op is None or not rule.allows(op):
            continue
        if op is FilterOperator.NOT and isinstance(operand, Mapping):
            # The negated sub-condition is held to the same operator set.
            operand = _sanitize_condition(rule, operand)
            # A lone $mode negates nothing.
            if not any(k != FilterOperator.MODE.value for k in operand):
                continue
        condition[op.value] = operand
    return condition


def sanitize_sort(
    policy: FieldPolicy, client_sort: Mapping[str, Any] | None
) -> dict[str, str] | None:
    """Return ``{field: "asc" | "desc"}`` for sortable fields, or ``None``.

    A direction forced by the policy always wins over the client's.
    """
    if not client_sort or not isinstance(client_sort, Mapping):
        return None

    result: dict[str, str] = {}
    for name, direction in client_sort.items():
        rule = policy.sortable.get(name) if isinstance(name, str) else None
        if not rule:
            logger.debug("Dropping sort on non-sortable field %r", name)
            continue
        resolved = rule if isinstance(rule, SortDirection) else normalize_direction(direction)
        if resolved is None:
            logger.debug("Dropping sort on %r: invalid direction", name)
            continue
        result[name] = resolved.value
    return result or None

"""FieldPolicy: per-resource filterable/searchable/sortable allow-lists."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from .exceptions import PolicyError
from .operators import FilterOperator, SortDirection, lookup_operator, normalize_direction


@dataclass(frozen=True)
class OperatorSet:
    """Operators a client may apply to a scalar field."""

    operators: frozenset[FilterOperator] = frozenset()

    @classmethod
    def of(cls, *tokens: FilterOperator | str) -> OperatorSet:
        return cls(frozenset(_operator(token) for token in tokens))

    def allows(self, op: FilterOperator) -> bool:
        return op in self.operators


@dataclass(frozen=True)
class NestedPolicy:
    """Filterable fields of a related entity."""

    filterable: Mapping[str, FieldRule] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "filterable", _coerce_filterable(self.filterable))


FieldRule = Union[OperatorSet, NestedPolicy]

SortRule = Union[bool, SortDirection]


@dataclass(frozen=True)
class FieldPolicy:
    """Server-authored allow-lists for one resource.

    Raw declarations are coerced on construction, so a policy can be
    written with plain Python values::

        FieldPolicy(
            filterable={
                "status": ["$eq", "$in"],
                "author": {"name": ["$contains", "$mode"]},
            },
            searchable=["name", "email"],
            sortable={"created_at": True, "id": "DESC"},
        )

    A list of operator tokens becomes an :class:`OperatorSet`, a mapping
    becomes a :class:`NestedPolicy`, and a direction string forces that
    sort direction.
    """

    filterable: Mapping[str, FieldRule] = field(default_factory=dict)
    searchable: tuple[str, ...] = ()
    sortable: Mapping[str, SortRule] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "filterable", _coerce_filterable(self.filterable))
        object.__setattr__(self, "searchable", _coerce_searchable(self.searchable))
        object.__setattr__(self, "sortable", _coerce_sortable(self.sortable))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FieldPolicy:
        """Build a policy from ``{"filterable": ..., "searchable": ..., "sortable": ...}``."""
        unknown = set(data) - {"filterable", "searchable", "sortable"}
        if unknown:
            raise PolicyError(f"Unknown policy sections: {', '.join(sorted(unknown))}")
        return cls(
            filterable=data.get("filterable") or {},
            searchable=tuple(data.get("searchable") or ()),
            sortable=data.get("sortable") or {},
        )


def _operator(token: Any, field_name: str | None = None) -> FilterOperator:
    op = lookup_operator(token, allow_bare=True)
    if op is None:
        raise PolicyError(f"Unknown filter operator {token!r}", field=field_name)
    return op


def _coerce_rule(field_name: str, raw: Any) -> FieldRule:
    if isinstance(raw, (OperatorSet, NestedPolicy)):
        return raw
    if isinstance(raw, FieldPolicy):
        return NestedPolicy(filterable=raw.filterable)
    if isinstance(raw, Mapping):
        return NestedPolicy(filterable=raw)
    if isinstance(raw, Iterable) and not isinstance(raw, (str, bytes)):
        return OperatorSet(frozenset(_operator(token, field_name) for token in raw))
    raise PolicyError(
        f"Filter rule must be a list of operators or a nested policy, got {raw!r}",
        field=field_name,
    )


def _coerce_filterable(raw: Mapping[str, Any]) -> dict[str, FieldRule]:
    if not isinstance(raw, Mapping):
        raise PolicyError(f"filterable must be a mapping, got {type(raw).__name__}")
    return {name: _coerce_rule(name, rule) for name, rule in raw.items()}


def _coerce_searchable(raw: Iterable[str]) -> tuple[str, ...]:
    if isinstance(raw, str):
        raise PolicyError("searchable must be a sequence of field names, not a string")
    fields = tuple(dict.fromkeys(raw))
    for name in fields:
        if not isinstance(name, str) or not name:
            raise PolicyError(f"Invalid searchable field {name!r}")
    return fields


def _coerce_sortable(raw: Mapping[str, Any]) -> dict[str, SortRule]:
    if not isinstance(raw, Mapping):
        raise PolicyError(f"sortable must be a mapping, got {type(raw).__name__}")
    out: dict[str, SortRule] = {}
    for name, rule in raw.items():
        if isinstance(rule, bool):
            out[name] = rule
            continue
        direction = normalize_direction(rule)
        if direction is None:
            raise PolicyError(f"Invalid sort rule {rule!r}", field=name)
        out[name] = direction
    return out

"""
Compile a native predicate into a SQLAlchemy filter expression.

Field keys are resolved through the model's mapper only (mapped columns,
hybrid properties and relationships), never through arbitrary attribute
access. Relationship keys recurse into the related model and compile to
``has()`` for scalar relations or ``any()`` for collections.

Logical keys ``AND``, ``OR`` and ``NOT`` take a predicate or a list of
predicates; ``NOT`` matches when none of its predicates match.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import and_, asc, desc, false, inspect, not_, or_, true
from sqlalchemy.ext.hybrid import HybridExtensionType

from ...exceptions import UnsupportedPredicateError
from ..ports import is_native_condition
from .operators import DEFAULT_NATIVE_REGISTRY

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement

    from .operators import NativeOperatorRegistry


def build_filter(
    model: type[Any],
    predicate: Mapping[str, Any],
    *,
    registry: NativeOperatorRegistry | None = None,
) -> ColumnElement[bool]:
    """
    Build a SQLAlchemy boolean expression from a native predicate.

    Args:
        model: The SQLAlchemy model class.
        predicate: Native predicate (``{}`` matches every row).
        registry: Optional custom operator registry. Falls back to
            ``DEFAULT_NATIVE_REGISTRY``.

    Raises:
        UnsupportedPredicateError: Unknown field or native key.
    """
    reg = registry or DEFAULT_NATIVE_REGISTRY
    return _compile_node(model, predicate, reg)


def build_order_by(model: type[Any], order_by: Mapping[str, str] | None) -> list[Any]:
    """Translate ``{field: "asc" | "desc"}`` into ORDER BY clauses."""
    if not order_by:
        return []
    clauses: list[Any] = []
    for field, direction in order_by.items():
        column = _column(model, field)
        clauses.append(desc(column) if direction == "desc" else asc(column))
    return clauses


# ---------------------------------------------------------------------------
# Internal compilation
# ---------------------------------------------------------------------------


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _compile_node(
    model: type[Any],
    predicate: Mapping[str, Any],
    registry: NativeOperatorRegistry,
) -> ColumnElement[bool]:
    clauses: list[ColumnElement[bool]] = []
    for key, value in predicate.items():
        if key == "AND":
            clauses.append(
                and_(true(), *[_compile_node(model, p, registry) for p in _as_list(value)])
            )
        elif key == "OR":
            clauses.append(
                or_(false(), *[_compile_node(model, p, registry) for p in _as_list(value)])
            )
        elif key == "NOT":
            clauses.append(
                not_(or_(false(), *[_compile_node(model, p, registry) for p in _as_list(value)]))
            )
        else:
            clauses.append(_compile_field(model, key, value, registry))
    return and_(true(), *clauses)


def _compile_field(
    model: type[Any],
    key: str,
    value: Any,
    registry: NativeOperatorRegistry,
) -> ColumnElement[bool]:
    mapper = inspect(model)

    # Relationship traversal
    if key in mapper.relationships:
        if not isinstance(value, Mapping) or is_native_condition(value):
            raise UnsupportedPredicateError(key, model.__name__)
        relationship = mapper.relationships[key]
        inner = _compile_node(relationship.mapper.class_, value, registry)
        attr = getattr(model, key)
        if relationship.uselist:
            return cast("ColumnElement[bool]", attr.any(inner))
        return cast("ColumnElement[bool]", attr.has(inner))

    column = _column(model, key)
    if isinstance(value, Mapping):
        if not is_native_condition(value):
            raise UnsupportedPredicateError(key, model.__name__)
        return _compile_condition(column, value, registry, model.__name__)
    return cast("ColumnElement[bool]", column == value)


def _compile_condition(
    column: Any,
    condition: Mapping[str, Any],
    registry: NativeOperatorRegistry,
    model_name: str,
) -> ColumnElement[bool]:
    insensitive = condition.get("mode") == "insensitive"
    clauses: list[ColumnElement[bool]] = []
    for key, value in condition.items():
        if key == "mode":
            continue
        if key == "not" and isinstance(value, Mapping):
            clauses.append(not_(_compile_condition(column, value, registry, model_name)))
            continue
        op = registry.get(key)
        if op is None:
            raise UnsupportedPredicateError(key, model_name)
        clauses.append(op.apply(column, value, insensitive=insensitive))
    return and_(true(), *clauses)


def _column(model: type[Any], key: str) -> Any:
    mapper = inspect(model)
    if key in mapper.column_attrs:
        return getattr(model, key)
    if key in mapper.all_orm_descriptors:
        descriptor = mapper.all_orm_descriptors[key]
        if getattr(descriptor, "extension_type", None) is HybridExtensionType.HYBRID_PROPERTY:
            return getattr(model, key)
    raise UnsupportedPredicateError(key, model.__name__)

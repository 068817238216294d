"""
Native predicate keys compiled to SQLAlchemy expressions.

Each key of a native field condition (``equals``, ``in``, ``contains`` ...)
is an isolated ``NativeOperator`` registered in a ``NativeOperatorRegistry``.
``mode="insensitive"`` on the same condition is passed to every operator;
the string and equality operators honour it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import func

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement


class NativeOperator(ABC):
    """Strategy compiling one native predicate key for a column."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The native key this strategy handles."""
        ...

    @abstractmethod
    def apply(
        self,
        column: Any,
        value: Any,
        *,
        insensitive: bool = False,
    ) -> ColumnElement[bool]:
        """Build a SQLAlchemy filter clause for *column*."""
        ...


class NativeOperatorRegistry:
    def __init__(self) -> None:
        self._operators: dict[str, NativeOperator] = {}

    def register(self, operator: NativeOperator) -> None:
        self._operators[operator.name] = operator

    def register_all(self, *operators: NativeOperator) -> None:
        for op in operators:
            self.register(op)

    def get(self, name: str) -> NativeOperator | None:
        return self._operators.get(name)

    def has(self, name: str) -> bool:
        return name in self._operators

    @property
    def supported_keys(self) -> set[str]:
        return set(self._operators.keys())


def _lower_if(column: Any, value: Any, insensitive: bool) -> tuple[Any, Any]:
    if insensitive and isinstance(value, str):
        return func.lower(column), value.lower()
    return column, value


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


class EqualsOperator(NativeOperator):
    @property
    def name(self) -> str:
        return "equals"

    def apply(self, column: Any, value: Any, *, insensitive: bool = False) -> ColumnElement[bool]:
        left, right = _lower_if(column, value, insensitive)
        return cast("ColumnElement[bool]", left == right)


class GreaterThanOperator(NativeOperator):
    @property
    def name(self) -> str:
        return "gt"

    def apply(self, column: Any, value: Any, *, insensitive: bool = False) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column > value)


class GreaterEqualOperator(NativeOperator):
    @property
    def name(self) -> str:
        return "gte"

    def apply(self, column: Any, value: Any, *, insensitive: bool = False) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column >= value)


class LessThanOperator(NativeOperator):
    @property
    def name(self) -> str:
        return "lt"

    def apply(self, column: Any, value: Any, *, insensitive: bool = False) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column < value)


class LessEqualOperator(NativeOperator):
    @property
    def name(self) -> str:
        return "lte"

    def apply(self, column: Any, value: Any, *, insensitive: bool = False) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column <= value)


class InOperator(NativeOperator):
    @property
    def name(self) -> str:
        return "in"

    def apply(self, column: Any, value: Any, *, insensitive: bool = False) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.in_(_as_list(value)))


class NotInOperator(NativeOperator):
    @property
    def name(self) -> str:
        return "notIn"

    def apply(self, column: Any, value: Any, *, insensitive: bool = False) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.not_in(_as_list(value)))


class ContainsOperator(NativeOperator):
    @property
    def name(self) -> str:
        return "contains"

    def apply(self, column: Any, value: Any, *, insensitive: bool = False) -> ColumnElement[bool]:
        if insensitive:
            return cast("ColumnElement[bool]", column.icontains(str(value), autoescape=True))
        return cast("ColumnElement[bool]", column.contains(str(value), autoescape=True))


class StartsWithOperator(NativeOperator):
    @property
    def name(self) -> str:
        return "startsWith"

    def apply(self, column: Any, value: Any, *, insensitive: bool = False) -> ColumnElement[bool]:
        if insensitive:
            return cast("ColumnElement[bool]", column.istartswith(str(value), autoescape=True))
        return cast("ColumnElement[bool]", column.startswith(str(value), autoescape=True))


class EndsWithOperator(NativeOperator):
    @property
    def name(self) -> str:
        return "endsWith"

    def apply(self, column: Any, value: Any, *, insensitive: bool = False) -> ColumnElement[bool]:
        if insensitive:
            return cast("ColumnElement[bool]", column.iendswith(str(value), autoescape=True))
        return cast("ColumnElement[bool]", column.endswith(str(value), autoescape=True))


class IsOperator(NativeOperator):
    """Null check: ``None``/``"null"``/``True`` -> IS NULL,
    ``"not_null"``/``False`` -> IS NOT NULL."""

    @property
    def name(self) -> str:
        return "is"

    def apply(self, column: Any, value: Any, *, insensitive: bool = False) -> ColumnElement[bool]:
        if value is None or value is True or value == "null":
            return cast("ColumnElement[bool]", column.is_(None))
        if value is False or value == "not_null":
            return cast("ColumnElement[bool]", column.is_not(None))
        return cast("ColumnElement[bool]", column == value)


class NotOperator(NativeOperator):
    """Scalar inequality. A nested ``not: {...}`` condition is negated by the
    compiler before it reaches the registry."""

    @property
    def name(self) -> str:
        return "not"

    def apply(self, column: Any, value: Any, *, insensitive: bool = False) -> ColumnElement[bool]:
        left, right = _lower_if(column, value, insensitive)
        return cast("ColumnElement[bool]", left != right)


def build_default_native_registry() -> NativeOperatorRegistry:
    """Create a registry with all built-in native operators."""
    registry = NativeOperatorRegistry()
    registry.register_all(
        EqualsOperator(),
        GreaterThanOperator(),
        GreaterEqualOperator(),
        LessThanOperator(),
        LessEqualOperator(),
        InOperator(),
        NotInOperator(),
        ContainsOperator(),
        StartsWithOperator(),
        EndsWithOperator(),
        IsOperator(),
        NotOperator(),
    )
    return registry


DEFAULT_NATIVE_REGISTRY: NativeOperatorRegistry = build_default_native_registry()

"""IPageStore: protocol for the store driver behind the paginator."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

# Keys allowed inside a native field condition.
NATIVE_CONDITION_KEYS = frozenset(
    {
        "equals",
        "not",
        "gt",
        "gte",
        "lt",
        "lte",
        "in",
        "notIn",
        "contains",
        "startsWith",
        "endsWith",
        "mode",
        "is",
    }
)


def is_native_condition(value: Any) -> bool:
    """True for ``{native_key: value}`` mappings, False for relation filters."""
    return isinstance(value, Mapping) and all(k in NATIVE_CONDITION_KEYS for k in value)


@runtime_checkable
class IPageStore(Protocol):
    """Count and fetch records of one resource.

    ``predicate`` and ``order_by`` are in the native shape produced by
    :mod:`pagequery.transformer` and :mod:`pagequery.sanitizer`. Errors
    raised by the underlying driver propagate to the caller untouched.
    """

    async def count(self, predicate: Mapping[str, Any]) -> int:
        """Return the number of records matching *predicate*."""
        ...

    async def fetch(
        self,
        predicate: Mapping[str, Any],
        order_by: Mapping[str, str] | None,
        skip: int,
        take: int,
        options: Mapping[str, Any],
    ) -> Sequence[Any]:
        """Return at most *take* matching records after skipping *skip*.

        ``options`` carries extra base-query entries such as ``select``
        or ``include``.
        """
        ...

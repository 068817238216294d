from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlalchemy.orm import load_only, selectinload

from ...exceptions import UnsupportedPredicateError
from ..engine import get_engine_handle
from .compiler import build_filter, build_order_by

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.ext.asyncio import AsyncSession

    from .operators import NativeOperatorRegistry

    AsyncSessionFactory = Callable[[], AsyncSession]


class SQLAlchemyStore:
    """
    ``IPageStore`` implementation over one SQLAlchemy model.

    Each call opens its own session from ``session_factory`` (defaulting to
    the process-wide :func:`~pagequery.store.engine.get_engine_handle`),
    so ``count`` and ``fetch`` never share transaction state.

    ``fetch`` options:

    - ``select``: field names (or ``{name: True}``) to load, via ``load_only``;
    - ``include``: relationship names (or ``{name: True}``) to eager-load,
      via ``selectinload``.
    """

    def __init__(
        self,
        model: type[Any],
        session_factory: AsyncSessionFactory | None = None,
        *,
        registry: NativeOperatorRegistry | None = None,
    ) -> None:
        self.model = model
        self._session_factory = session_factory
        self._registry = registry

    def _sessions(self) -> AsyncSessionFactory:
        if self._session_factory is not None:
            return self._session_factory
        return get_engine_handle().session_factory()

    async def count(self, predicate: Mapping[str, Any]) -> int:
        stmt = (
            select(func.count())
            .select_from(self.model)
            .where(build_filter(self.model, predicate, registry=self._registry))
        )
        factory = self._sessions()
        async with factory() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    async def fetch(
        self,
        predicate: Mapping[str, Any],
        order_by: Mapping[str, str] | None,
        skip: int,
        take: int,
        options: Mapping[str, Any],
    ) -> list[Any]:
        stmt = select(self.model).where(
            build_filter(self.model, predicate, registry=self._registry)
        )
        order_clauses = build_order_by(self.model, order_by)
        if order_clauses:
            stmt = stmt.order_by(*order_clauses)
        stmt = stmt.offset(skip).limit(take)

        selected = _names(options.get("select"))
        if selected:
            stmt = stmt.options(load_only(*[self._attr(n) for n in selected]))
        for name in _names(options.get("include")):
            stmt = stmt.options(selectinload(self._attr(name)))

        factory = self._sessions()
        async with factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    def _attr(self, name: str) -> Any:
        attr = getattr(self.model, name, None)
        if attr is None or name.startswith("_"):
            raise UnsupportedPredicateError(name, self.model.__name__)
        return attr


def _names(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, Mapping):
        return [name for name, keep in value.items() if keep]
    if isinstance(value, str):
        return [value]
    return list(value)

"""Paginator: sanitize, transform, count and fetch one page of records."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .config import DEFAULT_CONFIG, PaginationConfig
from .params import QueryParams, parse_query_params
from .sanitizer import sanitize_filters, sanitize_sort
from .transformer import transform_filters

if TYPE_CHECKING:
    from .policy import FieldPolicy
    from .store.ports import IPageStore

logger = logging.getLogger(__name__)

# Base-query entries owned by the paginator; everything else is passed
# to the store verbatim.
_RESERVED_KEYS = ("where", "orderBy", "skip", "take")


class PageMeta(BaseModel):
    """Descriptive envelope returned alongside a page of records.

    ``filters`` and ``sorts`` hold what was actually honoured after
    sanitization, not what the client sent.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    current_page: int
    items_per_page: int
    total_pages: int
    total_items: int
    filters: dict[str, Any] = Field(default_factory=dict)
    sorts: dict[str, str] = Field(default_factory=dict)
    search: str = ""

    def to_dict(self) -> dict[str, Any]:
        """camelCase representation for the HTTP layer."""
        return self.model_dump(by_alias=True)


class Page(NamedTuple):
    records: list[Any]
    meta: PageMeta


def and_predicates(*predicates: Mapping[str, Any] | None) -> dict[str, Any]:
    """Combine native predicates so that all of them apply."""
    clauses = [dict(p) for p in predicates if p]
    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"AND": clauses}


def search_clause(search: str, fields: Sequence[str]) -> dict[str, Any]:
    """Case-insensitive OR-group: *search* contained in any of *fields*."""
    return {
        "OR": [
            {field: {"contains": search, "mode": "insensitive"}} for field in fields
        ]
    }


async def paginate(
    store: IPageStore,
    base_query: Mapping[str, Any] | None,
    policy: FieldPolicy,
    params: QueryParams,
    *,
    config: PaginationConfig | None = None,
) -> Page:
    """Fetch one page of *store* records.

    Args:
        store: Store driver for the resource being listed.
        base_query: Server-side query. ``where`` is ANDed with the client
            filters; entries other than ``where``/``orderBy``/``skip``/
            ``take`` (e.g. ``select``, ``include``) go to the store as-is.
        policy: Allow-lists for the resource.
        params: Parsed client parameters.
        config: Optional page-size ceiling; defaults to ``DEFAULT_CONFIG``.

    Returns:
        ``Page(records, meta)``. Store errors propagate unchanged.
    """
    cfg = config or DEFAULT_CONFIG
    base = dict(base_query or {})

    current_page = max(1, params.page)
    items_per_page = max(1, params.items_per_page)
    if cfg.max_items_per_page is not None:
        items_per_page = min(items_per_page, max(1, cfg.max_items_per_page))
    offset = (current_page - 1) * items_per_page

    sanitized_filters = sanitize_filters(policy, params.filters)
    search = params.search or ""
    where = and_predicates(
        base.get("where"),
        transform_filters(sanitized_filters),
        search_clause(search, policy.searchable)
        if search and policy.searchable
        else None,
    )
    order_by = sanitize_sort(policy, params.sort)
    options = {k: v for k, v in base.items() if k not in _RESERVED_KEYS}

    total_items = await store.count(where)
    records = await store.fetch(where, order_by, offset, items_per_page, options)

    meta = PageMeta(
        current_page=current_page,
        items_per_page=items_per_page,
        total_pages=math.ceil(total_items / items_per_page),
        total_items=total_items,
        filters=sanitized_filters,
        sorts=order_by or {},
        search=search,
    )
    logger.debug(
        "Fetched page %d (%d/%d items, %d total)",
        current_page,
        len(records),
        items_per_page,
        total_items,
    )
    return Page(list(records), meta)


class Paginator:
    """Binds a store, policy and base query for reuse across requests.

    Example::

        users = Paginator(
            SQLAlchemyStore(User, handle.session_factory()),
            USER_POLICY,
            base_query={"where": {"deleted": {"equals": False}}},
        )
        records, meta = await users.paginate_raw(request.query_params)
    """

    def __init__(
        self,
        store: IPageStore,
        policy: FieldPolicy,
        *,
        base_query: Mapping[str, Any] | None = None,
        config: PaginationConfig | None = None,
    ) -> None:
        self._store = store
        self._policy = policy
        self._base_query = dict(base_query or {})
        self._config = config or DEFAULT_CONFIG

    @property
    def policy(self) -> FieldPolicy:
        return self._policy

    async def paginate(
        self,
        params: QueryParams,
        *,
        where: Mapping[str, Any] | None = None,
    ) -> Page:
        """Paginate with the bound base query, ANDed with an optional
        per-request *where* (tenant or owner scoping)."""
        base_query = self._base_query
        if where:
            base_query = {
                **self._base_query,
                "where": and_predicates(self._base_query.get("where"), where),
            }
        return await paginate(
            self._store, base_query, self._policy, params, config=self._config
        )

    async def paginate_raw(
        self,
        raw: Any,
        *,
        where: Mapping[str, Any] | None = None,
    ) -> Page:
        """Parse raw query parameters, then paginate."""
        params = parse_query_params(raw, config=self._config)
        return await self.paginate(params, where=where)

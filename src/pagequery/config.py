"""Pagination defaults and query-parameter key names."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PaginationConfig:
    """Pagination configuration.

    Attributes:
        default_page: Page used when ``page`` is missing or unparseable.
        default_items_per_page: Page size used when ``itemsPerPage`` is
            missing or unparseable.
        max_items_per_page: Optional ceiling applied after clamping;
            ``None`` leaves the page size unbounded.
        page_key: Query key holding the page number.
        items_per_page_key: Query key holding the page size.
        filters_key: Query key (and bracket prefix) for filters.
        sort_key: Query key (and bracket prefix) for sorting.
        search_key: Query key holding the free-text search string.
    """

    default_page: int = 1
    default_items_per_page: int = 10
    max_items_per_page: int | None = None
    page_key: str = "page"
    items_per_page_key: str = "itemsPerPage"
    filters_key: str = "filters"
    sort_key: str = "sort"
    search_key: str = "search"


DEFAULT_CONFIG = PaginationConfig()

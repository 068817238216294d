"""Allow-listed filter, sort, search and pagination for untrusted query parameters."""

from __future__ import annotations

from .config import DEFAULT_CONFIG, PaginationConfig
from .exceptions import (
    InfrastructureError,
    PageQueryError,
    PolicyError,
    StoreNotConfiguredError,
    UnsupportedPredicateError,
)
from .operators import FilterOperator, SortDirection
from .paginator import Page, PageMeta, Paginator, and_predicates, paginate, search_clause
from .params import QueryParams, parse_query_params
from .policy import FieldPolicy, NestedPolicy, OperatorSet
from .sanitizer import sanitize_filters, sanitize_sort
from .store import InMemoryStore, IPageStore
from .transformer import transform_filters

__all__ = [
    "DEFAULT_CONFIG",
    "FieldPolicy",
    "FilterOperator",
    "IPageStore",
    "InMemoryStore",
    "InfrastructureError",
    "NestedPolicy",
    "OperatorSet",
    "Page",
    "PageMeta",
    "PageQueryError",
    "PaginationConfig",
    "Paginator",
    "PolicyError",
    "QueryParams",
    "SortDirection",
    "StoreNotConfiguredError",
    "UnsupportedPredicateError",
    "and_predicates",
    "paginate",
    "parse_query_params",
    "sanitize_filters",
    "sanitize_sort",
    "search_clause",
    "transform_filters",
]

"""SQLAlchemy store: native predicates compiled to SQL."""

from __future__ import annotations

from .compiler import build_filter, build_order_by
from .operators import (
    DEFAULT_NATIVE_REGISTRY,
    NativeOperator,
    NativeOperatorRegistry,
    build_default_native_registry,
)
from .store import SQLAlchemyStore

__all__ = [
    "DEFAULT_NATIVE_REGISTRY",
    "NativeOperator",
    "NativeOperatorRegistry",
    "SQLAlchemyStore",
    "build_default_native_registry",
    "build_filter",
    "build_order_by",
]

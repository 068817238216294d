"""Store drivers behind the paginator.

``pagequery.store.engine`` and ``pagequery.store.sqla`` require SQLAlchemy
and are imported explicitly.
"""

from __future__ import annotations

from .memory import InMemoryStore
from .ports import NATIVE_CONDITION_KEYS, IPageStore, is_native_condition

__all__ = [
    "IPageStore",
    "InMemoryStore",
    "NATIVE_CONDITION_KEYS",
    "is_native_condition",
]

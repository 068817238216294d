"""
Process-wide store connection handle.

The SQLAlchemy ``AsyncEngine`` (and its connection pool) is created on
first use and reused for the life of the process. Concurrent requests
share it under SQLAlchemy's own pooling rules; the handle adds no
coordination beyond guarding the one-time construction.

Usage::

    handle = get_engine_handle()          # reads DATABASE_URL
    store = SQLAlchemyStore(User, handle.session_factory())
    ...
    await handle.dispose()                # at shutdown
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from ..exceptions import StoreNotConfiguredError

logger = logging.getLogger(__name__)

DATABASE_URL_ENV = "DATABASE_URL"


class EngineHandle:
    """Lazily constructed, cached ``AsyncEngine``.

    Args:
        url: Database URL. Falls back to the ``DATABASE_URL`` environment
            variable at first use.
        **engine_kwargs: Passed to ``create_async_engine``.
    """

    def __init__(self, url: str | None = None, **engine_kwargs: Any) -> None:
        self._url = url
        self._engine_kwargs = engine_kwargs
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[Any] | None = None
        self._lock = threading.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    def get(self) -> AsyncEngine:
        """Return the engine, creating it on first call."""
        engine = self._engine
        if engine is not None:
            return engine
        with self._lock:
            if self._engine is None:
                url = self._url or os.environ.get(DATABASE_URL_ENV)
                if not url:
                    raise StoreNotConfiguredError(
                        f"No database URL given and {DATABASE_URL_ENV} is not set"
                    )
                self._engine = create_async_engine(url, **self._engine_kwargs)
                logger.info(
                    "Created store engine for %s",
                    make_url(url).render_as_string(hide_password=True),
                )
            return self._engine

    def session_factory(self) -> async_sessionmaker[Any]:
        """Return a cached ``async_sessionmaker`` bound to the engine."""
        factory = self._session_factory
        if factory is not None:
            return factory
        engine = self.get()
        with self._lock:
            if self._session_factory is None:
                self._session_factory = async_sessionmaker(engine, expire_on_commit=False)
            return self._session_factory

    async def dispose(self) -> None:
        """Close the pool. A later :meth:`get` builds a fresh engine."""
        with self._lock:
            engine, self._engine = self._engine, None
            self._session_factory = None
        if engine is not None:
            await engine.dispose()
            logger.info("Disposed store engine")


_default_handle = EngineHandle()


def get_engine_handle() -> EngineHandle:
    """Return the process-wide default handle."""
    return _default_handle

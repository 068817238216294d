"""Exception hierarchy for pagequery.

Client input never raises: malformed or disallowed parameters are dropped
or replaced by defaults. The exceptions below signal mistakes made by the
server side (policy authoring, store configuration, hand-written base
queries). Store driver failures are not wrapped and reach the caller as-is.
"""

from __future__ import annotations

from typing import Any


class PageQueryError(Exception):
    """Root exception for the entire pagequery package."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class PolicyError(PageQueryError):
    """Raised when a field policy declaration is invalid."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "POLICY_ERROR",
            "message": self.message,
            "field": self.field,
        }


class InfrastructureError(PageQueryError):
    """Base class for all store-side errors raised by pagequery itself."""


class StoreNotConfiguredError(InfrastructureError):
    """Raised when the store handle has no database URL to connect to."""


class UnsupportedPredicateError(InfrastructureError):
    """Raised when a native predicate cannot be compiled for the store.

    Sanitized client filters never trigger this; it surfaces mistakes in
    hand-written base queries (unknown columns or predicate keys).
    """

    def __init__(self, key: str, model_name: str) -> None:
        self.key = key
        self.model_name = model_name
        super().__init__(f"Cannot compile predicate key {key!r} on {model_name!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "UNSUPPORTED_PREDICATE",
            "key": self.key,
            "model": self.model_name,
        }

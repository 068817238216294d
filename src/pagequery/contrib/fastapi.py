"""FastAPI dependencies delivering parsed pagination parameters.

Example:
    ```python
    from fastapi import APIRouter
    from pagequery.contrib.fastapi import QueryParamsDep

    router = APIRouter()

    @router.get("/users")
    async def list_users(params: QueryParamsDep):
        records, meta = await users.paginate(params)
        return {"data": records, "meta": meta.to_dict()}
    ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, Request

from ..params import QueryParams, parse_query_params

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..config import PaginationConfig


def get_query_params(request: Request) -> QueryParams:
    """Parse ``request.query_params`` with the default configuration.

    Never raises: malformed values fall back to defaults.
    """
    return parse_query_params(request.query_params)


def query_params_dependency(config: PaginationConfig) -> Callable[[Request], QueryParams]:
    """Create a dependency parsing with custom key names or defaults."""

    def dependency(request: Request) -> QueryParams:
        return parse_query_params(request.query_params, config=config)

    return dependency


QueryParamsDep = Annotated[QueryParams, Depends(get_query_params)]

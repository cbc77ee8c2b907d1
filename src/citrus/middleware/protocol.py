"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> AnyResponse: ...

No base class required. The framework checks the shape, not the lineage.

Middleware wraps the whole dispatch, so a ``halt()`` inside a handler has
already been answered by the error cascade when ``next`` returns.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

from citrus.http.request import Request
from citrus.http.response import Response, StreamingResponse

# Any response type the pipeline can produce
type AnyResponse = Response | StreamingResponse

# The next handler in the middleware chain
type Next = Callable[[Request], Awaitable[AnyResponse]]


class Middleware(Protocol):
    """Protocol for citrus middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(request: Request, next: Next) -> AnyResponse:
            start = time.monotonic()
            response = await next(request)
            elapsed = time.monotonic() - start
            return response.with_header("X-Time", f"{elapsed:.3f}")

        # Class middleware
        class Powered:
            async def __call__(self, request: Request, next: Next) -> AnyResponse:
                response = await next(request)
                return response.with_header("X-Powered-By", "citrus")
    """

    async def __call__(self, request: Request, next: Next) -> AnyResponse: ...

"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> Response: ...

No base class required. Code before ``await next(request)`` runs on the
way in, code after it on the way out. Returning without calling
``next`` short-circuits the rest of the chain and the handler.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

from waypoint.http.request import Request
from waypoint.http.response import Response

# The next link in the chain (another middleware or the route endpoint)
type Next = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """Protocol for waypoint middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(request: Request, next: Next) -> Response:
            start = time.monotonic()
            response = await next(request)
            elapsed = time.monotonic() - start
            return response.with_header("X-Time", f"{elapsed:.3f}")

        # Class middleware
        class RequireHeader:
            async def __call__(self, request: Request, next: Next) -> Response:
                ...
    """

    async def __call__(self, request: Request, next: Next) -> Response: ...

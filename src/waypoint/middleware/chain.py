"""Onion composition of middleware around an endpoint.

``compose([a, b], endpoint)`` produces a single ``Next`` where ``a`` is
the outermost link::

    a.before -> b.before -> endpoint -> b.after -> a.after

Chains are composed once when the router compiles and reused for every
request; nothing here is mutated per request. An exception raised by
any link unwinds straight out of the composed callable, skipping the
remaining "after" code.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from waypoint.http.request import Request
from waypoint.http.response import Response
from waypoint.middleware.protocol import Middleware, Next


def split_path(path: str) -> tuple[str, ...]:
    """``"/api/v1/"`` -> ``("api", "v1")``. Interior empty segments are kept."""
    stripped = path.strip("/")
    if not stripped:
        return ()
    return tuple(stripped.split("/"))


@dataclass(frozen=True, slots=True)
class ScopedMiddleware:
    """A middleware installed for every route under ``prefix``.

    An empty prefix means global. Coverage is segment-wise: ``/api``
    covers ``/api`` and ``/api/users`` but not ``/apiary``.
    """

    prefix: tuple[str, ...]
    middleware: Middleware

    @property
    def is_global(self) -> bool:
        return not self.prefix

    def covers(self, path: str) -> bool:
        parts = split_path(path)
        return parts[: len(self.prefix)] == self.prefix


def _link(middleware: Middleware, next_: Next) -> Next:
    async def link(request: Request) -> Response:
        return await middleware(request, next_)

    return link


def compose(middleware: Sequence[Middleware], endpoint: Next) -> Next:
    """Wrap *endpoint* in *middleware*, first element outermost."""
    handler = endpoint
    for mw in reversed(middleware):
        handler = _link(mw, handler)
    return handler

"""Route registry, path matching, and per-request dispatch.

Routes and middleware are registered during setup. ``compile()``
freezes the registry and composes one middleware pipeline per route;
after that the router is read-only and shared by every request.

Matching is a linear scan in registration order: the first route whose
method and pattern both match wins. With the route counts a single app
carries this keeps precedence obvious ("first registered wins") without
a trie.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, overload

from waypoint._internal.types import Handler
from waypoint.errors import ConfigurationError
from waypoint.http.request import Request
from waypoint.http.response import Response
from waypoint.middleware.chain import ScopedMiddleware, compose, split_path
from waypoint.middleware.protocol import Middleware, Next
from waypoint.routing.endpoint import Render, make_endpoint
from waypoint.routing.route import PathSegment, Route, RouteMatch

if TYPE_CHECKING:
    from waypoint.routing.group import RouteGroup

logger = logging.getLogger("waypoint.routing")

ANY_METHOD = "*"


def parse_path(path: str) -> tuple[PathSegment, ...]:
    """Parse a route pattern into segments.

    Examples::

        "/users"                  -> (users,)
        "/user/:userId/orders"    -> (user, :userId, orders)
        "/public/*filepath"       -> (public, *filepath)

    Raises ``ConfigurationError`` for empty or duplicate parameter names
    and for a wildcard that is not the last segment.
    """
    parts = [p for p in path.strip("/").split("/") if p]
    segments: list[PathSegment] = []
    seen: set[str] = set()
    for index, part in enumerate(parts):
        if part.startswith(":"):
            name = part[1:]
            if not name:
                msg = f"Route {path!r} has a parameter with no name."
                raise ConfigurationError(msg)
            if name in seen:
                msg = f"Route {path!r} binds parameter {name!r} twice."
                raise ConfigurationError(msg)
            seen.add(name)
            segments.append(PathSegment(part, is_param=True, param_name=name))
        elif part.startswith("*"):
            if index != len(parts) - 1:
                msg = f"Route {path!r}: a wildcard must be the last segment."
                raise ConfigurationError(msg)
            segments.append(PathSegment(part, is_wildcard=True, param_name=part[1:] or "*"))
        else:
            segments.append(PathSegment(part))
    return tuple(segments)


def match_segments(
    segments: Sequence[PathSegment],
    parts: Sequence[str],
) -> dict[str, str] | None:
    """Match split request path *parts* against a parsed pattern.

    Returns the parameter bindings, or ``None`` when the path does not
    match. Parameters need a non-empty segment; literals compare exactly.
    """
    params: dict[str, str] = {}
    for index, segment in enumerate(segments):
        if segment.is_wildcard:
            params[segment.param_name or "*"] = "/".join(parts[index:])
            return params
        if index >= len(parts):
            return None
        part = parts[index]
        if segment.is_param:
            if not part:
                return None
            params[segment.param_name or ""] = part
        elif part != segment.value:
            return None
    if len(parts) != len(segments):
        return None
    return params


def join_paths(prefix: str, path: str) -> str:
    """``("/api", "/hello")`` -> ``"/api/hello"``; ``("/api", "/")`` -> ``"/api"``."""
    parts = [*split_path(prefix), *split_path(path)]
    return "/" + "/".join(p for p in parts if p)


def not_found(request: Request) -> Response:
    """Terminal response when no route matches. Not an error."""
    return Response(body=f"Cannot {request.method} {request.path}", status=404)


async def _not_found_endpoint(request: Request) -> Response:
    return not_found(request)


def _default_render(value: Any, request: Request) -> Response:
    from waypoint.server.negotiation import negotiate

    return negotiate(value)


@dataclass(frozen=True, slots=True)
class _Compiled:
    route: Route
    pipeline: Next


class Router:
    """Route registry with middleware scoping and dispatch.

    Usage::

        router = Router()
        router.get("/user/:id", show_user)
        router.use("/api", audit)

        api = router.group("/api")
        api.get("/hello", hello)

        router.compile()
        response = await router.dispatch(request)
    """

    __slots__ = ("_compiled", "_middleware", "_not_found", "_routes")

    def __init__(self) -> None:
        self._routes: list[Route] = []
        self._middleware: list[ScopedMiddleware] = []
        self._compiled: tuple[_Compiled, ...] | None = None
        self._not_found: Next = _not_found_endpoint

    # -- Registration --

    def _check_not_compiled(self) -> None:
        if self._compiled is not None:
            msg = "Cannot add routes or middleware after the router is compiled."
            raise RuntimeError(msg)

    def add(
        self,
        method: str,
        path: str,
        handler: Handler,
        *,
        name: str | None = None,
    ) -> Route:
        """Register *handler* for *method* and *path*. Returns the Route."""
        self._check_not_compiled()
        route = Route(
            method=method.upper(),
            path=join_paths("", path),
            handler=handler,
            segments=parse_path(path),
            name=name,
        )
        self._routes.append(route)
        logger.debug("registered %s %s", route.method, route.path)
        return route

    register = add

    @overload
    def route(
        self, method: str, path: str, handler: None = None, *, name: str | None = None
    ) -> Callable[[Handler], Handler]: ...

    @overload
    def route(
        self, method: str, path: str, handler: Handler, *, name: str | None = None
    ) -> Handler: ...

    def route(
        self,
        method: str,
        path: str,
        handler: Handler | None = None,
        *,
        name: str | None = None,
    ) -> Any:
        """Register directly, or return a decorator when *handler* is omitted."""
        if handler is not None:
            self.add(method, path, handler, name=name)
            return handler

        def decorator(func: Handler) -> Handler:
            self.add(method, path, func, name=name)
            return func

        return decorator

    def get(self, path: str, handler: Handler | None = None, **kw: Any) -> Any:
        return self.route("GET", path, handler, **kw)

    def post(self, path: str, handler: Handler | None = None, **kw: Any) -> Any:
        return self.route("POST", path, handler, **kw)

    def put(self, path: str, handler: Handler | None = None, **kw: Any) -> Any:
        return self.route("PUT", path, handler, **kw)

    def patch(self, path: str, handler: Handler | None = None, **kw: Any) -> Any:
        return self.route("PATCH", path, handler, **kw)

    def delete(self, path: str, handler: Handler | None = None, **kw: Any) -> Any:
        return self.route("DELETE", path, handler, **kw)

    def head(self, path: str, handler: Handler | None = None, **kw: Any) -> Any:
        return self.route("HEAD", path, handler, **kw)

    def options(self, path: str, handler: Handler | None = None, **kw: Any) -> Any:
        return self.route("OPTIONS", path, handler, **kw)

    def all(self, path: str, handler: Handler | None = None, **kw: Any) -> Any:
        """Register for every method."""
        return self.route(ANY_METHOD, path, handler, **kw)

    def use(self, *args: str | Middleware) -> None:
        """Install middleware globally, or under a path prefix.

        ``use(mw)`` and ``use(mw1, mw2)`` are global; ``use("/api", mw)``
        applies only to routes under ``/api``. Order across calls is
        preserved: earlier middleware wraps later middleware.
        """
        self._check_not_compiled()
        prefix = ""
        middleware = list(args)
        if middleware and isinstance(middleware[0], str):
            prefix = middleware.pop(0)  # type: ignore[assignment]
        if not middleware:
            msg = "use() needs at least one middleware."
            raise ConfigurationError(msg)
        for mw in middleware:
            if isinstance(mw, str) or not callable(mw):
                msg = f"use() got {mw!r}, which is not a middleware callable."
                raise ConfigurationError(msg)
            self._middleware.append(ScopedMiddleware(split_path(prefix), mw))

    def group(self, prefix: str) -> "RouteGroup":
        """A registrar that prepends *prefix* to every path."""
        from waypoint.routing.group import RouteGroup

        return RouteGroup(join_paths("", prefix), self)

    # -- Introspection --

    @property
    def routes(self) -> list[Route]:
        """All registered routes in registration order."""
        return list(self._routes)

    @property
    def is_compiled(self) -> bool:
        return self._compiled is not None

    def middleware_for(self, path: str) -> list[Middleware]:
        """Middleware that applies to a route at *path*, outermost first."""
        return [m.middleware for m in self._middleware if m.covers(path)]

    # -- Compilation --

    def compile(self, render: Render | None = None) -> None:
        """Freeze the router and compose each route's pipeline.

        *render* converts handler return values to a ``Response``; the
        default handles strings, bytes, dicts, dataclasses and Responses.
        """
        if self._compiled is not None:
            return
        render = render or _default_render
        compiled = []
        for route in self._routes:
            endpoint = make_endpoint(route, render)
            pipeline = compose(self.middleware_for(route.path), endpoint)
            compiled.append(_Compiled(route, pipeline))

        global_mw = [m.middleware for m in self._middleware if m.is_global]
        self._not_found = compose(global_mw, _not_found_endpoint)
        self._compiled = tuple(compiled)

    # -- Matching & dispatch --

    def match(self, method: str, path: str) -> RouteMatch | None:
        """Find the first route matching *method* and *path*.

        ``HEAD`` falls back to a ``GET`` route when no ``HEAD`` route
        matches. Returns ``None`` when nothing matches.
        """
        if self._compiled is None:
            self.compile()
        assert self._compiled is not None

        method = method.upper()
        parts = split_path(path)
        result = self._scan(method, parts)
        if result is None and method == "HEAD":
            result = self._scan("GET", parts)
        return result

    def _scan(self, method: str, parts: tuple[str, ...]) -> RouteMatch | None:
        assert self._compiled is not None
        for entry in self._compiled:
            if entry.route.method not in (method, ANY_METHOD):
                continue
            params = match_segments(entry.route.segments, parts)
            if params is not None:
                return RouteMatch(entry.route, params, entry.pipeline)
        return None

    async def dispatch(self, request: Request) -> Response:
        """Run *request* through the matching route's pipeline.

        Unmatched requests get the not-found response (through global
        middleware only). Exceptions from middleware or the handler
        propagate to the caller.
        """
        match = self.match(request.method, request.path)
        if match is None:
            logger.debug("no route for %s %s", request.method, request.path)
            return await self._not_found(request)
        return await match.pipeline(request.with_path_params(match.path_params))

"""Route groups: register many routes under one path prefix."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from waypoint._internal.types import Handler
from waypoint.middleware.protocol import Middleware

if TYPE_CHECKING:
    from waypoint.routing.router import Router


@dataclass(frozen=True, slots=True)
class RouteGroup:
    """Registration-time view of a Router with a fixed path prefix.

    Holds no routes of its own; everything goes straight into the
    owning router with ``prefix`` prepended::

        api = router.group("/api")
        api.use(audit)                 # only routes under /api
        api.get("/hello", hello)       # GET /api/hello

        v1 = api.group("/v1")
        v1.get("/users", list_users)   # GET /api/v1/users
    """

    prefix: str
    router: "Router"

    def _path(self, path: str) -> str:
        from waypoint.routing.router import join_paths

        return join_paths(self.prefix, path)

    def route(self, method: str, path: str, handler: Handler | None = None, **kw: Any) -> Any:
        return self.router.route(method, self._path(path), handler, **kw)

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

    def all(self, path: str, handler: Handler | None = None, **kw: Any) -> Any:
        return self.router.all(self._path(path), handler, **kw)

    def use(self, *middleware: Middleware) -> None:
        """Install middleware for every route under this group's prefix."""
        self.router.use(self.prefix, *middleware)

    def group(self, prefix: str) -> "RouteGroup":
        """A nested group: ``group("/api").group("/v1")`` -> ``/api/v1``."""
        return RouteGroup(self._path(prefix), self.router)

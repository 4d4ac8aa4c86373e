"""PathSegment, Route and RouteMatch frozen dataclasses."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from waypoint.middleware.protocol import Next


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route pattern.

    Literal:   ``/users``      (value="users")
    Param:     ``/:id``        (is_param=True, param_name="id")
    Wildcard:  ``/*filepath``  (is_wildcard=True, param_name="filepath")
    """

    value: str
    is_param: bool = False
    is_wildcard: bool = False
    param_name: str | None = None


@dataclass(frozen=True, slots=True)
class Route:
    """A registered route. Immutable once created.

    ``method`` is an upper-case HTTP method, or ``"*"`` for routes
    registered with ``all()``.
    """

    method: str
    path: str
    handler: Callable[..., Any]
    segments: tuple[PathSegment, ...]
    name: str | None = None

    @property
    def param_names(self) -> tuple[str, ...]:
        """Names bound by this route's pattern, in position order."""
        return tuple(s.param_name for s in self.segments if s.param_name is not None)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful match: the route, its bindings, and its pipeline."""

    route: Route
    path_params: Mapping[str, str]
    pipeline: Next

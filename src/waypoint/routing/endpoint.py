"""Turn a user handler into the terminal link of a middleware chain.

The handler signature is inspected once, at compile time. Per request
only the prepared argument plan is walked.

Resolution order for each handler parameter:

1. ``request`` by name, or a ``Request`` annotation
2. Path parameters by name (``int``/``float`` annotations convert; a
   value that does not convert raises ``BindingError``)
3. Dataclass annotation -> bound from the query string (GET/HEAD) or
   the decoded body (everything else)
4. Parameters with defaults are left alone
5. The first remaining parameter receives the request
"""

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from waypoint._internal.invoke import invoke
from waypoint.binding import bind, is_bindable_dataclass
from waypoint.errors import BindingError, ConfigurationError
from waypoint.http.request import Request
from waypoint.http.response import Response
from waypoint.middleware.protocol import Next
from waypoint.routing.route import Route

type Render = Callable[[Any, Request], Response]

_REQUEST = "request"
_PATH = "path"
_BIND = "bind"


@dataclass(frozen=True, slots=True)
class _Argument:
    name: str
    kind: str
    annotation: Any = None


def _signature(handler: Callable[..., Any]) -> inspect.Signature:
    try:
        return inspect.signature(handler, eval_str=True)
    except NameError:
        # Forward references to names that are gone at runtime
        return inspect.signature(handler)


def plan_arguments(route: Route) -> tuple[_Argument, ...]:
    """Work out how each parameter of ``route.handler`` gets its value."""
    params = route.param_names
    plan: list[_Argument] = []
    for index, (name, param) in enumerate(_signature(route.handler).parameters.items()):
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        annotation = param.annotation
        if name == "request" or annotation is Request:
            plan.append(_Argument(name, _REQUEST))
        elif name in params:
            plan.append(_Argument(name, _PATH, annotation))
        elif is_bindable_dataclass(annotation):
            plan.append(_Argument(name, _BIND, annotation))
        elif param.default is not inspect.Parameter.empty:
            continue
        elif index == 0:
            plan.append(_Argument(name, _REQUEST))
        else:
            msg = (
                f"Cannot resolve parameter {name!r} of handler for "
                f"{route.method} {route.path}: it is not a path parameter, "
                "a dataclass, or the request."
            )
            raise ConfigurationError(msg)
    return tuple(plan)


def _convert_path_value(name: str, value: str, annotation: Any) -> Any:
    if annotation in (int, float):
        try:
            return annotation(value)
        except ValueError:
            msg = f"{name} must be {annotation.__name__}, got {value!r}."
            raise BindingError({name: [msg]}) from None
    return value


async def _resolve(plan: tuple[_Argument, ...], request: Request) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    for arg in plan:
        if arg.kind == _REQUEST:
            kwargs[arg.name] = request
        elif arg.kind == _PATH:
            kwargs[arg.name] = _convert_path_value(
                arg.name, request.path_params[arg.name], arg.annotation
            )
        elif request.method in ("GET", "HEAD"):
            kwargs[arg.name] = bind(arg.annotation, request.query, format="query")
        else:
            kwargs[arg.name] = await request.bind(arg.annotation)
    return kwargs


def make_endpoint(route: Route, render: Render) -> Next:
    """Build the terminal ``Next`` that calls ``route.handler``."""
    plan = plan_arguments(route)
    handler = route.handler

    async def endpoint(request: Request) -> Response:
        kwargs = await _resolve(plan, request)
        result = await invoke(handler, **kwargs)
        return render(result, request)

    return endpoint

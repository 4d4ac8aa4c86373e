"""Server frontend: one ASGI request through router and error boundary.

The only component that touches raw ASGI directly. Builds a typed
Request, dispatches it through the router, converts any escaping
exception exactly once, and sends exactly one Response. A response
that cannot be encoded for the wire counts as an escaping exception.
"""

import logging
from collections.abc import Callable
from typing import Any

from waypoint._internal.asgi import Receive, Scope, Send
from waypoint.http.request import Request
from waypoint.http.response import Response
from waypoint.routing.router import Router
from waypoint.server.errors import fallback_error_response, handle_error
from waypoint.server.sender import prepare_response, send_prepared

logger = logging.getLogger("waypoint.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    error_handler: Callable[..., Any] | None = None,
    render: Callable[[Any], Response] | None = None,
    max_body: int | None = None,
    read_timeout: float | None = None,
    write_timeout: float | None = None,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(
        scope,
        receive,
        max_body=max_body,
        read_timeout=read_timeout,
    )

    try:
        response = await router.dispatch(request)
        prepared = prepare_response(response, method=request.method)
    except Exception as exc:
        response = await handle_error(exc, request, error_handler, render)
        try:
            prepared = prepare_response(response, method=request.method)
        except Exception:
            # A custom error response that cannot be encoded either
            logger.exception("error response unsendable for %s %s", request.method, request.path)
            prepared = prepare_response(fallback_error_response(exc), method=request.method)

    try:
        await send_prepared(prepared, send, write_timeout=write_timeout)
    except TimeoutError:
        # Past this point the client gets nothing more on this connection
        logger.warning("write timed out for %s %s", request.method, request.path)
        raise

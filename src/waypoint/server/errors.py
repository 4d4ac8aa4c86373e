"""Global error boundary.

The only place user-visible error bodies are produced. Every exception
that escapes router dispatch lands here exactly once and becomes one
Response.
"""

import logging
from collections.abc import Callable
from typing import Any

from waypoint._internal.invoke import invoke
from waypoint.errors import HTTPError
from waypoint.http.request import Request
from waypoint.http.response import Response
from waypoint.server.negotiation import negotiate

logger = logging.getLogger("waypoint.server")

ERROR_PREFIX = "Error: "


def error_message(exc: BaseException) -> str:
    """The text shown after ``Error: ``: the detail for HTTP errors."""
    if isinstance(exc, HTTPError):
        return exc.detail or str(exc.status)
    return str(exc)


def fallback_error_response(exc: BaseException) -> Response:
    """The bare ``"Error: " + message`` 500, with no extra headers."""
    return Response(body=ERROR_PREFIX + error_message(exc), status=500)


def default_error_handler(request: Request, exc: Exception) -> Response:
    """Status 500 with body ``"Error: " + message`` for every error.

    An ``HTTPError`` contributes its detail and headers; its status is
    left to a custom error handler to honour.
    """
    response = fallback_error_response(exc)
    if isinstance(exc, HTTPError):
        for name, value in exc.headers:
            response = response.with_header(name, value)
    return response


def _log(exc: Exception, request: Request) -> None:
    if isinstance(exc, HTTPError) and exc.status < 500:
        logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
    else:
        logger.error(
            "500 %s %s: %s", request.method, request.path, error_message(exc), exc_info=exc
        )


async def handle_error(
    exc: Exception,
    request: Request,
    error_handler: Callable[..., Any] | None = None,
    render: Callable[[Any], Response] | None = None,
) -> Response:
    """Convert *exc* into a Response.

    A user *error_handler* (sync or async, ``(request, exc)``) replaces
    the default rendering. If it raises in turn, the failure is logged
    and the default rendering of the original error is returned, so one
    request always yields one response.
    """
    _log(exc, request)
    if error_handler is None:
        return default_error_handler(request, exc)
    try:
        result = await invoke(error_handler, request, exc)
        if isinstance(result, Response):
            return result
        return (render or negotiate)(result)
    except Exception:
        logger.exception("error handler failed for %s %s", request.method, request.path)
        return default_error_handler(request, exc)

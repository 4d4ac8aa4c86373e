"""Access logging middleware."""

import logging
import time

from waypoint.http.request import Request
from waypoint.http.response import Response
from waypoint.middleware.protocol import Next


class AccessLog:
    """Log ``METHOD path status elapsed_ms`` for every request it wraps.

    Requests that raise are logged as ``500`` and the exception is
    re-raised for the error boundary.

    Usage::

        app.use(AccessLog())
    """

    __slots__ = ("_level", "_logger")

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self._logger = logger or logging.getLogger("waypoint.access")
        self._level = level

    async def __call__(self, request: Request, next: Next) -> Response:
        start = time.perf_counter()
        status = 500
        try:
            response = await next(request)
            status = response.status
            return response
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self._logger.log(
                self._level, "%s %s %d %.2fms", request.method, request.path, status, elapsed_ms
            )

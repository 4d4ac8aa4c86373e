"""Middleware: Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    AccessLog -- One INFO line per request on the ``waypoint.access`` logger

Related helpers:
    StaticFiles -- Route handler serving files from a directory
    download -- Send a file as an attachment
"""

from waypoint.middleware.access_log import AccessLog
from waypoint.middleware.protocol import Middleware, Next
from waypoint.middleware.static import StaticFiles, download

__all__ = [
    "AccessLog",
    "Middleware",
    "Next",
    "StaticFiles",
    "download",
]

"""Waypoint: a small ASGI web-serving kernel.

Routing with named parameters, composable middleware, content-negotiated
body decoding, and one global error boundary.

Basic usage::

    from waypoint import App

    app = App()

    @app.get("/")
    def index():
        return "Hello World"

    app.run()

Prefork (workers share one socket and re-import the app)::

    from waypoint import AppConfig, serve

    serve("myapp:app", AppConfig(prefork=True, workers=4))
"""

__version__ = "0.1.0"
__all__ = [
    "AccessLog",
    "App",
    "AppConfig",
    "BindingError",
    "Client",
    "ClientError",
    "ConfigurationError",
    "DecodeError",
    "HTTPError",
    "Middleware",
    "Next",
    "NotFound",
    "Redirect",
    "Request",
    "Response",
    "Router",
    "Template",
    "UnsupportedMediaType",
    "UploadFile",
    "WaypointError",
    "alias",
    "download",
    "fetch",
    "is_child",
    "serve",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import waypoint`` fast while providing a clean top-level API.
    """
    if name == "App":
        from waypoint.app import App

        return App

    if name == "AppConfig":
        from waypoint.config import AppConfig

        return AppConfig

    if name == "Request":
        from waypoint.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from waypoint.http import response as _resp

        return getattr(_resp, name)

    if name == "UploadFile":
        from waypoint.http.forms import UploadFile

        return UploadFile

    if name in ("Client", "fetch"):
        from waypoint.http import client as _client

        return getattr(_client, name)

    if name == "Router":
        from waypoint.routing.router import Router

        return Router

    if name == "Template":
        from waypoint.templating.returns import Template

        return Template

    if name == "alias":
        from waypoint.binding import alias

        return alias

    if name in ("Middleware", "Next"):
        from waypoint.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("AccessLog", "download"):
        from waypoint import middleware as _middleware

        return getattr(_middleware, name)

    if name in ("serve", "is_child"):
        from waypoint.server import serve as _serve

        return getattr(_serve, name)

    if name in (
        "BindingError",
        "ClientError",
        "ConfigurationError",
        "DecodeError",
        "HTTPError",
        "NotFound",
        "UnsupportedMediaType",
        "WaypointError",
    ):
        from waypoint import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)

"""Waypoint application class.

Mutable during setup (route registration, middleware, error handler).
Frozen at runtime when ``app.run()`` or ``__call__()`` is first invoked.
"""

import inspect
import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from kida import Environment

from waypoint._internal.asgi import Receive, Scope, Send
from waypoint._internal.types import ErrorHandler, Handler
from waypoint.config import AppConfig
from waypoint.http.request import Request
from waypoint.http.response import Response
from waypoint.middleware.protocol import Middleware
from waypoint.middleware.static import FILEPATH_PARAM, StaticFiles
from waypoint.routing.group import RouteGroup
from waypoint.routing.route import Route
from waypoint.routing.router import Router, join_paths
from waypoint.server.handler import handle_request
from waypoint.server.negotiation import negotiate
from waypoint.templating.integration import create_environment
from waypoint.templating.returns import Template

logger = logging.getLogger("waypoint.server")


class App:
    """The waypoint application.

    Mutable during setup (routes, middleware, groups, error handler).
    Frozen at runtime when ``app.run()`` or ``__call__()`` is first invoked.

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check to ensure exactly
        one thread compiles the app, even when concurrent first requests
        race to trigger it.

    Usage::

        app = App(AppConfig(idle_timeout=5))

        @app.get("/hello")
        def hello(request: Request) -> str:
            return "Hello " + request.query.get("name", "Guest")

        api = app.group("/api")
        api.use(audit)
        api.get("/ping", lambda: "pong")
    """

    __slots__ = (
        "_error_handler",
        "_freeze_lock",
        "_frozen",
        "_kida_env",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        error_handler: ErrorHandler | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._router = Router()
        self._error_handler: ErrorHandler | None = error_handler
        self._kida_env: Environment | None = None
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

    # -- Registration --

    def route(self, method: str, path: str, handler: Handler | None = None, **kw: Any) -> Any:
        """Register a route, directly or as a decorator::

        @app.route("GET", "/")
        def index():
            return "Hello World"
        """
        self._check_not_frozen()
        return self._router.route(method, path, handler, **kw)

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
        """Register *handler* for every method."""
        self._check_not_frozen()
        return self._router.all(path, handler, **kw)

    def use(self, *args: str | Middleware) -> None:
        """Install middleware, globally or under a path prefix.

        ``app.use(mw)`` wraps every request; ``app.use("/api", mw)`` only
        routes under ``/api``. Earlier ``use`` calls wrap later ones.
        """
        self._check_not_frozen()
        self._router.use(*args)

    def group(self, prefix: str) -> RouteGroup:
        """Register routes and middleware under a shared path prefix."""
        self._check_not_frozen()
        return self._router.group(prefix)

    def static(self, prefix: str, directory: str | Path, **kw: Any) -> Route:
        """Serve files from *directory* under ``GET {prefix}/*filepath``."""
        self._check_not_frozen()
        path = join_paths(prefix, f"*{FILEPATH_PARAM}")
        return self._router.add("GET", path, StaticFiles(directory, **kw))

    def error_handler(self, func: ErrorHandler) -> ErrorHandler:
        """Replace the default error rendering.

        The handler receives ``(request, exc)`` and returns any value a
        route handler may return::

            @app.error_handler
            def on_error(request, exc):
                return Response(f"Oops: {exc}", status=500)
        """
        self._check_not_frozen()
        self._error_handler = func
        return func

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a sync or async function to run at ASGI lifespan startup."""
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a sync or async function to run at ASGI lifespan shutdown."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Introspection --

    @property
    def router(self) -> Router:
        return self._router

    @property
    def routes(self) -> list[Route]:
        return self._router.routes

    # -- Rendering --

    def render(self, name: str, /, **context: Any) -> Response:
        """Render template *name* with *context* into an HTML response."""
        self._ensure_frozen()
        return self._render(Template(name, **context))

    def _render(self, value: Any, request: Request | None = None) -> Response:
        return negotiate(
            value,
            kida_env=self._kida_env,
            template_extension=self.config.template_extension,
        )

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Start serving with uvicorn.

        Single process only: prefork re-imports the app in each worker,
        so use ``waypoint.serve("module:app", config)`` for that.
        """
        from waypoint.server.serve import serve

        self._ensure_frozen()
        serve(self, self.config, host=host, port=port)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()

        await handle_request(
            scope,
            receive,
            send,
            router=self._router,
            error_handler=self._error_handler,
            render=self._render,
            max_body=self.config.max_content_length,
            read_timeout=self.config.read_timeout,
            write_timeout=self.config.write_timeout,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before first HTTP request), then
        runs registered startup/shutdown hooks and signals completion
        back to the server.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    await self.startup()
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    logger.exception("startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def startup(self) -> None:
        """Run startup hooks in registration order."""
        for hook in self._startup_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    async def shutdown(self) -> None:
        """Run shutdown hooks in registration order."""
        for hook in self._shutdown_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        # Templates are optional: no directory, no environment
        if Path(self.config.template_dir).is_dir():
            self._kida_env = create_environment(self.config)

        self._router.compile(render=self._render)
        self._frozen = True
        logger.debug("app frozen with %d routes", len(self._router.routes))

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes and middleware before calling app.run()."
            )
            raise RuntimeError(msg)

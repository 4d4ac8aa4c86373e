"""Process entry point.

Starts uvicorn with a waypoint app. With ``prefork`` on, uvicorn's
supervisor spawns ``worker_count`` processes that share one listening
socket; the parent only supervises and handles no requests.
"""

import logging
import math
import multiprocessing
from typing import TYPE_CHECKING

from waypoint.config import AppConfig
from waypoint.errors import ConfigurationError

if TYPE_CHECKING:
    from waypoint.app import App

logger = logging.getLogger("waypoint.server")


def _keep_alive(idle_timeout: float | None) -> int:
    # uvicorn takes whole seconds; None keeps its default
    if idle_timeout is None:
        return 5
    return max(1, math.ceil(idle_timeout))


def is_child() -> bool:
    """True inside a worker process spawned by the prefork supervisor."""
    return multiprocessing.parent_process() is not None


def serve(
    app: "App | str",
    config: AppConfig | None = None,
    *,
    host: str | None = None,
    port: int | None = None,
) -> None:
    """Run *app* until interrupted.

    *app* is an ``App`` instance or a ``"module:attribute"`` import
    string. Worker processes re-import the app, so prefork needs the
    import string form.

    Args:
        app: The application, or where to import it from.
        config: Server settings. Defaults to ``app.config`` for an App
            instance and ``AppConfig()`` otherwise.
        host: Override bind host.
        port: Override bind port.
    """
    import uvicorn

    if config is None:
        config = AppConfig() if isinstance(app, str) else app.config

    workers = config.worker_count
    if workers > 1 and not isinstance(app, str):
        msg = (
            "prefork needs the app as an import string, "
            "e.g. serve('myapp:app', config), so workers can load it."
        )
        raise ConfigurationError(msg)

    bind_host = host or config.host
    bind_port = port if port is not None else config.port
    logger.info(
        "serving on http://%s:%d (%d worker%s)",
        bind_host,
        bind_port,
        workers,
        "" if workers == 1 else "s",
    )
    uvicorn.run(
        app,
        host=bind_host,
        port=bind_port,
        workers=workers if workers > 1 else None,
        timeout_keep_alive=_keep_alive(config.idle_timeout),
        log_level=config.log_level.lower(),
        reload=False,
    )

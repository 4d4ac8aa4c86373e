"""Content negotiation: maps handler return values to Response objects.

isinstance-based dispatch, no magic, fully predictable.
"""

import dataclasses
from typing import Any

from kida import Environment

from waypoint.errors import ConfigurationError
from waypoint.http.response import HTML, JSON, Redirect, Response
from waypoint.templating.integration import render_template
from waypoint.templating.returns import Template


def negotiate(
    value: Any,
    *,
    kida_env: Environment | None = None,
    template_extension: str = "",
) -> Response:
    """Convert a route handler's return value to a Response.

    Dispatch order:

    1. ``Response``            -> pass through
    2. ``Redirect``            -> 3xx with Location header
    3. ``Template``            -> render via kida, text/html
    4. ``str``                 -> 200, text/plain
    5. ``bytes``               -> 200, application/octet-stream
    6. ``dict`` / ``list``     -> 200, JSON with sorted keys
    7. dataclass instance      -> 200, JSON in field order
    8. ``None``                -> 200, empty body
    9. ``(value, int)``        -> negotiate value, override status
    """
    match value:
        case Response():
            return value
        case Redirect():
            return Response(status=value.status).with_header("Location", value.url)
        case Template():
            if kida_env is None:
                msg = (
                    "Template return type requires kida integration. "
                    "Ensure a template_dir is configured in AppConfig."
                )
                raise ConfigurationError(msg)
            html = render_template(kida_env, value, template_extension)
            return Response(body=html, content_type=HTML)
        case str():
            return Response(body=value)
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return Response.json(value)
        case (inner, int() as status):
            inner_response = negotiate(
                inner,
                kida_env=kida_env,
                template_extension=template_extension,
            )
            return inner_response.with_status(status)
        case None:
            return Response()
        case _ if dataclasses.is_dataclass(value) and not isinstance(value, type):
            import json as json_module

            body = json_module.dumps(
                dataclasses.asdict(value), separators=(",", ":"), ensure_ascii=False
            )
            return Response(body=body, content_type=JSON)
        case _:
            msg = f"Handler returned unsupported type {type(value).__name__!r}"
            raise TypeError(msg)

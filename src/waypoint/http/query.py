"""Query string parameters.

Parsed exactly like an urlencoded form body, so ``request.query`` and
``await request.form()`` answer the same way for the same fields.
"""

from waypoint.http.forms import FormData, parse_fields


class QueryParams(FormData):
    """Query string fields, plus the raw string for rebuilding URLs.

    Handlers supply their own defaults for absent keys::

        name = request.query.get("name", "Guest")

    A present but blank key (``?name=``) yields ``""``, not the default.
    """

    __slots__ = ("_raw",)

    def __init__(self, query_string: bytes = b"") -> None:
        # ASGI delivers the query still percent-encoded; raw bytes are ASCII
        super().__init__(parse_fields(query_string.decode("latin-1")))
        object.__setattr__(self, "_raw", query_string)

    @property
    def raw(self) -> bytes:
        """The undecoded query string."""
        return self._raw

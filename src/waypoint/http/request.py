"""Immutable HTTP request.

Frozen metadata with async body access. Path parameters are attached
by the router through ``with_path_params``; the decoded body is
materialized lazily on first access and cached for the rest of the
request.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import anyio

from waypoint._internal.asgi import Receive
from waypoint.errors import HTTPError
from waypoint.http.cookies import parse_cookies
from waypoint.http.headers import Headers
from waypoint.http.query import QueryParams

if TYPE_CHECKING:
    from waypoint.http.decoding import DecodedBody
    from waypoint.http.forms import FormData


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, query, cookies) is frozen at creation.
    The body is read asynchronously via ``.body()``, ``.json()``,
    ``.form()`` or ``.decoded()``; every accessor shares one cache so the
    ASGI stream is consumed once.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    path_params: Mapping[str, str]
    cookies: Mapping[str, str]
    http_version: str = "1.1"
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None

    _receive: Receive | None = field(default=None, repr=False, compare=False)
    _max_body: int | None = field(default=None, repr=False, compare=False)
    _read_timeout: float | None = field(default=None, repr=False, compare=False)

    # The dict itself stays mutable; the field reference is frozen
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """The Content-Length header as int."""
        value = self.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    @property
    def url(self) -> str:
        """Path plus query string."""
        qs = self.query.raw
        if qs:
            return f"{self.path}?{qs.decode('latin-1')}"
        return self.path

    def param(self, name: str, default: str | None = None) -> str | None:
        """Return path parameter *name*, or *default* when unbound."""
        return self.path_params.get(name, default)

    def with_path_params(self, params: Mapping[str, str]) -> Request:
        """Copy of this request with *params* bound. Shares the body cache."""
        return replace(self, path_params=dict(params), _cache=self._cache)

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body.

        Raises ``HTTPError(413)`` past ``max_content_length`` and
        ``HTTPError(408)`` when the client stalls past ``read_timeout``.
        A failed read is remembered: the stream is partly consumed, so
        later calls raise the same error instead of returning a
        truncated body.
        """
        if "body" in self._cache:
            return self._cache["body"]
        if "body_error" in self._cache:
            raise self._cache["body_error"]
        if self._max_body is not None and (self.content_length or 0) > self._max_body:
            raise self._body_failed(HTTPError(status=413, detail="Request body too large"))
        chunks: list[bytes] = []
        size = 0
        try:
            with anyio.fail_after(self._read_timeout):
                async for chunk in self.stream():
                    size += len(chunk)
                    if self._max_body is not None and size > self._max_body:
                        raise self._body_failed(
                            HTTPError(status=413, detail="Request body too large")
                        )
                    chunks.append(chunk)
        except TimeoutError:
            exc = HTTPError(status=408, detail="Request body read timed out")
            raise self._body_failed(exc) from None
        result = b"".join(chunks)
        self._cache["body"] = result
        return result

    def _body_failed(self, exc: HTTPError) -> HTTPError:
        self._cache["body_error"] = exc
        return exc

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        if self._receive is None:
            return
        while True:
            message = await self._receive()
            if message["type"] == "http.disconnect":
                break
            chunk = message.get("body", b"")
            if chunk:
                yield chunk
            if not message.get("more_body", False):
                break

    async def text(self) -> str:
        """Read the body as UTF-8 text."""
        return (await self.body()).decode("utf-8")

    async def json(self) -> Any:
        """Parse the body as JSON regardless of Content-Type."""
        import json as json_module

        return json_module.loads(await self.body())

    async def decoded(self) -> DecodedBody:
        """Decode the body according to its Content-Type.

        Cached: decoding happens at most once per request.

        Raises:
            UnsupportedMediaType: No decoder for the Content-Type.
            DecodeError: Malformed body.
        """
        if "decoded" in self._cache:
            return self._cache["decoded"]
        from waypoint.http.decoding import decode_body

        result = decode_body(self.content_type, await self.body())
        self._cache["decoded"] = result
        return result

    async def form(self) -> FormData:
        """Parse a URL-encoded or multipart body as ``FormData``."""
        if "form" in self._cache:
            return self._cache["form"]
        from waypoint.errors import DecodeError, UnsupportedMediaType
        from waypoint.http.decoding import media_type
        from waypoint.http.forms import parse_multipart, parse_urlencoded

        ct = self.content_type or "application/x-www-form-urlencoded"
        media = media_type(ct)
        raw = await self.body()
        try:
            if media == "application/x-www-form-urlencoded":
                result = parse_urlencoded(raw)
            elif media == "multipart/form-data":
                result = parse_multipart(raw, ct)
            else:
                raise UnsupportedMediaType(ct)
        except ValueError as exc:
            raise DecodeError(media, exc) from exc
        self._cache["form"] = result
        return result

    async def form_value(self, name: str, default: str = "") -> str:
        """First form field value for *name*, or *default*."""
        value = (await self.form()).get(name)
        return default if value is None else value

    async def bind[T](self, datacls: type[T]) -> T:
        """Decode the body and bind it onto *datacls*."""
        from waypoint.binding import bind

        return bind(datacls, await self.decoded())

    # -- Factory --

    @classmethod
    def from_asgi(
        cls,
        scope: Mapping[str, Any],
        receive: Receive | None = None,
        path_params: Mapping[str, str] | None = None,
        *,
        max_body: int | None = None,
        read_timeout: float | None = None,
    ) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        headers = Headers(tuple(tuple(pair) for pair in scope.get("headers", ())))
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            path_params=dict(path_params or {}),
            cookies=parse_cookies("; ".join(headers.get_list("cookie"))),
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            _receive=receive,
            _max_body=max_body,
            _read_timeout=read_timeout,
        )

"""Outbound HTTP client.

A thin async wrapper over ``httpx.AsyncClient`` for handlers and scripts
that call other services. Responses come back as frozen
``ClientResponse`` values; transport failures raise ``ClientError``.

Usage::

    async with Client("https://example.com", timeout=5.0) as client:
        response = await client.get("/")
        print(response.status, response.text)

    # one-shot
    response = await fetch("GET", "https://example.com")
"""

import json as json_module
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from waypoint.errors import ClientError
from waypoint.http.headers import Headers

logger = logging.getLogger("waypoint.client")


@dataclass(frozen=True, slots=True)
class ClientResponse:
    """The answer to an outbound request, fully read."""

    status: int
    headers: Headers
    content: bytes
    url: str
    encoding: str = "utf-8"

    @property
    def text(self) -> str:
        return self.content.decode(self.encoding, errors="replace")

    def json(self) -> Any:
        return json_module.loads(self.content)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 400


class Client:
    """Async HTTP client owning one connection pool.

    *transport* is handed to httpx unchanged; pass
    ``httpx.ASGITransport(app=app)`` to call an ASGI app in process.
    Error statuses are returned, never raised.
    """

    __slots__ = ("_client",)

    def __init__(
        self,
        base_url: str = "",
        *,
        timeout: float | None = 10.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        json: Any = None,
        data: dict[str, str] | None = None,
        content: bytes | None = None,
    ) -> ClientResponse:
        """Send one request and read the whole response body."""
        try:
            response = await self._client.request(
                method.upper(),
                url,
                params=params,
                headers=headers,
                json=json,
                data=data,
                content=content,
            )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method.upper(), url, exc)
            raise ClientError(url, exc) from exc

        logger.debug("%s %s -> %d", method.upper(), response.url, response.status_code)
        return ClientResponse(
            status=response.status_code,
            headers=Headers(tuple(response.headers.raw)),
            content=response.content,
            url=str(response.url),
            encoding=response.encoding or "utf-8",
        )

    async def get(self, url: str, **kw: Any) -> ClientResponse:
        return await self.request("GET", url, **kw)

    async def post(self, url: str, **kw: Any) -> ClientResponse:
        return await self.request("POST", url, **kw)

    async def put(self, url: str, **kw: Any) -> ClientResponse:
        return await self.request("PUT", url, **kw)

    async def delete(self, url: str, **kw: Any) -> ClientResponse:
        return await self.request("DELETE", url, **kw)


async def fetch(
    method: str,
    url: str,
    *,
    timeout: float | None = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
    **kw: Any,
) -> ClientResponse:
    """Send a single request with a short-lived client."""
    async with Client(timeout=timeout, transport=transport) as client:
        return await client.request(method, url, **kw)

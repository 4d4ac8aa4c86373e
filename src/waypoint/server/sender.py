"""ASGI response sending: translates a Response into ASGI messages.

Encoding and sending are separate steps. ``prepare_response`` does all
the work that can fail on response content (headers must be Latin-1),
so the caller can route such a failure through the error boundary
before anything reaches the wire.
"""

from dataclasses import dataclass

import anyio

from waypoint._internal.asgi import Send
from waypoint.http.response import Response


@dataclass(frozen=True, slots=True)
class PreparedResponse:
    """A response reduced to what ASGI ``send`` needs."""

    status: int
    headers: tuple[tuple[bytes, bytes], ...]
    body: bytes


def _body_allowed(status: int, method: str) -> bool:
    # 1xx, 204 and 304 never carry a body; HEAD answers carry headers only
    if method == "HEAD":
        return False
    return not (100 <= status < 200 or status in {204, 304})


def encode_headers(response: Response, body_length: int) -> list[tuple[bytes, bytes]]:
    """Raw ASGI header pairs for *response*, with a computed Content-Length.

    Raises ``UnicodeEncodeError`` for a header that is not Latin-1.
    """
    raw: list[tuple[bytes, bytes]] = [
        (b"content-type", response.content_type.encode("latin-1")),
    ]
    for name, value in response.headers:
        if name.lower() == "content-length":
            continue
        raw.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    raw.extend(
        (b"set-cookie", cookie.to_header_value().encode("latin-1")) for cookie in response.cookies
    )
    raw.append((b"content-length", str(body_length).encode("latin-1")))
    return raw


def prepare_response(response: Response, *, method: str = "GET") -> PreparedResponse:
    """Encode *response* for sending. Nothing is sent yet."""
    full_body = response.body_bytes
    body = full_body if _body_allowed(response.status, method) else b""
    # HEAD keeps the length the GET body would have had
    length = len(full_body) if method == "HEAD" else len(body)
    return PreparedResponse(
        status=response.status,
        headers=tuple(encode_headers(response, length)),
        body=body,
    )


async def send_prepared(
    prepared: PreparedResponse,
    send: Send,
    *,
    write_timeout: float | None = None,
) -> None:
    """Send a prepared response through ASGI ``send``.

    The whole write is bounded by *write_timeout*; on expiry the
    ``TimeoutError`` propagates and the server drops the connection.
    """
    with anyio.fail_after(write_timeout):
        await send(
            {
                "type": "http.response.start",
                "status": prepared.status,
                "headers": list(prepared.headers),
            }
        )
        await send({"type": "http.response.body", "body": prepared.body})


async def send_response(
    response: Response,
    send: Send,
    *,
    method: str = "GET",
    write_timeout: float | None = None,
) -> None:
    """Prepare and send *response* in one step."""
    await send_prepared(
        prepare_response(response, method=method), send, write_timeout=write_timeout
    )

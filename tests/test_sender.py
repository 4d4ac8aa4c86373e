"""Tests for waypoint.server.sender: Response to ASGI messages."""

from typing import Any

import anyio
import pytest

from waypoint.http.response import Response
from waypoint.server.sender import prepare_response, send_prepared, send_response


class _Capture:
    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    async def __call__(self, message: dict[str, Any]) -> None:
        self.messages.append(message)

    @property
    def headers(self) -> dict[bytes, list[bytes]]:
        result: dict[bytes, list[bytes]] = {}
        for name, value in self.messages[0]["headers"]:
            result.setdefault(name, []).append(value)
        return result

    @property
    def body(self) -> bytes:
        return b"".join(m.get("body", b"") for m in self.messages[1:])


class TestSendResponse:
    async def test_start_and_body(self) -> None:
        send = _Capture()
        await send_response(Response("Hello World"), send)
        assert send.messages[0]["type"] == "http.response.start"
        assert send.messages[0]["status"] == 200
        assert send.body == b"Hello World"
        assert send.headers[b"content-length"] == [b"11"]
        assert send.headers[b"content-type"] == [b"text/plain; charset=utf-8"]

    async def test_custom_headers_lower_cased(self) -> None:
        send = _Capture()
        await send_response(Response("x").with_header("X-Trace", "abc"), send)
        assert send.headers[b"x-trace"] == [b"abc"]

    async def test_explicit_content_length_replaced(self) -> None:
        send = _Capture()
        await send_response(Response("abc").with_header("Content-Length", "999"), send)
        assert send.headers[b"content-length"] == [b"3"]

    async def test_cookies(self) -> None:
        send = _Capture()
        response = Response().with_cookie("a", "1").with_cookie("b", "2")
        await send_response(response, send)
        assert len(send.headers[b"set-cookie"]) == 2

    async def test_head_drops_body_keeps_length(self) -> None:
        send = _Capture()
        await send_response(Response("Hello"), send, method="HEAD")
        assert send.body == b""
        assert send.headers[b"content-length"] == [b"5"]

    @pytest.mark.parametrize("status", [204, 304])
    async def test_bodyless_status(self, status: int) -> None:
        send = _Capture()
        await send_response(Response("ignored", status=status), send)
        assert send.body == b""
        assert send.headers[b"content-length"] == [b"0"]

    async def test_write_timeout(self) -> None:
        async def slow_send(message: dict[str, Any]) -> None:
            await anyio.sleep(10)

        with pytest.raises(TimeoutError):
            await send_response(Response("x"), slow_send, write_timeout=0.01)


class TestPrepareResponse:
    def test_nothing_sent_until_send_prepared(self) -> None:
        prepared = prepare_response(Response("Hello"))
        assert prepared.status == 200
        assert prepared.body == b"Hello"
        assert (b"content-length", b"5") in prepared.headers

    def test_non_latin1_header_raises(self) -> None:
        with pytest.raises(UnicodeEncodeError):
            prepare_response(Response("x").with_header("X-Name", "文件"))

    async def test_send_prepared(self) -> None:
        send = _Capture()
        await send_prepared(prepare_response(Response("abc"), method="HEAD"), send)
        assert send.body == b""
        assert send.headers[b"content-length"] == [b"3"]

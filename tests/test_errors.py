"""Tests for the exception hierarchy and the global error boundary."""

import logging

import pytest

from waypoint.errors import (
    BindingError,
    ConfigurationError,
    DecodeError,
    HTTPError,
    NotFound,
    UnsupportedMediaType,
    WaypointError,
)
from waypoint.http.request import Request
from waypoint.http.response import Response
from waypoint.server.errors import default_error_handler, error_message, handle_error


def _request(method: str = "GET", path: str = "/error") -> Request:
    return Request.from_asgi({"type": "http", "method": method, "path": path, "headers": []})


class TestHierarchy:
    def test_all_derive_from_base(self) -> None:
        for cls in (ConfigurationError, HTTPError, DecodeError):
            assert issubclass(cls, WaypointError)

    def test_http_error_str(self) -> None:
        assert str(HTTPError(status=418, detail="teapot")) == "418: teapot"
        assert str(HTTPError(status=418)) == "418"

    def test_not_found(self) -> None:
        assert NotFound().status == 404

    def test_unsupported_media_type(self) -> None:
        exc = UnsupportedMediaType(None)
        assert exc.status == 415
        assert "<missing>" in exc.detail

    def test_binding_error(self) -> None:
        exc = BindingError({"username": ["username is required."]})
        assert exc.status == 422
        assert exc.errors == {"username": ["username is required."]}

    def test_decode_error_carries_cause(self) -> None:
        cause = ValueError("bad")
        exc = DecodeError("application/json", cause)
        assert exc.cause is cause
        assert str(exc) == "cannot decode application/json body: bad"


class TestDefaultErrorHandler:
    def test_plain_exception_is_500(self) -> None:
        response = default_error_handler(_request(), ValueError("Ups"))
        assert response.status == 500
        assert response.text == "Error: Ups"

    def test_http_error_is_500_with_detail(self) -> None:
        response = default_error_handler(_request(), HTTPError(status=413, detail="too big"))
        assert response.status == 500
        assert response.text == "Error: too big"

    def test_not_found_error_is_500(self) -> None:
        response = default_error_handler(_request(), NotFound("gone"))
        assert response.status == 500
        assert response.text == "Error: gone"

    def test_http_error_headers_copied(self) -> None:
        exc = HTTPError(status=401, detail="login", headers=(("WWW-Authenticate", "Basic"),))
        assert default_error_handler(_request(), exc).header("WWW-Authenticate") == "Basic"

    def test_decode_error_is_500(self) -> None:
        exc = DecodeError("application/xml", ValueError("broken"))
        response = default_error_handler(_request(), exc)
        assert response.status == 500
        assert response.text.startswith("Error: cannot decode application/xml body")

    def test_error_message_without_detail(self) -> None:
        assert error_message(HTTPError(status=503)) == "503"


class TestHandleError:
    async def test_default(self) -> None:
        response = await handle_error(RuntimeError("Ups"), _request())
        assert response.status == 500
        assert response.text == "Error: Ups"

    async def test_custom_handler_replaces_default(self) -> None:
        def handler(request: Request, exc: Exception) -> Response:
            return Response(f"custom {exc}", status=503)

        response = await handle_error(RuntimeError("Ups"), _request(), handler)
        assert response.status == 503
        assert response.text == "custom Ups"

    async def test_async_custom_handler_value_negotiated(self) -> None:
        async def handler(request: Request, exc: Exception) -> dict[str, str]:
            return {"error": str(exc)}

        response = await handle_error(RuntimeError("Ups"), _request(), handler)
        assert response.text == '{"error":"Ups"}'

    async def test_failing_custom_handler_falls_back(self) -> None:
        def handler(request: Request, exc: Exception) -> Response:
            raise KeyError("handler broke")

        response = await handle_error(RuntimeError("Ups"), _request(), handler)
        assert response.status == 500
        assert response.text == "Error: Ups"

    async def test_500_logged_with_traceback(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="waypoint.server"):
            await handle_error(RuntimeError("Ups"), _request())
        (record,) = [r for r in caplog.records if r.name == "waypoint.server"]
        assert record.levelno == logging.ERROR
        assert record.exc_info is not None

    async def test_client_error_logged_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="waypoint.server"):
            await handle_error(NotFound("gone"), _request())
        levels = {r.levelno for r in caplog.records if r.name == "waypoint.server"}
        assert levels == {logging.DEBUG}

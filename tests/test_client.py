"""Tests for waypoint.http.client: outbound requests through httpx."""

import httpx
import pytest

from waypoint.app import App
from waypoint.errors import ClientError
from waypoint.http.client import Client, fetch
from waypoint.http.request import Request

BASE = "http://testserver"


@pytest.fixture
def app() -> App:
    app = App()

    @app.get("/")
    def index():
        return "Example Domain"

    @app.get("/hello")
    def hello(request: Request) -> str:
        return "Hello " + request.query.get("name", "Guest")

    @app.post("/login")
    async def login(request: Request) -> dict[str, str]:
        body = await request.json()
        return {"user": body["username"]}

    @app.get("/error")
    def error():
        raise ValueError("Ups")

    return app


def _transport(app: App) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=app)


class TestOutboundClient:
    async def test_get_string(self, app: App) -> None:
        async with Client(BASE, transport=_transport(app)) as client:
            response = await client.get("/")
        assert response.status == 200
        assert "Example Domain" in response.text
        assert response.headers["content-type"].startswith("text/plain")
        assert response.ok

    async def test_query_params(self, app: App) -> None:
        async with Client(BASE, transport=_transport(app)) as client:
            response = await client.get("/hello", params={"name": "roni"})
        assert response.text == "Hello roni"

    async def test_post_json(self, app: App) -> None:
        async with Client(BASE, transport=_transport(app)) as client:
            response = await client.post("/login", json={"username": "roni"})
        assert response.json() == {"user": "roni"}

    async def test_error_status_returned_not_raised(self, app: App) -> None:
        async with Client(BASE, transport=_transport(app)) as client:
            response = await client.get("/error")
        assert response.status == 500
        assert response.text == "Error: Ups"
        assert not response.ok

    async def test_not_found(self, app: App) -> None:
        async with Client(BASE, transport=_transport(app)) as client:
            response = await client.delete("/")
        assert response.status == 404
        assert response.text == "Cannot DELETE /"


class TestFetch:
    async def test_one_shot(self, app: App) -> None:
        response = await fetch("GET", f"{BASE}/", transport=_transport(app))
        assert response.status == 200
        assert response.url == f"{BASE}/"

    async def test_transport_failure_raises_client_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ClientError) as exc_info:
            await fetch("GET", "http://unreachable.invalid/", transport=httpx.MockTransport(refuse))
        assert exc_info.value.url == "http://unreachable.invalid/"
        assert isinstance(exc_info.value.cause, httpx.ConnectError)

"""Prefork: several worker processes sharing one listening socket.

Each worker re-imports this module, so the parent/child banner below
prints once in the parent and once per worker. Requests under ``/api``
pass through a middleware that prints before and after the handler.

Run:
    cd examples/prefork && python app.py
"""

from waypoint import App, AppConfig, Request, Response, is_child, serve
from waypoint.middleware.protocol import Next

config = AppConfig(
    host="localhost",
    port=3000,
    idle_timeout=5,
    read_timeout=5,
    write_timeout=5,
    prefork=True,
)

app = App(config)


async def announce(request: Request, next: Next) -> Response:
    print("I 'am middleware before processing request")
    response = await next(request)
    print("I 'am middleware after processing request")
    return response


app.use("/api", announce)


@app.get("/api/hello")
def hello():
    return "Hello world"


if is_child():
    print("I 'am is child process")
else:
    print("I 'am a parent process")


if __name__ == "__main__":
    serve("app:app", config)

"""Basics: every core feature in one app.

Demonstrates query and path parameters, headers and cookies, form,
multipart, JSON and XML bodies bound onto dataclasses, JSON responses,
downloads, static files, templates, route groups, and a custom error
handler.

Run:
    cd examples/basics && python app.py
"""

from dataclasses import dataclass
from pathlib import Path

from waypoint import AccessLog, App, AppConfig, Request, Response, Template, download

HERE = Path(__file__).parent
SOURCE = HERE / "source"
TARGET = HERE / "target"


def on_error(request: Request, exc: Exception) -> Response:
    return Response("Error: " + str(exc), status=500)


app = App(AppConfig(template_dir=HERE / "templates", port=3000), error_handler=on_error)
app.use(AccessLog())


@dataclass(frozen=True, slots=True)
class LoginRequest:
    username: str
    password: str


@dataclass(frozen=True, slots=True)
class RegisterRequest:
    username: str
    password: str
    name: str


@app.get("/")
def index():
    return "Hello World"


@app.get("/hello")
def hello(request: Request):
    return "Hello " + request.query.get("name", "Guest")


@app.get("/request")
def greet(request: Request):
    first = request.headers.get("firstname", "")
    last = request.cookies.get("lastname", "")
    return f"Hello {first} {last}"


@app.get("/user/:userId/orders/:orderId")
def order(userId: str, orderId: str):
    return f"Get Order {orderId} From {userId}"


@app.post("/hello")
async def form_hello(request: Request):
    return "Hello " + await request.form_value("name")


@app.post("/upload")
async def upload(request: Request):
    form = await request.form()
    file = form.files["files"]
    TARGET.mkdir(exist_ok=True)
    await file.save(TARGET / file.filename)
    return "Upload success"


@app.post("/login")
def login(body: LoginRequest):
    return f"Login {body.username} success"


@app.post("/register")
def register(body: RegisterRequest):
    return f"Register {body.username} success"


@app.get("/user")
def user():
    return {"username": "roni", "name": "Roni Purwanto"}


@app.get("/download")
def download_file():
    return download(SOURCE / "contoh.txt", "contoh.txt")


@app.get("/view")
def view():
    return Template("index", title="Hello Title", header="Hello Header", content="Hello Content")


@app.get("/error")
def error():
    raise ValueError("Ups")


def hello_world():
    return "Hello World"


api = app.group("/api")
api.get("/hello", hello_world)
api.get("/world", hello_world)

web = app.group("/web")
web.get("/hello", hello_world)
web.get("/world", hello_world)

app.static("/public", SOURCE)


if __name__ == "__main__":
    app.run()

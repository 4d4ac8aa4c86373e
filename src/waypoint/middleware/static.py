"""Static file serving and file downloads.

``StaticFiles`` is a route handler mounted by ``App.static(prefix, dir)``
under ``GET prefix/*filepath``; the wildcard binds the file path relative
to the directory. Missing files answer with the router's not-found
response, so ``/public/nope.txt`` reads ``Cannot GET /public/nope.txt``.
"""

import mimetypes
from pathlib import Path
from urllib.parse import quote

from waypoint.errors import NotFound
from waypoint.http.request import Request
from waypoint.http.response import Response

FILEPATH_PARAM = "filepath"


def _guess_type(path: Path) -> str:
    content_type, _ = mimetypes.guess_type(str(path))
    return content_type or "application/octet-stream"


def file_response(path: Path, *, cache_control: str | None = None) -> Response:
    """Read *path* into a response with a guessed content type."""
    response = Response(body=path.read_bytes(), content_type=_guess_type(path))
    if cache_control:
        response = response.with_header("Cache-Control", cache_control)
    return response


class StaticFiles:
    """Serve files from *directory*.

    Security: resolves symlinks and verifies the final path is within
    the configured directory; anything outside it is a 403.

    Usage::

        app.static("/public", "./source")
        # GET /public/contoh.txt -> ./source/contoh.txt
    """

    __slots__ = ("_cache_control", "_directory", "_index")

    def __init__(
        self,
        directory: str | Path,
        *,
        index: str = "index.html",
        cache_control: str = "public, max-age=3600",
    ) -> None:
        self._directory = Path(directory).resolve()
        self._index = index
        self._cache_control = cache_control

    @property
    def directory(self) -> Path:
        return self._directory

    def resolve(self, relative: str) -> Path | None:
        """Absolute path for *relative*, or ``None`` when it escapes the directory."""
        relative = relative.lstrip("/")
        file_path = (self._directory / relative).resolve() if relative else self._directory
        if not file_path.is_relative_to(self._directory):
            return None
        return file_path

    async def __call__(self, request: Request) -> Response:
        from waypoint.routing.router import not_found

        file_path = self.resolve(request.path_params.get(FILEPATH_PARAM, ""))
        if file_path is None:
            return Response(body="Forbidden", status=403)

        if file_path.is_dir():
            file_path = file_path / self._index

        if not file_path.is_file():
            return not_found(request)

        return file_response(file_path, cache_control=self._cache_control)


def download(path: str | Path, filename: str | None = None) -> Response:
    """Send *path* as an attachment named *filename* (default: its basename).

    Raises ``NotFound`` when the file does not exist.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise NotFound(f"File not found: {file_path.name}")
    return file_response(file_path).with_header(
        "Content-Disposition", content_disposition(filename or file_path.name)
    )


def content_disposition(filename: str) -> str:
    """``attachment`` header value for *filename*.

    Non-ASCII names get an ASCII ``filename`` fallback plus the
    RFC 5987 ``filename*`` form, so the header stays Latin-1 encodable.
    """
    name = filename.replace('"', "").replace("\\", "")
    if name.isascii():
        return f'attachment; filename="{name}"'
    fallback = "".join(c if c.isascii() else "_" for c in name)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(name, safe='')}"

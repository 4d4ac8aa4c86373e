"""Form bodies: URL-encoded and multipart.

URL-encoded forms use stdlib ``urllib.parse``. Multipart bodies are
parsed with ``python-multipart``, which is binary-safe: file parts keep
their bytes untouched and carry the client-supplied filename.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from os import PathLike
from typing import Any
from urllib.parse import parse_qs

import anyio
from python_multipart.multipart import MultipartParser, parse_options_header


@dataclass(frozen=True, slots=True)
class UploadFile:
    """An uploaded file from a multipart form submission.

    The content is held in memory; typical web uploads are small enough
    that streaming to disk is not worth the complexity here.
    """

    filename: str
    content_type: str
    size: int
    content: bytes

    async def read(self) -> bytes:
        """Return the file content as bytes."""
        return self.content

    async def save(self, path: str | PathLike[str]) -> None:
        """Write the file content to *path*. Parent directories must exist."""
        await anyio.Path(path).write_bytes(self.content)

    def __repr__(self) -> str:
        return f"UploadFile({self.filename!r}, {self.content_type!r}, {self.size} bytes)"


class FormData(Mapping[str, str]):
    """Parsed form fields plus uploaded files.

    ``form["name"]`` returns the first value, ``get_list`` all of them.
    Uploaded files live in ``form.files`` keyed by field name.
    """

    __slots__ = ("_data", "_files")

    def __init__(
        self,
        data: dict[str, list[str]],
        files: dict[str, UploadFile] | None = None,
    ) -> None:
        object.__setattr__(self, "_data", data)
        object.__setattr__(self, "_files", files or {})

    @property
    def files(self) -> Mapping[str, UploadFile]:
        """Uploaded files by field name."""
        return self._files

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"{type(self).__name__}({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key* (checkboxes, multi-selects)."""
        return list(self._data.get(key, []))


def parse_fields(text: str) -> dict[str, list[str]]:
    """``"a=1&a=2&b="`` -> ``{"a": ["1", "2"], "b": [""]}``.

    ``+`` decodes to a space and percent-escapes are resolved as UTF-8.
    Blank values are kept.
    """
    return parse_qs(text, keep_blank_values=True)


def parse_urlencoded(body: bytes) -> FormData:
    """Parse an ``application/x-www-form-urlencoded`` body.

    Non UTF-8 input raises ``UnicodeDecodeError``.
    """
    return FormData(parse_fields(body.decode("utf-8")))


def parse_multipart(body: bytes, content_type: str) -> FormData:
    """Parse a ``multipart/form-data`` body.

    Raises ``ValueError`` when the boundary parameter is missing or the
    body is not valid multipart for that boundary.
    """
    _, options = parse_options_header(content_type)
    boundary = options.get(b"boundary")
    if not boundary:
        msg = "multipart body is missing the boundary parameter"
        raise ValueError(msg)

    data: dict[str, list[str]] = {}
    files: dict[str, UploadFile] = {}

    # Per-part state, reset at every part boundary
    part_headers: dict[str, str] = {}
    header_field = bytearray()
    header_value = bytearray()
    part_body = bytearray()
    parts_seen = 0

    def on_part_begin() -> None:
        nonlocal parts_seen
        parts_seen += 1
        part_headers.clear()
        part_body.clear()

    def on_header_field(chunk: bytes, start: int, end: int) -> None:
        header_field.extend(chunk[start:end])

    def on_header_value(chunk: bytes, start: int, end: int) -> None:
        header_value.extend(chunk[start:end])

    def on_header_end() -> None:
        name = header_field.decode("latin-1").strip().lower()
        part_headers[name] = header_value.decode("utf-8", errors="replace").strip()
        header_field.clear()
        header_value.clear()

    def on_part_data(chunk: bytes, start: int, end: int) -> None:
        part_body.extend(chunk[start:end])

    def on_part_end() -> None:
        disposition = part_headers.get("content-disposition")
        if disposition is None:
            return
        _, params = parse_options_header(disposition)
        raw_name = params.get(b"name")
        if raw_name is None:
            return
        name = raw_name.decode("utf-8")
        raw_filename = params.get(b"filename")
        if raw_filename is not None:
            content = bytes(part_body)
            files[name] = UploadFile(
                filename=raw_filename.decode("utf-8"),
                content_type=part_headers.get("content-type", "application/octet-stream"),
                size=len(content),
                content=content,
            )
        else:
            data.setdefault(name, []).append(part_body.decode("utf-8", errors="replace"))

    callbacks: dict[str, Any] = {
        "on_part_begin": on_part_begin,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
        "on_header_end": on_header_end,
        "on_part_data": on_part_data,
        "on_part_end": on_part_end,
    }

    parser = MultipartParser(boundary, callbacks)
    parser.write(body)
    parser.finalize()

    if body.strip() and parts_seen == 0:
        msg = "multipart body contains no parts for the declared boundary"
        raise ValueError(msg)

    return FormData(data, files)

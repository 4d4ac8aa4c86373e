"""Content decoder dispatch: Content-Type selects the body parser.

Every decoder turns raw body bytes into the same shape, a read-only
``DecodedBody`` mapping of field name to value, tagged with the format
it came from so binding can pick per-format field aliases.

Dispatch table::

    application/json                   -> json
    application/x-www-form-urlencoded  -> form
    multipart/form-data                -> multipart
    application/xml, text/xml          -> xml

Suffix types (``application/problem+json``, ``application/atom+xml``)
dispatch on the suffix. A malformed body raises ``DecodeError``; a
missing or unknown type raises ``UnsupportedMediaType``.
"""

import json
import logging
import xml.etree.ElementTree as ET
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from waypoint.errors import DecodeError, UnsupportedMediaType
from waypoint.http.forms import UploadFile, parse_multipart, parse_urlencoded

logger = logging.getLogger("waypoint.decoding")


class DecodedBody(Mapping[str, Any]):
    """Structured request body, independent of its wire format.

    ``body["username"]`` returns the first value for the key. JSON values
    keep their JSON types; form and XML values are strings.
    """

    __slots__ = ("_data", "_files", "format")

    def __init__(
        self,
        format: str,
        data: dict[str, list[Any]],
        files: Mapping[str, UploadFile] | None = None,
    ) -> None:
        self.format = format
        self._data = data
        self._files = dict(files or {})

    @property
    def files(self) -> Mapping[str, UploadFile]:
        """Uploaded files (multipart only)."""
        return self._files

    def __getitem__(self, key: str) -> Any:
        return self._data[key][0]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"DecodedBody({self.format!r}, {dict(self)!r})"

    def get_list(self, key: str) -> list[Any]:
        """Return every value for *key* (repeated form keys, XML tags)."""
        return list(self._data.get(key, []))


type Decoder = Callable[[bytes, str], DecodedBody]


def media_type(content_type: str | None) -> str:
    """Lower-cased media type without parameters: ``"text/xml; charset=x"`` -> ``"text/xml"``."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def decode_json(body: bytes, content_type: str) -> DecodedBody:
    """Decode a JSON object body. Any other top-level value is malformed."""
    value = json.loads(body)
    if not isinstance(value, dict):
        msg = f"expected a JSON object, got {type(value).__name__}"
        raise ValueError(msg)
    return DecodedBody("json", {key: [item] for key, item in value.items()})


def decode_form(body: bytes, content_type: str) -> DecodedBody:
    form = parse_urlencoded(body)
    return DecodedBody("form", {key: form.get_list(key) for key in form})


def decode_multipart(body: bytes, content_type: str) -> DecodedBody:
    form = parse_multipart(body, content_type)
    return DecodedBody("multipart", {key: form.get_list(key) for key in form}, form.files)


def _local_name(tag: str) -> str:
    # "{urn:x}username" -> "username"
    return tag.rsplit("}", 1)[-1]


def decode_xml(body: bytes, content_type: str) -> DecodedBody:
    """Decode an XML document: each child of the root maps tag -> text.

    Namespaces are dropped from tag names and text is stripped of the
    surrounding whitespace that pretty-printed documents carry.
    """
    root = ET.fromstring(body)
    data: dict[str, list[Any]] = {}
    for child in root:
        data.setdefault(_local_name(child.tag), []).append((child.text or "").strip())
    return DecodedBody("xml", data)


DECODERS: dict[str, Decoder] = {
    "application/json": decode_json,
    "application/x-www-form-urlencoded": decode_form,
    "multipart/form-data": decode_multipart,
    "application/xml": decode_xml,
    "text/xml": decode_xml,
}


def register_decoder(media: str, decoder: Decoder) -> None:
    """Add or replace the decoder for a media type."""
    DECODERS[media_type(media)] = decoder


def find_decoder(content_type: str | None) -> Decoder | None:
    """Return the decoder for *content_type*, honoring ``+json``/``+xml`` suffixes."""
    media = media_type(content_type)
    decoder = DECODERS.get(media)
    if decoder is None and "+" in media:
        suffix = media.rsplit("+", 1)[1]
        decoder = DECODERS.get(f"application/{suffix}")
    return decoder


def decode_body(content_type: str | None, body: bytes) -> DecodedBody:
    """Decode *body* according to *content_type*.

    Raises:
        UnsupportedMediaType: No decoder handles the content type.
        DecodeError: The body is malformed for the declared content type.
    """
    decoder = find_decoder(content_type)
    if decoder is None:
        raise UnsupportedMediaType(content_type)
    assert content_type is not None
    try:
        return decoder(body, content_type)
    except (ValueError, ET.ParseError) as exc:
        # json.JSONDecodeError, UnicodeDecodeError and multipart parse
        # errors are all ValueError subclasses
        logger.debug("decode failed for %s: %s", media_type(content_type), exc)
        raise DecodeError(media_type(content_type), exc) from exc

"""Cookies: the request ``Cookie`` header in, ``Set-Cookie`` directives out.

Values are percent-encoded on the way out and decoded on the way in, so
any text round-trips and the header itself always stays Latin-1.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from urllib.parse import quote, unquote

# RFC 6265 cookie-octet minus "%", which introduces an escape
_VALUE_SAFE = "!#$&'()*+-./:<=>?@[]^_`{|}~"

_SAMESITE = {"lax": "Lax", "strict": "Strict", "none": "None"}


def parse_cookies(header: str) -> dict[str, str]:
    """``"a=1; b=x%20y"`` -> ``{"a": "1", "b": "x y"}``.

    Pairs without ``=`` or without a name are skipped; for a repeated
    name the last pair wins. Surrounding double quotes are removed.
    """
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        name, sep, value = pair.partition("=")
        name = name.strip()
        if not sep or not name:
            continue
        value = value.strip()
        if len(value) > 1 and value[0] == value[-1] == '"':
            value = value[1:-1]
        cookies[name] = unquote(value)
    return cookies


@dataclass(frozen=True, slots=True)
class SetCookie:
    """One ``Set-Cookie`` directive attached to a Response.

    ``samesite`` is ``"lax"``, ``"strict"``, ``"none"`` or empty to omit
    the attribute. ``SameSite=None`` requires ``secure``, as browsers
    drop such cookies otherwise.
    """

    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"

    def __post_init__(self) -> None:
        if not self.name or any(c in self.name for c in ' =;,"\t'):
            msg = f"Invalid cookie name: {self.name!r}"
            raise ValueError(msg)
        samesite = self.samesite.lower()
        if samesite and samesite not in _SAMESITE:
            msg = f"samesite must be one of {sorted(_SAMESITE)}, got {self.samesite!r}"
            raise ValueError(msg)
        if samesite == "none" and not self.secure:
            msg = "SameSite=None cookies must be secure"
            raise ValueError(msg)

    def _attributes(self) -> Iterator[str]:
        if self.max_age is not None:
            yield f"Max-Age={self.max_age}"
        if self.path:
            yield f"Path={self.path}"
        if self.domain:
            yield f"Domain={self.domain}"
        if self.secure:
            yield "Secure"
        if self.httponly:
            yield "HttpOnly"
        if self.samesite:
            yield f"SameSite={_SAMESITE[self.samesite.lower()]}"

    def to_header_value(self) -> str:
        pair = f"{self.name}={quote(self.value, safe=_VALUE_SAFE)}"
        return "; ".join([pair, *self._attributes()])

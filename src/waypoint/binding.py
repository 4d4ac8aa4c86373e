"""Bind decoded request data onto dataclasses.

A single logical field can be sourced from differently named keys per
wire format. Declare the aliases in the field metadata::

    @dataclass(frozen=True, slots=True)
    class RegisterRequest:
        username: str = field(metadata=alias(json="username", form="user", xml="UserName"))
        password: str = ""
        name: str = ""

    register = bind(RegisterRequest, await request.decoded())

Formats without an alias fall back to the field name. Multipart bodies
use the ``form`` alias unless a ``multipart`` alias is given.

Supported field types: ``str``, ``int``, ``float``, ``bool`` and their
``X | None`` forms. Other annotations receive the raw decoded value.
"""

import dataclasses
import types
from collections.abc import Mapping
from typing import Any, get_type_hints

from waypoint.errors import BindingError

ALIAS_KEY = "waypoint.alias"

# Formats that borrow another format's alias when they have none
_FALLBACK_FORMAT = {"multipart": "form", "query": "form"}

_TRUE = ("true", "1", "yes", "on")
_FALSE = ("false", "0", "no", "off", "")


def alias(**names: str) -> dict[str, Any]:
    """Field metadata mapping format name -> source key."""
    return {ALIAS_KEY: dict(names)}


def source_key(f: dataclasses.Field[Any], format: str) -> str:
    """The key that feeds field *f* when decoding *format*."""
    names: Mapping[str, str] = f.metadata.get(ALIAS_KEY, {})
    if format in names:
        return names[format]
    fallback = _FALLBACK_FORMAT.get(format)
    if fallback is not None and fallback in names:
        return names[fallback]
    return f.name


def is_bindable_dataclass(annotation: Any) -> bool:
    """True for user dataclass *types* (not instances, not waypoint's own)."""
    if not isinstance(annotation, type) or not dataclasses.is_dataclass(annotation):
        return False
    module = getattr(annotation, "__module__", "") or ""
    return not module.startswith("waypoint.")


def bind[T](datacls: type[T], data: Mapping[str, Any], format: str | None = None) -> T:
    """Create a *datacls* instance from decoded data.

    *format* defaults to ``data.format`` when *data* is a ``DecodedBody``.

    Raises:
        BindingError: A required field is missing or a value cannot be
            coerced to the annotated type.
    """
    fmt = format or getattr(data, "format", "json")
    hints = get_type_hints(datacls)
    errors: dict[str, list[str]] = {}
    values: dict[str, Any] = {}

    for f in dataclasses.fields(datacls):  # type: ignore[arg-type]
        if not f.init:
            continue
        key = source_key(f, fmt)
        if key not in data:
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                errors.setdefault(f.name, []).append(f"{key} is required.")
            continue

        target = _unwrap_optional(hints.get(f.name, Any))
        try:
            values[f.name] = _coerce(data[key], target)
        except (TypeError, ValueError):
            errors.setdefault(f.name, []).append(
                f"Invalid value for {key}: expected {getattr(target, '__name__', target)}."
            )

    if errors:
        raise BindingError(errors)
    return datacls(**values)


def _coerce(value: Any, target: Any) -> Any:
    if value is None:
        return None
    if target is str:
        return value if isinstance(value, str) else str(value)
    if target is bool:
        if isinstance(value, bool):
            return value
        lowered = str(value).strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        msg = f"not a boolean: {value!r}"
        raise ValueError(msg)
    if target is int:
        if isinstance(value, bool):
            msg = "bool is not an int here"
            raise TypeError(msg)
        return int(value)
    if target is float:
        return float(value)
    return value


def _unwrap_optional(hint: Any) -> Any:
    """``str | None`` -> ``str``."""
    if isinstance(hint, types.UnionType):
        args = [a for a in hint.__args__ if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint

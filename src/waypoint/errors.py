"""Waypoint exception hierarchy.

Shared across Router, App, decoding, and the server frontend so every
module raises and catches the same types.
"""

from dataclasses import dataclass


class WaypointError(Exception):
    """Base for all waypoint-specific errors."""


class ConfigurationError(WaypointError):
    """Raised when app configuration is invalid.

    Typically raised while registering routes or during ``App._freeze()``.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(WaypointError):
    """An error that maps directly to an HTTP status code.

    Raised by handlers, middleware, or the decoding layer. The default
    error boundary answers 500 with ``detail`` in the body; ``status`` is
    there for a custom ``error_handler`` that wants to use it.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: raised by handlers that want the not-found status explicitly."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class UnsupportedMediaType(HTTPError):  # noqa: N818
    """415: the request body has no decoder for its Content-Type."""

    def __init__(self, content_type: str | None) -> None:
        shown = content_type or "<missing>"
        super().__init__(status=415, detail=f"Unsupported content type: {shown}")


class BindingError(HTTPError):
    """422: decoded body could not be bound to the target dataclass.

    Attributes:
        errors: Dict mapping field names to lists of error messages.
    """

    def __init__(self, errors: dict[str, list[str]]) -> None:
        fields = ", ".join(sorted(errors))
        super().__init__(status=422, detail=f"Binding failed for: {fields}")
        object.__setattr__(self, "errors", errors)


class DecodeError(WaypointError):
    """Malformed body for the declared content type.

    Carries the content type and the underlying parser exception. Not an
    ``HTTPError``: it has no status of its own.
    """

    def __init__(self, content_type: str, cause: BaseException) -> None:
        self.content_type = content_type
        self.cause = cause
        super().__init__(f"cannot decode {content_type} body: {cause}")


class ClientError(WaypointError):
    """An outbound request failed before a response arrived.

    Connection failures, timeouts, and protocol errors end up here. A
    response with an error status is not a ``ClientError``.
    """

    def __init__(self, url: str, cause: BaseException) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"request to {url} failed: {cause}")

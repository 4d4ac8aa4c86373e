"""Template return type.

Handlers return ``Template(name, **context)``; negotiation renders it
with the app's kida environment.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Template:
    """Render a named kida template with a string-keyed context.

    Usage::

        return Template("index", title="Hello Title", header="Hello Header")
    """

    name: str
    context: dict[str, Any] = field(default_factory=dict)

    def __init__(self, name: str, /, **context: Any) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "context", context)

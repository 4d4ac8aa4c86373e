"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, typed, no
string-key dict lookups. ``AppConfig.from_env()`` overlays environment
variables on the defaults for deployment.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from waypoint.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(port=3000, idle_timeout=5, prefork=True)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Process model: with prefork, `workers` processes share one socket
    prefork: bool = False
    workers: int = 0  # 0 = one per CPU when prefork is on

    # Transport timeouts in seconds (None = no limit)
    idle_timeout: float | None = 5.0
    read_timeout: float | None = None
    write_timeout: float | None = None

    # Templates
    template_dir: str | Path = "templates"
    template_extension: str = ".html"
    autoescape: bool = True

    # Limits
    max_content_length: int | None = 4 * 1024 * 1024  # 4 MB

    # Logging
    log_level: str = "info"

    def __post_init__(self) -> None:
        if not 0 <= self.port < 65536:
            msg = f"Invalid port: {self.port}. Must be 0-65535."
            raise ConfigurationError(msg)
        if self.workers < 0:
            msg = "workers must be >= 0"
            raise ConfigurationError(msg)
        for name in ("idle_timeout", "read_timeout", "write_timeout"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                msg = f"{name} must be > 0 or None"
                raise ConfigurationError(msg)

    @property
    def worker_count(self) -> int:
        """Processes to run: 1 without prefork, else ``workers`` or the CPU count."""
        if not self.prefork:
            return 1
        return self.workers or os.cpu_count() or 1

    @classmethod
    def from_env(cls, prefix: str = "WAYPOINT_", **overrides: Any) -> "AppConfig":
        """Build a config from ``{prefix}{FIELD}`` environment variables.

        ``WAYPOINT_PORT=3000 WAYPOINT_PREFORK=true`` sets ``port`` and
        ``prefork``. Explicit *overrides* win over the environment. An
        empty value for an optional field (``WAYPOINT_READ_TIMEOUT=``)
        sets it to ``None``.
        """
        values: dict[str, Any] = {}
        for f in fields(cls):
            raw = os.environ.get(f"{prefix}{f.name.upper()}")
            if raw is not None:
                values[f.name] = _parse_env(f.name, f.type, raw)
        values.update(overrides)
        return cls(**values)


def _parse_env(name: str, annotation: Any, raw: str) -> Any:
    text = str(annotation)
    optional = "None" in text
    if optional and raw.strip() == "":
        return None
    try:
        if text.startswith("bool") or annotation is bool:
            return raw.strip().lower() in ("1", "true", "yes", "on")
        if text.startswith("int") or annotation is int:
            return int(raw)
        if text.startswith("float") or annotation is float:
            return float(raw)
    except ValueError as exc:
        msg = f"Environment value for {name!r} is invalid: {raw!r}"
        raise ConfigurationError(msg) from exc
    return raw

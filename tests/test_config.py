"""Tests for waypoint.config: AppConfig frozen dataclass."""

from pathlib import Path

import pytest

from waypoint.config import AppConfig
from waypoint.errors import ConfigurationError


class TestAppConfig:
    def test_defaults(self) -> None:
        cfg = AppConfig()

        assert cfg.host == "127.0.0.1"
        assert cfg.port == 8000
        assert cfg.debug is False
        assert cfg.prefork is False
        assert cfg.idle_timeout == 5.0
        assert cfg.read_timeout is None
        assert cfg.write_timeout is None
        assert cfg.template_dir == "templates"
        assert cfg.template_extension == ".html"
        assert cfg.autoescape is True
        assert cfg.max_content_length == 4 * 1024 * 1024
        assert cfg.log_level == "info"

    def test_override(self) -> None:
        cfg = AppConfig(
            host="localhost",
            port=3000,
            idle_timeout=5,
            read_timeout=5,
            write_timeout=5,
            prefork=True,
        )

        assert cfg.host == "localhost"
        assert cfg.port == 3000
        assert cfg.read_timeout == 5
        assert cfg.prefork is True

    def test_frozen(self) -> None:
        cfg = AppConfig()

        with pytest.raises(AttributeError):
            cfg.debug = True  # type: ignore[misc]

    def test_template_dir_as_path(self) -> None:
        cfg = AppConfig(template_dir=Path("/tmp/templates"))
        assert cfg.template_dir == Path("/tmp/templates")


class TestValidation:
    def test_bad_port(self) -> None:
        with pytest.raises(ConfigurationError, match="port"):
            AppConfig(port=70000)

    def test_negative_workers(self) -> None:
        with pytest.raises(ConfigurationError):
            AppConfig(workers=-1)

    @pytest.mark.parametrize("name", ["idle_timeout", "read_timeout", "write_timeout"])
    def test_non_positive_timeout(self, name: str) -> None:
        with pytest.raises(ConfigurationError, match=name):
            AppConfig(**{name: 0})


class TestWorkerCount:
    def test_single_process_without_prefork(self) -> None:
        assert AppConfig(workers=8).worker_count == 1

    def test_explicit_workers(self) -> None:
        assert AppConfig(prefork=True, workers=3).worker_count == 3

    def test_cpu_count_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("os.cpu_count", lambda: 6)
        assert AppConfig(prefork=True).worker_count == 6


class TestFromEnv:
    def test_reads_prefixed_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WAYPOINT_PORT", "3000")
        monkeypatch.setenv("WAYPOINT_PREFORK", "true")
        monkeypatch.setenv("WAYPOINT_IDLE_TIMEOUT", "2.5")
        monkeypatch.setenv("WAYPOINT_HOST", "0.0.0.0")

        cfg = AppConfig.from_env()
        assert cfg.port == 3000
        assert cfg.prefork is True
        assert cfg.idle_timeout == 2.5
        assert cfg.host == "0.0.0.0"

    def test_empty_optional_is_none(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WAYPOINT_IDLE_TIMEOUT", "")
        assert AppConfig.from_env().idle_timeout is None

    def test_overrides_win(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WAYPOINT_PORT", "3000")
        assert AppConfig.from_env(port=4000).port == 4000

    def test_custom_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MYAPP_DEBUG", "1")
        assert AppConfig.from_env("MYAPP_").debug is True

    def test_invalid_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WAYPOINT_WORKERS", "many")
        with pytest.raises(ConfigurationError, match="workers"):
            AppConfig.from_env()

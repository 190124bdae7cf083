"""Tests for corenet.config -- XDG paths, user config, environment, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from pydantic import ValidationError

from corenet.config import (
    get_cache_dir,
    get_config_dir,
    load_client_config,
    load_env_config,
    load_user_config,
)
from corenet.exceptions import ConfigError
from corenet.models import DEFAULT_CACHE_DIRNAME, ClientConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write *data* as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPathsLinux:
    """XDG paths on Linux (the default XDG platform)."""

    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("corenet.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "corenet"
        assert not result.exists()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("corenet.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "custom"))
        assert get_config_dir() == tmp_path / "custom" / "corenet"

    def test_cache_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("corenet.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_cache_dir() == tmp_path / ".cache" / "corenet"

    def test_cache_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("corenet.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg-cache"))
        assert get_cache_dir() == tmp_path / "xdg-cache" / "corenet"


class TestXDGPathsFallback:
    """Non-XDG platforms (macOS, Windows) use ~/.corenet/."""

    def test_config_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("corenet.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".corenet"

    def test_cache_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("corenet.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_cache_dir() == tmp_path / ".corenet" / "cache"


# ---------------------------------------------------------------------------
# ClientConfig model
# ---------------------------------------------------------------------------


class TestClientConfig:
    def test_defaults(self, isolated_config: Path) -> None:
        config = ClientConfig()
        assert config.connect_timeout == 30
        assert config.read_timeout == 30
        assert config.call_timeout == 120
        assert config.cache_max_bytes == 5 * 1024 * 1024
        assert config.enable_verbose_logging is False
        assert config.cache_directory == get_cache_dir() / DEFAULT_CACHE_DIRNAME
        assert config.cache_enabled

    @pytest.mark.parametrize("field", ["connect_timeout", "read_timeout", "call_timeout"])
    def test_timeouts_must_be_positive(self, field: str) -> None:
        with pytest.raises(ValidationError):
            ClientConfig(**{field: 0}, cache_directory="/tmp/c")

    def test_negative_cache_size_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ClientConfig(cache_max_bytes=-1, cache_directory="/tmp/c")

    def test_zero_cache_size_disables_cache(self) -> None:
        assert not ClientConfig(cache_max_bytes=0, cache_directory="/tmp/c").cache_enabled

    def test_unknown_fields_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ClientConfig(retries=3, cache_directory="/tmp/c")

    def test_frozen(self) -> None:
        config = ClientConfig(cache_directory="/tmp/c")
        with pytest.raises(ValidationError):
            config.read_timeout = 1  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


class TestUserConfig:
    def test_missing_file_is_empty(self, isolated_config: Path) -> None:
        assert load_user_config() == {}

    def test_default_location(self, isolated_config: Path) -> None:
        _write_json(get_config_dir() / "config.json", {"read_timeout": 12})
        assert load_user_config() == {"read_timeout": 12}

    def test_invalid_json_raises_config_error(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid config file"):
            load_user_config(path)

    def test_non_object_raises_config_error(self, tmp_path: Path) -> None:
        path = tmp_path / "list.json"
        _write_json(path, [1, 2])
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_user_config(path)


class TestEnvConfig:
    def test_only_set_variables(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CORENET_READ_TIMEOUT", "5")
        monkeypatch.setenv("CORENET_VERBOSE", "")
        assert load_env_config() == {"read_timeout": "5"}


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestLoadClientConfig:
    def test_defaults_only(self, isolated_config: Path) -> None:
        assert load_client_config() == ClientConfig()

    def test_precedence_chain(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(
            get_config_dir() / "config.json",
            {"connect_timeout": 11, "read_timeout": 12, "call_timeout": 13},
        )
        monkeypatch.setenv("CORENET_READ_TIMEOUT", "22")
        monkeypatch.setenv("CORENET_CALL_TIMEOUT", "23")

        config = load_client_config(call_timeout=33, connect_timeout=None)
        assert config.connect_timeout == 11
        assert config.read_timeout == 22
        assert config.call_timeout == 33

    def test_explicit_config_file(self, isolated_config: Path) -> None:
        path = isolated_config / "custom.json"
        _write_json(path, {"cache_max_bytes": 0, "enable_verbose_logging": True})
        config = load_client_config(path)
        assert not config.cache_enabled
        assert config.enable_verbose_logging

    def test_env_values_are_coerced(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CORENET_CACHE_DIR", str(isolated_config / "elsewhere"))
        monkeypatch.setenv("CORENET_CACHE_MAX_BYTES", "1024")
        monkeypatch.setenv("CORENET_VERBOSE", "true")
        config = load_client_config()
        assert config.cache_directory == isolated_config / "elsewhere"
        assert config.cache_max_bytes == 1024
        assert config.enable_verbose_logging is True

    def test_invalid_value_raises_config_error(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CORENET_CONNECT_TIMEOUT", "-1")
        with pytest.raises(ConfigError, match="Invalid client configuration"):
            load_client_config()

    def test_unknown_key_in_file_raises_config_error(self, isolated_config: Path) -> None:
        _write_json(get_config_dir() / "config.json", {"base_url": "https://x"})
        with pytest.raises(ConfigError):
            load_client_config()

"""Configuration loading with XDG paths and precedence resolution.

This module resolves the :class:`~corenet.models.ClientConfig` a host
application hands to :func:`~corenet.client.build_client`:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.corenet/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_cache_dir`.
* **User config** -- an optional JSON file at
  ``<config_dir>/config.json`` holding any :class:`ClientConfig` field.
* **Environment** -- ``CORENET_*`` variables, see :data:`ENV_VARS`.
* **Precedence resolution** -- :func:`load_client_config` merges explicit
  overrides, environment variables, the user config file, and defaults.

Nothing here is cached: every call re-reads its sources, so building two
clients from two calls never shares hidden state.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from corenet.exceptions import ConfigError
from corenet.models import ClientConfig

_APP_NAME = "corenet"
_CONFIG_FILENAME = "config.json"

ENV_VARS: dict[str, str] = {
    "CORENET_CONNECT_TIMEOUT": "connect_timeout",
    "CORENET_READ_TIMEOUT": "read_timeout",
    "CORENET_CALL_TIMEOUT": "call_timeout",
    "CORENET_CACHE_DIR": "cache_directory",
    "CORENET_CACHE_MAX_BYTES": "cache_max_bytes",
    "CORENET_VERBOSE": "enable_verbose_logging",
}
"""Environment variable name -> :class:`ClientConfig` field."""


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory without creating it.

    On Linux/BSD: ``$XDG_CONFIG_HOME/corenet/`` (default ``~/.config/corenet/``).
    On macOS/Windows: ``~/.corenet/``.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    return _fallback_base_dir()


def get_cache_dir() -> Path:
    """Return the cache root directory without creating it.

    The response cache lives in a subdirectory of this path; its contents can
    be deleted at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/corenet/`` (default ``~/.cache/corenet/``).
    On macOS/Windows: ``~/.corenet/cache/``.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    return _fallback_base_dir() / "cache"


# --- Sources ---


def load_user_config(path: Optional[Path] = None) -> dict[str, Any]:
    """Load the user config file as a plain dict.

    Args:
        path: Explicit file to read. Defaults to ``<config_dir>/config.json``.

    Returns:
        The parsed JSON object, or an empty dict when the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = path or get_config_dir() / _CONFIG_FILENAME
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid config file at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config file at {path}: expected a JSON object")
    return data


def load_env_config() -> dict[str, str]:
    """Collect the ``CORENET_*`` variables that are set and non-empty."""
    values: dict[str, str] = {}
    for env_var, field_name in ENV_VARS.items():
        value = os.environ.get(env_var)
        if value:
            values[field_name] = value
    return values


# --- Precedence resolution ---


def load_client_config(
    config_file: Optional[Path] = None,
    **overrides: Any,
) -> ClientConfig:
    """Resolve a :class:`ClientConfig` with the full precedence chain.

    Precedence (high to low):
        1. Keyword ``overrides`` whose value is not ``None``
        2. Environment variables (:data:`ENV_VARS`)
        3. User config file (``~/.config/corenet/config.json``)
        4. Defaults

    Raises:
        ConfigError: If any source holds an unknown key or an invalid value
            (for example a non-positive timeout).
    """
    merged: dict[str, Any] = {}
    merged.update(load_user_config(config_file))
    merged.update(load_env_config())
    merged.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return ClientConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid client configuration: {exc}") from exc

"""Shared test fixtures for corenet.

Provides isolated config environments, a per-test cache directory, helpers
for building clients on top of :class:`httpx.MockTransport`, and the Typer
CLI runner. These fixtures are automatically discovered by pytest.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from corenet.client import Client, build_client
from corenet.config import ENV_VARS
from corenet.models import ClientConfig
from corenet.output import OutputFormat, OutputManager, reset_output, set_output

Handler = Callable[[httpx.Request], httpx.Response]


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references become stale. Resetting forces a
    fresh manager on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME and XDG_CACHE_HOME at subdirectories of
    tmp_path and clears every CORENET_* variable, so tests never touch
    the real user config or cache.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Client fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client_config(tmp_path: Path) -> ClientConfig:
    """Short timeouts and a cache directory under tmp_path."""
    return ClientConfig(
        connect_timeout=5,
        read_timeout=5,
        call_timeout=10,
        cache_directory=tmp_path / "http-cache",
    )


@pytest.fixture
def make_client(client_config: ClientConfig):
    """Factory building clients on a MockTransport; closes them after the test.

    Usage::

        client = make_client(handler)
        client = make_client(handler, debug=True, interceptors=[...])
    """
    clients: list[Client] = []

    def _make(handler: Handler, **kwargs: Any) -> Client:
        kwargs.setdefault("config", client_config)
        client = build_client(
            transport=httpx.MockTransport(handler),
            async_transport=httpx.MockTransport(handler),
            **kwargs,
        )
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the duration of a test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()

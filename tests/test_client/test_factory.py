"""Tests for client assembly: interceptor order, debug resolution, timeouts."""

from __future__ import annotations

import httpx
import pytest

from corenet.client import build_client, build_interceptors, transport_timeout
from corenet.interceptors import (
    CacheInterceptor,
    CompressionInterceptor,
    ExceptionSafetyInterceptor,
    GzipSuppressionInterceptor,
    HttpLoggingInterceptor,
    Interceptor,
)
from corenet.models import ClientConfig


class Tagging(Interceptor):
    def __init__(self, name: str) -> None:
        self.name = name


def _names(interceptors) -> list[str]:
    return [interceptor.name for interceptor in interceptors]


@pytest.fixture
def mock_transport() -> httpx.MockTransport:
    return httpx.MockTransport(lambda request: httpx.Response(200))


class TestBuildInterceptors:
    def test_release_chain(self) -> None:
        chain = build_interceptors(None, debug=False)
        assert [type(i) for i in chain] == [
            ExceptionSafetyInterceptor,
            CacheInterceptor,
            GzipSuppressionInterceptor,
            CompressionInterceptor,
        ]

    def test_debug_chain_logs_innermost(self) -> None:
        chain = build_interceptors(None, debug=True)
        assert isinstance(chain[-1], HttpLoggingInterceptor)
        assert len(chain) == 5

    def test_application_interceptors_follow_safety_in_order(self) -> None:
        chain = build_interceptors(None, debug=False, application=[Tagging("auth"), Tagging("trace")])
        assert _names(chain) == [
            "exception-safety",
            "auth",
            "trace",
            "cache",
            "gzip-suppression",
            "compression",
        ]


class TestBuildClient:
    def test_debug_none_defers_to_config(self, client_config: ClientConfig, mock_transport) -> None:
        verbose = client_config.model_copy(update={"enable_verbose_logging": True})
        with build_client(verbose, transport=mock_transport) as client:
            assert "http-logging" in _names(client.interceptors)
        with build_client(client_config, transport=mock_transport) as client:
            assert "http-logging" not in _names(client.interceptors)

    def test_explicit_debug_overrides_config(self, client_config: ClientConfig, mock_transport) -> None:
        verbose = client_config.model_copy(update={"enable_verbose_logging": True})
        with build_client(verbose, debug=False, transport=mock_transport) as client:
            assert "http-logging" not in _names(client.interceptors)
        with build_client(client_config, debug=True, transport=mock_transport) as client:
            assert "http-logging" in _names(client.interceptors)

    def test_zero_cache_size_disables_cache(self, client_config: ClientConfig, mock_transport) -> None:
        config = client_config.model_copy(update={"cache_max_bytes": 0})
        with build_client(config, transport=mock_transport) as client:
            assert client.cache is None
            assert "cache" in _names(client.interceptors)
        assert not config.cache_directory.exists()

    def test_cache_uses_configured_directory(self, client_config: ClientConfig, mock_transport) -> None:
        with build_client(client_config, transport=mock_transport) as client:
            assert client.cache.directory == client_config.cache_directory
            assert client.cache.max_bytes == client_config.cache_max_bytes
        assert client_config.cache_directory.is_dir()

    def test_each_call_returns_a_new_client(self, client_config: ClientConfig, mock_transport) -> None:
        first = build_client(client_config, transport=mock_transport)
        second = build_client(client_config, transport=mock_transport)
        try:
            assert first is not second
            assert first.cache is not second.cache
        finally:
            first.close()
            second.close()

    def test_repr_lists_interceptors(self, client_config: ClientConfig, mock_transport) -> None:
        with build_client(client_config, transport=mock_transport) as client:
            assert "exception-safety, cache" in repr(client)


class TestTransportTimeout:
    def test_maps_config_fields(self) -> None:
        timeout = transport_timeout(ClientConfig(connect_timeout=3, read_timeout=7, cache_max_bytes=0))
        assert timeout.connect == 3
        assert timeout.read == 7
        assert timeout.write == 7
        assert timeout.pool == 3

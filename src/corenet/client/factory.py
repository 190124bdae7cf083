"""Client factory: assembles a :class:`~corenet.client.client.Client` from a :class:`ClientConfig`."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Optional

import httpx

from corenet.cache.cache import ResponseCache
from corenet.client.client import Client
from corenet.interceptors.base import Interceptor, InterceptorPipeline
from corenet.interceptors.cache import CacheInterceptor
from corenet.interceptors.compression import CompressionInterceptor, GzipSuppressionInterceptor
from corenet.interceptors.http_logging import HttpLoggingInterceptor
from corenet.interceptors.safety import ExceptionSafetyInterceptor
from corenet.models import ClientConfig
from corenet.network import NetworkMonitor

logger = logging.getLogger(__name__)


def build_interceptors(
    cache: Optional[ResponseCache],
    debug: bool,
    application: Sequence[Interceptor] = (),
) -> list[Interceptor]:
    """The interceptor chain every client runs, outermost first.

    Exception safety wraps everything, caller interceptors come next, the
    cache sits at the transport boundary, and the network interceptors follow
    with HTTP logging innermost (debug only).
    """
    chain: list[Interceptor] = [ExceptionSafetyInterceptor()]
    chain.extend(application)
    chain.append(CacheInterceptor(cache))
    chain.append(GzipSuppressionInterceptor())
    chain.append(CompressionInterceptor())
    if debug:
        chain.append(HttpLoggingInterceptor())
    return chain


def build_client(
    config: Optional[ClientConfig] = None,
    debug: Optional[bool] = None,
    *,
    transport: Optional[httpx.BaseTransport] = None,
    async_transport: Optional[httpx.AsyncBaseTransport] = None,
    network_monitor: Optional[NetworkMonitor] = None,
    interceptors: Sequence[Interceptor] = (),
) -> Client:
    """Build a fully configured :class:`Client`.

    Each call returns a new client; clients built on the same
    ``cache_directory`` share the stored responses.

    Args:
        config: Timeouts and cache settings; defaults to ``ClientConfig()``.
            Use :func:`corenet.config.load_client_config` to honour the
            environment and the user config file.
        debug: Install the verbose HTTP logging interceptor. ``None`` defers
            to ``config.enable_verbose_logging``.
        transport: Custom blocking transport (e.g. :class:`httpx.MockTransport`).
        async_transport: Custom async transport.
        network_monitor: Connectivity source; when given, requests fail fast
            with :class:`~corenet.exceptions.NetworkUnavailable` while
            offline, and cached responses still answer.
        interceptors: Application interceptors, run just inside exception
            safety in the given order.

    Returns:
        A ready-to-use :class:`Client`.
    """
    config = config if config is not None else ClientConfig()
    verbose = config.enable_verbose_logging if debug is None else debug

    cache: Optional[ResponseCache] = None
    if config.cache_enabled:
        cache = ResponseCache(config.cache_directory, config.cache_max_bytes)
    else:
        logger.debug("Response cache disabled (cache_max_bytes=0)")

    pipeline = InterceptorPipeline(build_interceptors(cache, verbose, interceptors))
    logger.debug(
        "Built client: %s",
        ", ".join(interceptor.name for interceptor in pipeline.interceptors),
    )
    return Client(
        config,
        pipeline,
        cache=cache,
        transport=transport,
        async_transport=async_transport,
        network_monitor=network_monitor,
    )

"""Disk-based HTTP response caching for corenet.

This package provides :class:`ResponseCache`, a size-bounded
:class:`hishel.BaseStorage` backed by :mod:`diskcache`, and
:class:`CacheControl`, the parsed form of ``Cache-Control`` directives that
request builders attach to every request.

The cache is consulted by :class:`~corenet.interceptors.CacheInterceptor`,
which :func:`~corenet.client.build_client` installs at the transport
boundary of every client and which leaves freshness and validation to
:class:`hishel.Controller`.
"""

from corenet.cache.cache import ResponseCache, StoredResponse
from corenet.cache.control import (
    DEFAULT_CACHE_CONTROL,
    FORCE_CACHE,
    FORCE_NETWORK,
    MAX_STALE_FOREVER,
    NO_STORE,
    CacheControl,
)

__all__ = [
    "CacheControl",
    "DEFAULT_CACHE_CONTROL",
    "FORCE_CACHE",
    "FORCE_NETWORK",
    "MAX_STALE_FOREVER",
    "NO_STORE",
    "ResponseCache",
    "StoredResponse",
]

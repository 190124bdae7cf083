"""Disk-based HTTP response cache.

Uses :mod:`diskcache` to persist responses on the filesystem, bounded by a
byte budget with least-recently-used eviction. :class:`diskcache.Cache` is
safe for concurrent use from threads and processes, so callers never lock.

:class:`ResponseCache` is a :class:`hishel.BaseStorage`: records are the
``(response, request, metadata)`` triples hishel works with, serialised by
:class:`hishel.JSONSerializer`. Entries are keyed by a SHA-256 hash of the
request URL. Whether a stored response may be served is decided by
:class:`hishel.Controller` in :class:`~corenet.interceptors.CacheInterceptor`,
not here.

The directory is private and opaque: it may be deleted at any time and is
rebuilt from scratch on next use.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import diskcache
import hishel
import httpcore
import httpx

logger = logging.getLogger(__name__)

StoredResponse = tuple[httpcore.Response, httpcore.Request, dict[str, Any]]


class ResponseCache(hishel.BaseStorage):
    """Size-bounded, disk-backed store of HTTP responses.

    Args:
        directory: Directory for the cache files (created on demand).
        max_bytes: Upper bound of the on-disk volume in bytes.

    Example::

        cache = ResponseCache("/tmp/http-cache", 5 * 1024 * 1024)
        stored = cache.get("https://example.com/")
        cache.close()
    """

    def __init__(self, directory: str | Path, max_bytes: int) -> None:
        super().__init__(serializer=hishel.JSONSerializer())
        self._directory = Path(directory)
        self._max_bytes = max_bytes
        self._cache = diskcache.Cache(
            str(self._directory),
            size_limit=max_bytes,
            eviction_policy="least-recently-used",
        )
        self._lock = threading.Lock()
        self._request_count = 0
        self._network_count = 0
        self._hit_count = 0

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    # ------------------------------------------------------------------ #
    # hishel storage interface
    # ------------------------------------------------------------------ #

    def store(
        self,
        key: str,
        response: httpcore.Response,
        request: httpcore.Request,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        """Write one record, replacing any previous one under *key*."""
        if metadata is None:
            metadata = {
                "cache_key": key,
                "number_of_uses": 0,
                "created_at": datetime.now(timezone.utc),
            }
        response.read()
        self._cache.set(
            key, self._serializer.dumps(response=response, request=request, metadata=metadata)
        )

    def retrieve(self, key: str) -> Optional[StoredResponse]:
        """The record under *key* with its body read, or ``None``.

        Records that no longer deserialise are dropped.
        """
        record = self._cache.get(key)
        if record is None:
            return None
        try:
            response, request, metadata = self._serializer.loads(record)
        except (KeyError, TypeError, ValueError):
            logger.debug("Dropping unreadable cache record %s", key)
            self._cache.delete(key)
            return None
        response.read()
        return response, request, metadata

    def update_metadata(
        self,
        key: str,
        response: httpcore.Response,
        request: httpcore.Request,
        metadata: dict[str, Any],
    ) -> None:
        self.store(key, response, request, metadata)

    def remove(self, key: str) -> bool:  # type: ignore[override]
        """Delete the record under *key*. Returns ``True`` if one existed."""
        return bool(self._cache.delete(key))

    # ------------------------------------------------------------------ #
    # By URL
    # ------------------------------------------------------------------ #

    def get(self, url: str | httpx.URL) -> Optional[StoredResponse]:
        """Return the stored ``(response, request, metadata)`` for *url*, or ``None``."""
        return self.retrieve(self.key(str(url)))

    def put(
        self,
        url: str | httpx.URL,
        response: httpcore.Response,
        request: httpcore.Request,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        """Store *response* for *url*. Concurrent writers: the last one wins."""
        self.store(self.key(str(url)), response, request, metadata)

    def invalidate(self, url: str | httpx.URL) -> bool:
        """Evict the entry for *url*. Returns ``True`` if one existed."""
        return self.remove(self.key(str(url)))

    def clear(self) -> int:
        """Remove all entries. Returns the number removed."""
        return self._cache.clear()

    # ------------------------------------------------------------------ #
    # Statistics
    # ------------------------------------------------------------------ #

    def track_request(self, *, hit: bool, network: bool) -> None:
        """Record the outcome of one cache lookup."""
        with self._lock:
            self._request_count += 1
            if hit:
                self._hit_count += 1
            if network:
                self._network_count += 1

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``directory``, ``max_bytes``, ``size`` (number of
            entries), ``volume`` (bytes on disk), and the ``request_count``,
            ``hit_count`` and ``network_count`` counters of this instance.
        """
        with self._lock:
            counters = {
                "request_count": self._request_count,
                "hit_count": self._hit_count,
                "network_count": self._network_count,
            }
        return {
            "directory": str(self._directory),
            "max_bytes": self._max_bytes,
            "size": len(self._cache),
            "volume": self._cache.volume(),
            **counters,
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()

    @staticmethod
    def key(url: str) -> str:
        """Cache key for a URL."""
        return hashlib.sha256(url.encode("utf-8")).hexdigest()

"""Immutable description of one outbound request."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from corenet.cache.control import DEFAULT_CACHE_CONTROL, CacheControl
from corenet.request.body import RequestBody


@dataclass(frozen=True)
class RequestDescriptor:
    """Method, target, headers, body and cache directive of a request.

    Built once by the functions in :mod:`corenet.request.builders`, never
    mutated, and submitted once through :meth:`corenet.client.Client.execute`.
    ``header_items`` keeps the caller's header names, order and duplicates;
    :attr:`headers` exposes them as case-insensitive :class:`httpx.Headers`.
    """

    method: str
    url: httpx.URL
    header_items: tuple[tuple[str, str], ...] = ()
    body: Optional[RequestBody] = None
    cache_control: CacheControl = DEFAULT_CACHE_CONTROL

    @property
    def headers(self) -> httpx.Headers:
        return httpx.Headers(list(self.header_items))

    def wire_headers(self) -> httpx.Headers:
        """Headers as sent: caller headers plus body and cache-directive headers.

        The body's media type replaces any caller ``Content-Type``; the cache
        directive replaces any caller ``Cache-Control`` and removes it when
        the directive is empty. ``Content-Length`` is left to httpx.
        """
        headers = self.headers
        if self.body is not None:
            headers["Content-Type"] = self.body.media_type
            if "content-length" in headers:
                del headers["content-length"]
        directive = self.cache_control.to_header()
        if directive:
            headers["Cache-Control"] = directive
        elif "cache-control" in headers:
            del headers["cache-control"]
        return headers

    def __str__(self) -> str:
        return f"{self.method} {self.url}"

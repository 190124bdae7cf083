"""Transport-boundary interceptor that answers from, validates and fills the cache.

Freshness, validation and storability are :class:`hishel.Controller`'s
decisions; this module only moves requests and responses between httpx and
the httpcore form the controller and :class:`~corenet.cache.ResponseCache`
work with.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone
from email.utils import formatdate
from typing import Any, Optional, Union

import hishel
import httpcore
import httpx

from corenet.cache.cache import ResponseCache, StoredResponse
from corenet.cache.control import CacheControl
from corenet.exceptions import NetworkUnavailable
from corenet.interceptors.base import Exchange, Interceptor, buffer_raw

logger = logging.getLogger(__name__)

CACHEABLE_STATUS_CODES = [200, 203, 204, 300, 301, 302, 307, 308, 404, 405, 410, 414, 501]
"""Statuses the cache may store; 302 and 307 only with explicit freshness."""

INVALIDATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE", "MOVE"})
"""Methods whose successful responses evict the stored entry for the same URL."""

STALE_WARNING = '110 corenet "Response is stale"'
OFFLINE_WARNING = '111 corenet "Revalidation failed"'

_SNAPSHOT = "cache.request_headers"
_STORED = "cache.stored"
_CANDIDATE = "cache.candidate"

# Failures after which a stored entry may stand in for the network.
_OFFLINE_ERRORS = (NetworkUnavailable, httpx.ConnectError, httpx.ConnectTimeout)

RawHeaders = list[tuple[bytes, bytes]]


def default_controller() -> hishel.Controller:
    """The private-cache controller every client uses."""
    return hishel.Controller(
        cacheable_methods=["GET"],
        cacheable_status_codes=CACHEABLE_STATUS_CODES,
        cache_private=True,
        allow_heuristics=True,
    )


def _annotate(response: httpx.Response, status: str) -> httpx.Response:
    response.extensions["from_cache"] = status in ("hit", "conditional-hit", "offline-hit")
    response.extensions["cache_status"] = status
    return response


def _core_request(request: httpx.Request, headers: RawHeaders) -> httpcore.Request:
    return httpcore.Request(
        method=request.method,
        url=httpcore.URL(
            scheme=request.url.raw_scheme,
            host=request.url.raw_host,
            port=request.url.port,
            target=request.url.raw_path,
        ),
        headers=list(headers),
        content=b"",
        extensions={},
    )


def _core_response(response: httpx.Response, content: bytes) -> httpcore.Response:
    return httpcore.Response(
        status=response.status_code,
        headers=_dated(response.headers.raw),
        content=content,
        extensions={
            "http_version": response.http_version.encode("ascii"),
            "reason_phrase": response.reason_phrase.encode("ascii"),
        },
    )


def _dated(headers: RawHeaders) -> RawHeaders:
    # Age is measured from Date; a response without one gets the receive time.
    if any(name.lower() == b"date" for name, _ in headers):
        return list(headers)
    return [*headers, (b"Date", formatdate(usegmt=True).encode("ascii"))]


def _to_httpx(
    stored: httpcore.Response, request: httpx.Request, warning: Optional[str] = None
) -> httpx.Response:
    headers = httpx.Headers(stored.headers)
    if warning is not None:
        headers["Warning"] = warning
    return httpx.Response(
        stored.status,
        headers=headers,
        stream=httpx.ByteStream(stored.content),
        request=request,
        extensions=dict(stored.extensions),
    )


def _vary_fields(headers: httpx.Headers) -> set[str]:
    return {
        field.strip().lower()
        for value in headers.get_list("vary")
        for field in value.split(",")
        if field.strip()
    }


def _vary_matches(
    stored_response: httpcore.Response, stored_request: httpcore.Request, headers: RawHeaders
) -> bool:
    fields = _vary_fields(httpx.Headers(stored_response.headers))
    if "*" in fields:
        return False
    current, original = httpx.Headers(headers), httpx.Headers(stored_request.headers)
    return all(current.get_list(field) == original.get_list(field) for field in fields)


def _has_freshness(response: httpx.Response, url: httpx.URL) -> bool:
    """Whether a later lookup can tell how long *response* stays fresh."""
    control = CacheControl.from_headers(response.headers)
    if control.max_age is not None or control.no_cache or "expires" in response.headers:
        return True
    return "last-modified" in response.headers and not url.query


def _with_directives(headers: RawHeaders, control: CacheControl) -> RawHeaders:
    kept = [(name, value) for name, value in headers if name.lower() != b"cache-control"]
    rendered = control.to_header()
    return [*kept, (b"Cache-Control", rendered.encode("ascii"))] if rendered else kept


class CacheInterceptor(Interceptor):
    """Serves fresh responses from disk, revalidates stale ones, stores new ones.

    Sits between the application interceptors and the network interceptors,
    so a cache hit short-circuits everything below it. The request headers
    are recorded as they leave the application interceptors, before the
    network interceptors add their own; ``Vary`` matching always compares
    those. With ``cache=None`` nothing is stored, but ``only-if-cached``
    requests still get their 504.

    Responses carry ``extensions["cache_status"]``: ``"hit"``,
    ``"conditional-hit"`` (304 revalidated), ``"offline-hit"`` (network
    unreachable, served within the request's ``max-age``), ``"miss"``, or
    ``"unsatisfiable"``; and ``extensions["from_cache"]``.
    """

    name = "cache"

    def __init__(
        self,
        cache: Optional[ResponseCache],
        controller: Optional[hishel.Controller] = None,
    ) -> None:
        self.cache = cache
        self.controller = controller if controller is not None else default_controller()

    def on_request(self, exchange: Exchange) -> Optional[httpx.Response]:
        request = exchange.request
        headers: RawHeaders = list(request.headers.raw)
        exchange.attributes[_SNAPSHOT] = headers
        request_cc = CacheControl.from_headers(request.headers)

        stored: Optional[StoredResponse] = None
        if self.cache is not None and request.method.upper() == "GET":
            stored = self.cache.get(request.url)
        exchange.attributes[_STORED] = stored

        bypass = (
            request_cc.no_cache
            or request_cc.no_store
            or "if-none-match" in request.headers
            or "if-modified-since" in request.headers
        )
        if stored is not None and not bypass:
            outcome = self._lookup(request, headers, request_cc, stored)
            if isinstance(outcome, httpcore.Response):
                logger.debug("Cache hit: %s %s", request.method, request.url)
                self._track(hit=True, network=False)
                warning = STALE_WARNING if self._is_stale(request, headers, request_cc, stored) else None
                return _annotate(_to_httpx(outcome, request, warning), "hit")
            if isinstance(outcome, httpcore.Request) and not request_cc.only_if_cached:
                for name, value in outcome.headers:
                    if name.lower() in (b"if-none-match", b"if-modified-since"):
                        request.headers[name.decode("latin-1")] = value.decode("latin-1")
                exchange.attributes[_CANDIDATE] = stored

        if request_cc.only_if_cached:
            logger.debug("only-if-cached request for %s has no usable entry", request.url)
            self._track(hit=False, network=False)
            unsatisfiable = httpx.Response(
                504,
                headers={"Content-Length": "0"},
                request=request,
                extensions={"reason_phrase": b"Unsatisfiable Request (only-if-cached)"},
            )
            return _annotate(unsatisfiable, "unsatisfiable")

        self._track(hit=False, network=True)
        return None

    def on_response(self, exchange: Exchange, response: httpx.Response) -> httpx.Response:
        request = exchange.request
        candidate: Optional[StoredResponse] = exchange.attributes.get(_CANDIDATE)

        if candidate is not None and response.status_code == 304:
            stored_response, stored_request, _ = candidate
            validation = _core_response(response, b"")
            validation.headers = [
                (name, value) for name, value in validation.headers if name.lower() != b"content-length"
            ]
            refreshed = self.controller.handle_validation_response(
                old_response=stored_response, new_response=validation
            )
            if self.cache is not None and not exchange.is_cancelled:
                self.cache.put(request.url, refreshed, stored_request)
            logger.debug("Revalidated cached %s", request.url)
            return _annotate(_to_httpx(refreshed, request), "conditional-hit")

        if self.cache is None:
            return _annotate(response, "miss")

        method = request.method.upper()
        if method in INVALIDATING_METHODS:
            if response.status_code < 400 and self.cache.invalidate(request.url):
                logger.debug("Invalidated cached %s after %s", request.url, request.method)
            return _annotate(response, "miss")

        if method == "GET":
            raw, response = buffer_raw(response, request)
            snapshot = _core_request(request, exchange.attributes.get(_SNAPSHOT, request.headers.raw))
            stored_response = _core_response(response, raw)
            # A cancelled call must not leave anything behind.
            if not exchange.is_cancelled and self._storable(request, response, snapshot, stored_response):
                self.cache.put(request.url, stored_response, snapshot)
        return _annotate(response, "miss")

    def on_error(self, exchange: Exchange, error: Exception) -> Optional[httpx.Response]:
        stored: Optional[StoredResponse] = exchange.attributes.get(_STORED)
        if stored is None or not isinstance(error, _OFFLINE_ERRORS):
            return None
        request = exchange.request
        request_cc = CacheControl.from_headers(request.headers)
        if request_cc.no_cache or request_cc.no_store or request_cc.max_age is None:
            return None
        stored_response, stored_request, metadata = stored
        headers = exchange.attributes.get(_SNAPSHOT, request.headers.raw)
        if not _vary_matches(stored_response, stored_request, headers):
            return None
        if _resident_seconds(metadata) >= request_cc.max_age:
            return None
        logger.debug("Network unreachable, serving cached %s", request.url)
        return _annotate(_to_httpx(stored_response, request, OFFLINE_WARNING), "offline-hit")

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _lookup(
        self,
        request: httpx.Request,
        headers: RawHeaders,
        request_cc: CacheControl,
        stored: StoredResponse,
    ) -> Union[httpcore.Response, httpcore.Request, None]:
        stored_response, stored_request, _ = stored
        response_cc = CacheControl.from_headers(httpx.Headers(stored_response.headers))
        if response_cc.must_revalidate and request_cc.max_stale is not None:
            headers = _with_directives(headers, dataclasses.replace(request_cc, max_stale=None))
        return self.controller.construct_response_from_cache(
            request=_core_request(request, headers),
            response=stored_response,
            original_request=stored_request,
        )

    def _is_stale(
        self,
        request: httpx.Request,
        headers: RawHeaders,
        request_cc: CacheControl,
        stored: StoredResponse,
    ) -> bool:
        """Whether a hit was only usable because the request allowed staleness."""
        if request_cc.max_stale is None:
            return False
        strict = dataclasses.replace(request_cc, max_stale=None, only_if_cached=False)
        outcome = self._lookup(request, _with_directives(headers, strict), strict, stored)
        return not isinstance(outcome, httpcore.Response)

    def _storable(
        self,
        request: httpx.Request,
        response: httpx.Response,
        snapshot: httpcore.Request,
        stored_response: httpcore.Response,
    ) -> bool:
        if CacheControl.from_headers(request.headers).no_store:
            return False
        if "*" in _vary_fields(response.headers):
            return False
        if not self.controller.is_cachable(request=snapshot, response=stored_response):
            return False
        return _has_freshness(response, request.url)

    def _track(self, *, hit: bool, network: bool) -> None:
        if self.cache is not None:
            self.cache.track_request(hit=hit, network=network)


def _resident_seconds(metadata: dict[str, Any]) -> float:
    created_at: datetime = metadata["created_at"]
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return (datetime.now(timezone.utc) - created_at).total_seconds()

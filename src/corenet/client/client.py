"""The configured HTTP client: executes request descriptors through the interceptor pipeline.

:class:`Client` owns one :class:`httpx.Client` (and, lazily, one
:class:`httpx.AsyncClient`) together with the interceptor pipeline and the
response cache assembled by :func:`~corenet.client.factory.build_client`.
It is safe to share between threads and tasks: httpx pools connections
internally, the cache locks on its own, and all per-call state lives in an
:class:`~corenet.interceptors.base.Exchange`.

Deadlines:

- **connect / read / write** -- per-operation timeouts applied by httpx.
- **call** -- one budget for the whole call. Blocking calls check it
  between body chunks and cap the transport timeouts to what is left; async
  calls run under :func:`asyncio.wait_for`.

See Also:
    :class:`~corenet.client.call.Call` for cancellable, single-use calls.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
import time
from typing import Any, Optional, Union

import httpx

from corenet.cache.cache import ResponseCache
from corenet.client.call import Call
from corenet.exceptions import (
    CorenetError,
    HTTPStatusError,
    NetworkUnavailable,
    RequestCancelled,
    Timeout,
)
from corenet.interceptors.base import Exchange, Interceptor, InterceptorPipeline, rebuild
from corenet.interceptors.safety import classify_exception
from corenet.models import ClientConfig
from corenet.network import NetworkMonitor, is_network_reachable
from corenet.request.body import RequestBody
from corenet.request.descriptor import RequestDescriptor

logger = logging.getLogger(__name__)

TimeoutTypes = Union[float, httpx.Timeout]


def transport_timeout(config: ClientConfig) -> httpx.Timeout:
    """httpx timeouts for *config*: writes share the read budget, pool waits share connect."""
    return httpx.Timeout(
        config.connect_timeout,
        read=config.read_timeout,
        write=config.read_timeout,
        pool=config.connect_timeout,
    )


def _body_arguments(body: Optional[RequestBody], uploads: contextlib.ExitStack) -> dict[str, Any]:
    """``build_request`` arguments for *body*; upload files are opened here, at dispatch."""
    if body is None:
        return {}
    return body.encode(uploads)


def _already_read(response: httpx.Response) -> httpx.Response:
    """Unread copy of a response whose body the transport had already read.

    Such a body was decoded by httpx on the way in, so its
    ``Content-Encoding`` no longer applies; the encoding is kept in
    ``extensions["content_encoding"]`` as :class:`CompressionInterceptor`
    does.
    """
    headers = response.headers.copy()
    encoding = headers.get("content-encoding", "").strip().lower()
    decoded = encoding not in ("", "identity")
    if decoded:
        del headers["content-encoding"]
        if "content-length" in headers:
            del headers["content-length"]
    copy = rebuild(response, response.content, request=response.request, headers=headers)
    if decoded:
        copy.extensions["content_encoding"] = encoding
    return copy


def _status_message(response: httpx.Response) -> str:
    """``HTTP <status>: <detail>``, with the detail taken from an error body when present."""
    detail = ""
    try:
        payload = response.json()
        if isinstance(payload, dict):
            detail = str(payload.get("message") or payload.get("error") or payload.get("detail") or "")
        else:
            detail = str(payload)
    except ValueError:
        detail = response.text[:200] if response.content else ""
    prefix = f"HTTP {response.status_code} for {response.request.method} {response.request.url}"
    return f"{prefix}: {detail}" if detail else prefix


class Client:
    """HTTP client running every call through a fixed interceptor pipeline.

    Usually obtained from :func:`~corenet.client.build_client` rather than
    constructed directly.

    Args:
        config: Timeouts and cache settings this client was built from.
        pipeline: Interceptors, outermost first.
        cache: The response cache the pipeline writes to, if any.
        transport: Optional :class:`httpx.BaseTransport` (e.g.
            :class:`httpx.MockTransport` in tests).
        async_transport: Optional :class:`httpx.AsyncBaseTransport` for
            :meth:`aexecute`.
        network_monitor: When given, dispatch fails fast with
            :class:`~corenet.exceptions.NetworkUnavailable` while it reports
            no internet access.

    Example::

        with build_client(ClientConfig()) as client:
            response = client.execute(get_request("https://example.com/"))
    """

    def __init__(
        self,
        config: ClientConfig,
        pipeline: InterceptorPipeline,
        *,
        cache: Optional[ResponseCache] = None,
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
        network_monitor: Optional[NetworkMonitor] = None,
    ) -> None:
        self._config = config
        self._pipeline = pipeline
        self._cache = cache
        self._network_monitor = network_monitor
        self._timeout = transport_timeout(config)
        self._http = httpx.Client(
            timeout=self._timeout,
            follow_redirects=True,
            transport=transport,
        )
        self._async_transport = async_transport
        self._async_http: Optional[httpx.AsyncClient] = None
        self._async_lock = threading.Lock()
        self._closed = False

    # ------------------------------------------------------------------ #
    # Properties
    # ------------------------------------------------------------------ #

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def cache(self) -> Optional[ResponseCache]:
        """The response cache, or ``None`` when caching is disabled."""
        return self._cache

    @property
    def interceptors(self) -> tuple[Interceptor, ...]:
        return self._pipeline.interceptors

    @property
    def is_closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #

    def new_call(self, descriptor: RequestDescriptor) -> Call:
        """Prepare *descriptor* as a cancellable :class:`Call`."""
        return Call(self, descriptor)

    def execute(
        self,
        descriptor: RequestDescriptor,
        *,
        raise_for_status: bool = True,
        timeout: Optional[TimeoutTypes] = None,
        call_timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> httpx.Response:
        """Send *descriptor* and return the fully read response.

        Args:
            descriptor: The request to send.
            raise_for_status: Raise :class:`HTTPStatusError` for non-2xx
                responses.
            timeout: Per-call override of the connect/read/write timeouts.
            call_timeout: Per-call override of the overall deadline.
            cancel_event: Set from another thread to cancel the call.

        Returns:
            The :class:`httpx.Response`, body already read.

        Raises:
            CorenetError: A subclass describing the failure.
        """
        self._check_open()
        with contextlib.ExitStack() as uploads:
            exchange = self._new_exchange(
                self._http, descriptor, uploads, timeout, call_timeout, cancel_event
            )
            response = self._pipeline.execute(exchange, self._dispatch)
            try:
                response.read()
            except httpx.HTTPError as exc:
                raise classify_exception(exc) from exc
        return self._finish(response, raise_for_status)

    async def aexecute(
        self,
        descriptor: RequestDescriptor,
        *,
        raise_for_status: bool = True,
        timeout: Optional[TimeoutTypes] = None,
        call_timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> httpx.Response:
        """Async counterpart of :meth:`execute`, sharing its pipeline and cache."""
        self._check_open()
        with contextlib.ExitStack() as uploads:
            exchange = self._new_exchange(
                self._get_async_http(), descriptor, uploads, timeout, call_timeout, cancel_event
            )
            budget = exchange.remaining()
            try:
                response = await asyncio.wait_for(
                    self._pipeline.aexecute(exchange, self._adispatch), timeout=budget
                )
            except asyncio.TimeoutError as exc:
                raise Timeout(
                    f"{descriptor} exceeded its call timeout of {budget:.1f}s", kind="call"
                ) from exc
            try:
                await response.aread()
            except httpx.HTTPError as exc:
                raise classify_exception(exc) from exc
        return self._finish(response, raise_for_status)

    def is_network_reachable(self) -> bool:
        """Advisory connectivity check through this client's network monitor."""
        return is_network_reachable(self._network_monitor)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        """Release the blocking connection pool and the cache.

        An async pool opened by :meth:`aexecute` is only released by
        :meth:`aclose`.
        """
        if self._closed:
            return
        self._closed = True
        self._http.close()
        if self._cache is not None:
            self._cache.close()

    async def aclose(self) -> None:
        """Release both connection pools and the cache."""
        with self._async_lock:
            async_http, self._async_http = self._async_http, None
        if async_http is not None:
            await async_http.aclose()
        self.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------ #
    # Dispatch (innermost step of the pipeline)
    # ------------------------------------------------------------------ #

    def _dispatch(self, exchange: Exchange) -> httpx.Response:
        self._before_dispatch(exchange)
        request = exchange.request
        try:
            response = self._http.send(request, stream=True)
        except httpx.TimeoutException as exc:
            self._raise_if_deadline_passed(exchange, exc)
            raise
        try:
            if response.is_stream_consumed:
                exchange.check_active()
                return _already_read(response)
            chunks = []
            for chunk in response.iter_raw():
                exchange.check_active()
                chunks.append(chunk)
        except httpx.TimeoutException as exc:
            self._raise_if_deadline_passed(exchange, exc)
            raise
        finally:
            response.close()
        return rebuild(response, b"".join(chunks), request=response.request)

    async def _adispatch(self, exchange: Exchange) -> httpx.Response:
        self._before_dispatch(exchange)
        response = await self._get_async_http().send(exchange.request, stream=True)
        try:
            if response.is_stream_consumed:
                exchange.check_active()
                return _already_read(response)
            chunks = []
            async for chunk in response.aiter_raw():
                exchange.check_active()
                chunks.append(chunk)
        finally:
            await response.aclose()
        return rebuild(response, b"".join(chunks), request=response.request)

    def _before_dispatch(self, exchange: Exchange) -> None:
        exchange.check_active()
        if self._network_monitor is not None and not is_network_reachable(self._network_monitor):
            raise NetworkUnavailable(
                f"No network available for {exchange.request.method} {exchange.request.url}"
            )
        remaining = exchange.remaining()
        if remaining is not None:
            # No single transport wait may outlive the call deadline.
            current = exchange.request.extensions.get("timeout", {})
            exchange.request.extensions["timeout"] = {
                key: remaining if value is None else min(value, remaining)
                for key, value in current.items()
            }

    @staticmethod
    def _raise_if_deadline_passed(exchange: Exchange, exc: Exception) -> None:
        remaining = exchange.remaining()
        if remaining is not None and remaining <= 0:
            raise Timeout(
                f"{exchange.request.method} {exchange.request.url} exceeded its call timeout",
                kind="call",
            ) from exc

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _new_exchange(
        self,
        http: Union[httpx.Client, httpx.AsyncClient],
        descriptor: RequestDescriptor,
        uploads: contextlib.ExitStack,
        timeout: Optional[TimeoutTypes],
        call_timeout: Optional[float],
        cancel_event: Optional[threading.Event],
    ) -> Exchange:
        if cancel_event is not None and cancel_event.is_set():
            raise RequestCancelled(f"{descriptor} was cancelled before it started")
        extra: dict[str, Any] = {} if timeout is None else {"timeout": timeout}
        try:
            request = http.build_request(
                descriptor.method,
                descriptor.url,
                headers=descriptor.wire_headers(),
                **_body_arguments(descriptor.body, uploads),
                **extra,
            )
        except CorenetError:
            raise
        except Exception as exc:
            raise classify_exception(exc) from exc
        budget = call_timeout if call_timeout is not None else self._config.call_timeout
        return Exchange(
            request=request,
            caller_headers=descriptor.headers,
            descriptor=descriptor,
            deadline=time.monotonic() + budget,
            cancel_event=cancel_event if cancel_event is not None else threading.Event(),
        )

    def _finish(self, response: httpx.Response, raise_for_status: bool) -> httpx.Response:
        logger.debug(
            "%s %s -> %d (%s)",
            response.request.method,
            response.request.url,
            response.status_code,
            response.extensions.get("cache_status", "miss"),
        )
        if raise_for_status and not response.is_success:
            raise HTTPStatusError(_status_message(response), response)
        return response

    def _get_async_http(self) -> httpx.AsyncClient:
        with self._async_lock:
            if self._async_http is None:
                self._async_http = httpx.AsyncClient(
                    timeout=self._timeout,
                    follow_redirects=True,
                    transport=self._async_transport,
                )
            return self._async_http

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("Cannot send a request, as the client has been closed")

    def __repr__(self) -> str:
        names = ", ".join(interceptor.name for interceptor in self.interceptors)
        return f"<Client interceptors=[{names}] cache={self._cache is not None}>"

"""Interceptor contract, per-call exchange state, and the pipeline runner.

This module provides the three pieces every other interceptor builds on:

* :class:`Exchange` -- mutable context threaded through the pipeline for one
  call: the current :class:`httpx.Request`, the headers the caller asked for,
  the call deadline and cancellation flag, and a scratch ``attributes`` dict
  for interceptor state that must not live on shared interceptor objects.
* :class:`Interceptor` -- base class with ``on_request``, ``on_response``
  and ``on_error`` hooks; subclasses override what they need.
* :class:`InterceptorPipeline` -- runs the hooks with onion semantics.

Lifecycle of an exchange::

    CREATED -> OUTGOING(0..n-1) -> DISPATCHED -> INCOMING(n-1..0) -> COMPLETED | FAILED

``on_request`` runs in declared order and may short-circuit by returning a
response; that response then travels back only through the interceptors that
were entered before it. ``on_response`` runs in reverse order. A failure
travels outward through ``on_error`` of the interceptors entered outside the
failure point; each may recover with a response, raise a replacement, or
return ``None`` to let the failure continue. Only :class:`Exception`
subclasses enter the error path: task cancellation and interrupts propagate
untouched.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional

import httpx

from corenet.exceptions import RequestCancelled, Timeout

if TYPE_CHECKING:
    from corenet.request.descriptor import RequestDescriptor

logger = logging.getLogger(__name__)


class Stage(str, enum.Enum):
    """Where an exchange is in the pipeline."""

    CREATED = "created"
    OUTGOING = "outgoing"
    DISPATCHED = "dispatched"
    INCOMING = "incoming"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Exchange:
    """Mutable state of one call as it moves through the pipeline.

    Attributes:
        request: The request as it currently stands; interceptors may mutate
            its headers or replace it.
        caller_headers: Headers the caller put on the descriptor, before the
            transport added its defaults.
        descriptor: The originating descriptor, when there is one.
        deadline: ``time.monotonic()`` value after which the call times out.
        cancel_event: Set by :meth:`corenet.client.Call.cancel`.
        stage: Current :class:`Stage`.
        position: Index of the interceptor currently running.
        attributes: Per-call scratch space for interceptors.
    """

    request: httpx.Request
    caller_headers: httpx.Headers = field(default_factory=httpx.Headers)
    descriptor: Optional[RequestDescriptor] = None
    deadline: Optional[float] = None
    cancel_event: threading.Event = field(default_factory=threading.Event)
    stage: Stage = Stage.CREATED
    position: int = -1
    error: Optional[Exception] = None
    attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def is_cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the call deadline, or ``None`` without one."""
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()

    def check_active(self) -> None:
        """Raise if the call was cancelled or its deadline has passed."""
        if self.is_cancelled:
            raise RequestCancelled(f"{self.request.method} {self.request.url} was cancelled")
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise Timeout(
                f"{self.request.method} {self.request.url} exceeded its call timeout",
                kind="call",
            )


class Interceptor:
    """Base class for request/response transformers.

    Every hook is optional; the defaults pass everything through.
    Interceptors are shared by concurrent calls, so per-call state belongs in
    :attr:`Exchange.attributes`.
    """

    name = "interceptor"

    def on_request(self, exchange: Exchange) -> Optional[httpx.Response]:
        """Inspect or modify ``exchange.request``; return a response to short-circuit."""
        return None

    def on_response(self, exchange: Exchange, response: httpx.Response) -> httpx.Response:
        """Inspect or replace the response on its way back."""
        return response

    def on_error(self, exchange: Exchange, error: Exception) -> Optional[httpx.Response]:
        """Handle a failure from further in.

        Return a response to recover, raise to replace the failure, or return
        ``None`` to let *error* continue outward.
        """
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


Dispatch = Callable[[Exchange], httpx.Response]
AsyncDispatch = Callable[[Exchange], Awaitable[httpx.Response]]


class InterceptorPipeline:
    """Runs an ordered, immutable sequence of interceptors around a dispatch step.

    The same pipeline serves blocking (:meth:`execute`) and asynchronous
    (:meth:`aexecute`) calls; hooks are synchronous in both, only the
    dispatch step is awaited.
    """

    def __init__(self, interceptors: Sequence[Interceptor]) -> None:
        self._interceptors = tuple(interceptors)

    @property
    def interceptors(self) -> tuple[Interceptor, ...]:
        return self._interceptors

    def __len__(self) -> int:
        return len(self._interceptors)

    def execute(self, exchange: Exchange, dispatch: Dispatch) -> httpx.Response:
        entered, response, error = self._outgoing(exchange)
        if response is None and error is None:
            exchange.stage = Stage.DISPATCHED
            try:
                response = dispatch(exchange)
            except Exception as exc:
                error = exc
        return self._incoming(exchange, entered, response, error)

    async def aexecute(self, exchange: Exchange, dispatch: AsyncDispatch) -> httpx.Response:
        entered, response, error = self._outgoing(exchange)
        if response is None and error is None:
            exchange.stage = Stage.DISPATCHED
            try:
                response = await dispatch(exchange)
            except Exception as exc:
                error = exc
        return self._incoming(exchange, entered, response, error)

    def _outgoing(
        self, exchange: Exchange
    ) -> tuple[int, Optional[httpx.Response], Optional[Exception]]:
        """Run ``on_request`` hooks. Returns how many interceptors were entered."""
        exchange.stage = Stage.OUTGOING
        for index, interceptor in enumerate(self._interceptors):
            exchange.position = index
            try:
                short_circuit = interceptor.on_request(exchange)
            except Exception as exc:
                logger.debug("%r failed on request: %s", interceptor, exc)
                return index, None, exc
            if short_circuit is not None:
                logger.debug("%r answered %s without dispatch", interceptor, exchange.request.url)
                return index, short_circuit, None
        return len(self._interceptors), None, None

    def _incoming(
        self,
        exchange: Exchange,
        entered: int,
        response: Optional[httpx.Response],
        error: Optional[Exception],
    ) -> httpx.Response:
        exchange.stage = Stage.INCOMING
        for index in reversed(range(entered)):
            interceptor = self._interceptors[index]
            exchange.position = index
            if error is not None:
                exchange.error = error
                try:
                    recovered = interceptor.on_error(exchange, error)
                except Exception as replacement:
                    error = replacement
                    continue
                if recovered is not None:
                    response, error = recovered, None
                continue
            assert response is not None
            try:
                response = interceptor.on_response(exchange, response)
            except Exception as exc:
                logger.debug("%r failed on response: %s", interceptor, exc)
                response, error = None, exc

        if error is not None:
            exchange.stage = Stage.FAILED
            exchange.error = error
            raise error
        assert response is not None
        exchange.error = None
        exchange.stage = Stage.COMPLETED
        return response


# ---------------------------------------------------------------------- #
# Response body helpers
# ---------------------------------------------------------------------- #


def rebuild(
    response: httpx.Response,
    content: bytes,
    *,
    request: httpx.Request,
    headers: Optional[httpx.Headers] = None,
) -> httpx.Response:
    """Copy *response* with a new, unread body (and optionally new headers)."""
    return httpx.Response(
        response.status_code,
        headers=headers if headers is not None else response.headers,
        stream=httpx.ByteStream(content),
        request=request,
        extensions=dict(response.extensions),
    )


def buffer_raw(response: httpx.Response, request: httpx.Request) -> tuple[bytes, httpx.Response]:
    """Read the body bytes as they are on the stream, without content decoding.

    Returns the bytes and an equivalent unread response to pass on. Responses
    inside the pipeline are buffered in memory, so this never touches the
    network. A response some hook already read is returned as-is with its
    content.
    """
    if response.is_stream_consumed:
        return response.content, response
    raw = b"".join(response.iter_raw())
    return raw, rebuild(response, raw, request=request)

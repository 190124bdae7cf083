"""Single-use, cancellable handle on one request."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from corenet.client.client import Client
    from corenet.request.descriptor import RequestDescriptor


class Call:
    """A request prepared for execution that can be cancelled from any thread.

    Created by :meth:`Client.new_call`. A call executes at most once, either
    blocking (:meth:`execute`) or awaited (:meth:`aexecute`). :meth:`cancel`
    aborts it at the next checkpoint (before dispatch, or between body
    chunks); the caller then sees :class:`~corenet.exceptions.RequestCancelled`
    and the response cache is left untouched.

    Example::

        call = client.new_call(get_request("https://example.com/large"))
        threading.Timer(1.0, call.cancel).start()
        response = call.execute()
    """

    def __init__(self, client: Client, descriptor: RequestDescriptor) -> None:
        self._client = client
        self._descriptor = descriptor
        self._cancel_event = threading.Event()
        self._lock = threading.Lock()
        self._executed = False

    @property
    def descriptor(self) -> RequestDescriptor:
        return self._descriptor

    @property
    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def is_executed(self) -> bool:
        with self._lock:
            return self._executed

    def cancel(self) -> None:
        """Cancel the call. Idempotent; harmless after completion."""
        self._cancel_event.set()

    def execute(self, **kwargs: Any) -> httpx.Response:
        """Run the call, blocking. Accepts the keyword arguments of :meth:`Client.execute`."""
        self._mark_executed()
        return self._client.execute(self._descriptor, cancel_event=self._cancel_event, **kwargs)

    async def aexecute(self, **kwargs: Any) -> httpx.Response:
        """Run the call on the event loop. Accepts the keyword arguments of :meth:`Client.aexecute`."""
        self._mark_executed()
        return await self._client.aexecute(
            self._descriptor, cancel_event=self._cancel_event, **kwargs
        )

    def _mark_executed(self) -> None:
        with self._lock:
            if self._executed:
                raise RuntimeError(f"Call for {self._descriptor} was already executed")
            self._executed = True

    def __repr__(self) -> str:
        return f"<Call {self._descriptor} executed={self._executed} cancelled={self.is_cancelled}>"

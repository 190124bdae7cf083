"""Outermost interceptor: every failure leaves the pipeline as a typed error."""

from __future__ import annotations

import logging
import socket
import ssl
from typing import Optional

import httpx

from corenet.exceptions import (
    CorenetError,
    Timeout,
    TransportFailure,
    UnexpectedInternalFailure,
)
from corenet.interceptors.base import Exchange, Interceptor

logger = logging.getLogger(__name__)

_TIMEOUT_KINDS: tuple[tuple[type[httpx.TimeoutException], str], ...] = (
    (httpx.ConnectTimeout, "connect"),
    (httpx.ReadTimeout, "read"),
    (httpx.WriteTimeout, "write"),
    (httpx.PoolTimeout, "pool"),
)


def classify_exception(exc: Exception) -> CorenetError:
    """Map an httpx, socket or arbitrary exception to a :class:`CorenetError`."""
    if isinstance(exc, CorenetError):
        return exc

    if isinstance(exc, httpx.TimeoutException):
        kind = next((k for cls, k in _TIMEOUT_KINDS if isinstance(exc, cls)), "call")
        return Timeout(f"{kind.capitalize()} timeout: {exc}", kind=kind)

    if isinstance(exc, TimeoutError):
        return Timeout(f"Timed out: {exc}", kind="call")

    if isinstance(exc, (httpx.TransportError, httpx.DecodingError, httpx.TooManyRedirects)):
        return TransportFailure(f"{type(exc).__name__}: {exc}")

    if isinstance(exc, (ssl.SSLError, socket.gaierror, socket.herror, ConnectionError, OSError)):
        return TransportFailure(f"{type(exc).__name__}: {exc}")

    return UnexpectedInternalFailure(
        f"Unexpected {type(exc).__name__} in request pipeline: {exc}", original=exc
    )


class ExceptionSafetyInterceptor(Interceptor):
    """Converts any failure from further in into a typed :class:`CorenetError`.

    Successful responses pass through untouched. Failures that are already
    typed continue unchanged; everything else is re-raised as the matching
    corenet error with the original as ``__cause__``.
    """

    name = "exception-safety"

    def on_error(self, exchange: Exchange, error: Exception) -> Optional[httpx.Response]:
        if isinstance(error, CorenetError):
            return None
        converted = classify_exception(error)
        if isinstance(converted, UnexpectedInternalFailure):
            logger.error(
                "Unexpected failure for %s %s",
                exchange.request.method,
                exchange.request.url,
                exc_info=error,
            )
        else:
            logger.debug("%s %s failed: %s", exchange.request.method, exchange.request.url, converted)
        raise converted from error

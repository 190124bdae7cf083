"""Exception hierarchy for corenet.

All exceptions inherit from :class:`CorenetError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`corenet.exit_codes`.
Construction errors (:class:`InvalidURL`, :class:`UnreadableFile`) are raised
by the request builders before anything is dispatched; everything else is
raised by :class:`~corenet.client.Client` once a request is in flight.

Subclass hierarchy::

    CorenetError (exit 1)
    +-- InvalidURL                 (exit 2)
    +-- UnreadableFile             (exit 2)
    +-- HTTPStatusError            (exit 3)
    +-- Timeout                    (exit 4)
    +-- NetworkUnavailable         (exit 5)
    +-- TransportFailure           (exit 6)
    +-- RequestCancelled           (exit 7)
    +-- UnexpectedInternalFailure  (exit 10)
    +-- ConfigError                (exit 1)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from corenet.exit_codes import (
    EXIT_CANCELLED,
    EXIT_GENERIC_FAILURE,
    EXIT_HTTP_STATUS,
    EXIT_INTERNAL_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NETWORK_UNAVAILABLE,
    EXIT_TIMEOUT,
    EXIT_TRANSPORT_FAILURE,
)

if TYPE_CHECKING:
    import httpx


class CorenetError(Exception):
    """Base exception for all corenet errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`corenet.exit_codes`.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidURL(CorenetError):
    """Raised when a URL string cannot be parsed as an absolute http(s) URL."""

    exit_code = EXIT_INVALID_USAGE


class UnreadableFile(CorenetError):
    """Raised when a multipart file part cannot be opened for streaming."""

    exit_code = EXIT_INVALID_USAGE

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class HTTPStatusError(CorenetError):
    """Raised for a non-2xx response. Never retried by this layer.

    Attributes:
        status_code: The HTTP status code.
        body: The (decoded) response body bytes.
        response: The full :class:`httpx.Response`.
    """

    exit_code = EXIT_HTTP_STATUS

    def __init__(self, message: str, response: httpx.Response):
        super().__init__(message)
        self.response = response
        self.status_code = response.status_code
        self.body = response.content


class Timeout(CorenetError):
    """Raised when a connect, read, write, pool or call timeout elapses.

    Attributes:
        kind: Which timeout fired: ``"connect"``, ``"read"``, ``"write"``,
            ``"pool"`` or ``"call"``.
    """

    exit_code = EXIT_TIMEOUT

    def __init__(self, message: str, kind: str = "call"):
        super().__init__(message)
        self.kind = kind


class NetworkUnavailable(CorenetError):
    """Raised when the network monitor reports no usable network before dispatch."""

    exit_code = EXIT_NETWORK_UNAVAILABLE


class TransportFailure(CorenetError):
    """Raised on network-level failures (DNS resolution, TLS, connection reset)."""

    exit_code = EXIT_TRANSPORT_FAILURE


class RequestCancelled(CorenetError):
    """Raised when a :class:`~corenet.client.Call` is cancelled mid-flight."""

    exit_code = EXIT_CANCELLED


class UnexpectedInternalFailure(CorenetError):
    """Raised in place of an unstructured fault caught by the exception-safety interceptor.

    The original exception is available as ``__cause__`` and as
    :attr:`original`.
    """

    exit_code = EXIT_INTERNAL_FAILURE

    def __init__(self, message: str, original: Optional[BaseException] = None):
        super().__init__(message)
        self.original = original


class ConfigError(CorenetError):
    """Raised for configuration problems (invalid values, unreadable config file)."""

    exit_code = EXIT_GENERIC_FAILURE

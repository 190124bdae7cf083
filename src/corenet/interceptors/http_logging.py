"""Verbose request/response logging for debug builds.

:class:`HttpLoggingInterceptor` writes each exchange to the ``corenet.http``
logger in the familiar arrow format::

    --> POST https://api.example.com/items
    Content-Type: application/x-www-form-urlencoded
    <blank>
    name=a
    --> END POST (6-byte body)
    <-- 201 Created https://api.example.com/items (12ms)
    content-type: application/json
    <blank>
    {"id": 1}
    <-- END HTTP (9-byte body)

It is installed innermost, so it sees exactly what goes over the wire.
:func:`~corenet.client.build_client` only installs it for debug builds.
"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Iterable
from typing import Optional

import httpx

from corenet.interceptors.base import Exchange, Interceptor, buffer_raw

HTTP_LOGGER_NAME = "corenet.http"

DEFAULT_REDACTED_HEADERS = frozenset(
    {"authorization", "cookie", "proxy-authorization", "set-cookie"}
)

_STARTED = "http_logging.started"


class Level(str, enum.Enum):
    """How much of each exchange is logged."""

    NONE = "none"
    BASIC = "basic"  # request and status lines
    HEADERS = "headers"  # plus headers
    BODY = "body"  # plus bodies


class HttpLoggingInterceptor(Interceptor):
    """Logs method, URL, headers and bodies of every exchange.

    Args:
        level: Amount of detail, see :class:`Level`.
        logger: Destination logger; defaults to ``corenet.http``.
        redact_headers: Header names whose values are replaced by ``██``.
        max_body_bytes: Bodies longer than this are truncated in the log.
    """

    name = "http-logging"

    def __init__(
        self,
        level: Level = Level.BODY,
        logger: Optional[logging.Logger] = None,
        redact_headers: Iterable[str] = DEFAULT_REDACTED_HEADERS,
        max_body_bytes: int = 64 * 1024,
    ) -> None:
        self.level = level
        self.logger = logger or logging.getLogger(HTTP_LOGGER_NAME)
        self.redact_headers = frozenset(name.lower() for name in redact_headers)
        self.max_body_bytes = max_body_bytes

    # ------------------------------------------------------------------ #
    # Hooks
    # ------------------------------------------------------------------ #

    def on_request(self, exchange: Exchange) -> Optional[httpx.Response]:
        if self.level == Level.NONE:
            return None
        request = exchange.request
        exchange.attributes[_STARTED] = time.monotonic()
        self._log(f"--> {request.method} {request.url}")
        if self.level == Level.BASIC:
            return None

        self._log_headers(request.headers)
        if self.level != Level.BODY:
            self._log(f"--> END {request.method}")
            return None

        try:
            content = request.content
        except httpx.RequestNotRead:
            self._log(f"--> END {request.method} (streamed body omitted)")
            return None
        if not content:
            self._log(f"--> END {request.method}")
        elif _is_encoded(request.headers):
            self._log(f"--> END {request.method} (encoded body omitted)")
        else:
            self._log_body(content, f"--> END {request.method}")
        return None

    def on_response(self, exchange: Exchange, response: httpx.Response) -> httpx.Response:
        if self.level == Level.NONE:
            return response
        started = exchange.attributes.get(_STARTED, time.monotonic())
        took_ms = int((time.monotonic() - started) * 1000)
        self._log(
            f"<-- {response.status_code} {response.reason_phrase} "
            f"{exchange.request.url} ({took_ms}ms)"
        )
        if self.level == Level.BASIC:
            return response

        self._log_headers(response.headers)
        if self.level != Level.BODY:
            self._log("<-- END HTTP")
            return response

        raw, response = buffer_raw(response, exchange.request)
        if not raw:
            self._log("<-- END HTTP")
        elif _is_encoded(response.headers):
            self._log(f"<-- END HTTP (encoded {len(raw)}-byte body omitted)")
        else:
            self._log_body(raw, "<-- END HTTP")
        return response

    def on_error(self, exchange: Exchange, error: Exception) -> Optional[httpx.Response]:
        if self.level != Level.NONE:
            self._log(f"<-- HTTP FAILED: {type(error).__name__}: {error}")
        return None

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _log(self, message: str) -> None:
        self.logger.info(message)

    def _log_headers(self, headers: httpx.Headers) -> None:
        encoding = headers.encoding
        for key, value in headers.raw:
            name = key.decode(encoding)
            shown = "██" if name.lower() in self.redact_headers else value.decode(encoding)
            self._log(f"{name}: {shown}")

    def _log_body(self, content: bytes, end_line: str) -> None:
        shown = content[: self.max_body_bytes]
        if not _is_probably_text(shown):
            self._log(f"{end_line} (binary {len(content)}-byte body omitted)")
            return
        text = shown.decode("utf-8", errors="replace")
        self._log("")
        self._log(text)
        if len(content) > self.max_body_bytes:
            self._log(f"... ({len(content) - self.max_body_bytes} more bytes)")
        self._log(f"{end_line} ({len(content)}-byte body)")


def _is_encoded(headers: httpx.Headers) -> bool:
    encoding = headers.get("content-encoding", "identity").strip().lower()
    return encoding not in ("", "identity")


def _is_probably_text(content: bytes) -> bool:
    """Whether the first bytes decode as UTF-8 without control characters."""
    sample = content[:64]
    try:
        text = sample.decode("utf-8")
    except UnicodeDecodeError as exc:
        # A multi-byte character cut off at the sample boundary is fine.
        if exc.start < len(sample) - 3:
            return False
        text = sample[: exc.start].decode("utf-8")
    return all(ch.isprintable() or ch.isspace() for ch in text)

"""Content-encoding negotiation.

Two network interceptors share this concern:

* :class:`GzipSuppressionInterceptor` removes the ``Accept-Encoding``
  default that httpx adds on its own, so no encoding is ever negotiated
  implicitly. An ``Accept-Encoding`` the caller set explicitly is kept.
* :class:`CompressionInterceptor` advertises ``br,gzip`` when the request
  carries no ``Accept-Encoding`` and decodes every ``br``, ``gzip`` or
  ``deflate`` body, whoever asked for it. Identity-encoded responses pass
  through untouched.

A body reaching the caller is therefore always decoded, and never carries a
``Content-Encoding`` header that no longer describes it.
"""

from __future__ import annotations

import gzip
import logging
import zlib
from typing import Optional

import brotli
import httpx

from corenet.exceptions import TransportFailure
from corenet.interceptors.base import Exchange, Interceptor, buffer_raw, rebuild

logger = logging.getLogger(__name__)


class GzipSuppressionInterceptor(Interceptor):
    """Drops the transport's implicit ``Accept-Encoding`` header."""

    name = "gzip-suppression"

    def on_request(self, exchange: Exchange) -> Optional[httpx.Response]:
        if "accept-encoding" in exchange.caller_headers:
            return None
        if "accept-encoding" in exchange.request.headers:
            del exchange.request.headers["accept-encoding"]
        return None


class CompressionInterceptor(Interceptor):
    """Negotiates Brotli (falling back to gzip) and decodes the response body.

    Decoding does not depend on who set ``Accept-Encoding``: a caller that
    asked for ``gzip`` itself still gets the decoded body. Decoded responses
    lose their ``Content-Encoding`` and ``Content-Length`` headers; the
    encoding that was removed is kept in
    ``response.extensions["content_encoding"]``.
    """

    name = "compression"
    accept_encoding = "br,gzip"
    decodable = ("br", "gzip", "deflate")

    def on_request(self, exchange: Exchange) -> Optional[httpx.Response]:
        if "accept-encoding" not in exchange.request.headers:
            exchange.request.headers["Accept-Encoding"] = self.accept_encoding
        return None

    def on_response(self, exchange: Exchange, response: httpx.Response) -> httpx.Response:
        encoding = response.headers.get("content-encoding", "").strip().lower()
        if encoding not in self.decodable:
            if encoding not in ("", "identity"):
                logger.debug("Leaving %s body from %s encoded", encoding, exchange.request.url)
            return response

        raw, response = buffer_raw(response, exchange.request)
        decoded = self._decode(encoding, raw, exchange)

        headers = response.headers.copy()
        del headers["content-encoding"]
        if "content-length" in headers:
            del headers["content-length"]
        decoded_response = rebuild(response, decoded, request=exchange.request, headers=headers)
        decoded_response.extensions["content_encoding"] = encoding
        return decoded_response

    @staticmethod
    def _decode(encoding: str, raw: bytes, exchange: Exchange) -> bytes:
        if not raw:
            return raw
        try:
            if encoding == "br":
                return brotli.decompress(raw)
            if encoding == "deflate":
                return _inflate(raw)
            return gzip.decompress(raw)
        except (brotli.error, OSError, EOFError, zlib.error) as exc:
            raise TransportFailure(
                f"Could not decode {encoding} body from {exchange.request.url}: {exc}"
            ) from exc


def _inflate(raw: bytes) -> bytes:
    # Servers send both zlib-wrapped and bare deflate streams.
    try:
        return zlib.decompress(raw)
    except zlib.error:
        return zlib.decompress(raw, -zlib.MAX_WBITS)

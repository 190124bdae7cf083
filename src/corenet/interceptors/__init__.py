"""Interceptor pipeline for corenet clients.

:func:`~corenet.client.build_client` installs these interceptors in a fixed
order, outermost first:

1. :class:`ExceptionSafetyInterceptor` -- every failure becomes a
   :class:`~corenet.exceptions.CorenetError`.
2. Caller-supplied application interceptors, if any.
3. :class:`CacheInterceptor` -- answers from, validates and fills the disk
   cache.
4. :class:`GzipSuppressionInterceptor` -- no implicit ``Accept-Encoding``.
5. :class:`CompressionInterceptor` -- negotiates Brotli/gzip and decodes
   br, gzip and deflate bodies.
6. :class:`HttpLoggingInterceptor` -- debug builds only.

Custom interceptors subclass :class:`Interceptor` and override any of
``on_request``, ``on_response`` and ``on_error``.
"""

from corenet.interceptors.base import (
    Exchange,
    Interceptor,
    InterceptorPipeline,
    Stage,
    buffer_raw,
    rebuild,
)
from corenet.interceptors.cache import CacheInterceptor
from corenet.interceptors.compression import CompressionInterceptor, GzipSuppressionInterceptor
from corenet.interceptors.http_logging import HTTP_LOGGER_NAME, HttpLoggingInterceptor, Level
from corenet.interceptors.safety import ExceptionSafetyInterceptor, classify_exception

__all__ = [
    "CacheInterceptor",
    "CompressionInterceptor",
    "Exchange",
    "ExceptionSafetyInterceptor",
    "GzipSuppressionInterceptor",
    "HTTP_LOGGER_NAME",
    "HttpLoggingInterceptor",
    "Interceptor",
    "InterceptorPipeline",
    "Level",
    "Stage",
    "buffer_raw",
    "classify_exception",
    "rebuild",
]

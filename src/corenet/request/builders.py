"""Request builders.

Each builder returns a fully formed :class:`RequestDescriptor` and performs no
network I/O. Defaults, shared by every builder:

* headers: none;
* cache directive: :data:`~corenet.cache.DEFAULT_CACHE_CONTROL`
  (``max-age=600``), mutating builders included. Pass
  :data:`~corenet.cache.FORCE_NETWORK` or :data:`~corenet.cache.NO_STORE`
  for calls that must never be answered from cache;
* body (POST/PUT/PATCH/DELETE): an empty form-encoded body.

Example::

    from corenet.request import get_request, post_request, form_body

    listing = get_request("https://api.example.com/items")
    created = post_request("https://api.example.com/items", body=form_body({"name": "a"}))
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Optional, Union

import httpx

from corenet.cache.control import DEFAULT_CACHE_CONTROL, CacheControl
from corenet.exceptions import InvalidURL
from corenet.request.body import EMPTY_FORM_BODY, RequestBody
from corenet.request.descriptor import RequestDescriptor
from corenet.request.multipart import PathLike, build_multipart

URLTypes = Union[str, httpx.URL]
HeaderTypes = Union[httpx.Headers, Mapping[str, str], Iterable[tuple[str, str]]]


def parse_url(url: URLTypes) -> httpx.URL:
    """Parse *url* into an absolute ``http``/``https`` :class:`httpx.URL`.

    Raises:
        InvalidURL: If the value cannot be parsed or is not absolute.
    """
    try:
        parsed = url if isinstance(url, httpx.URL) else httpx.URL(url)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise InvalidURL(f"Invalid URL {url!r}: {exc}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise InvalidURL(f"Expected an absolute http(s) URL, got {str(url)!r}")
    return parsed


def _header_items(headers: Optional[HeaderTypes]) -> tuple[tuple[str, str], ...]:
    if headers is None:
        return ()
    normalized = headers if isinstance(headers, httpx.Headers) else httpx.Headers(headers)
    encoding = normalized.encoding
    return tuple((key.decode(encoding), value.decode(encoding)) for key, value in normalized.raw)


def _build(
    method: str,
    url: URLTypes,
    headers: Optional[HeaderTypes],
    body: Optional[RequestBody],
    cache_control: CacheControl,
) -> RequestDescriptor:
    return RequestDescriptor(
        method=method,
        url=parse_url(url),
        header_items=_header_items(headers),
        body=body,
        cache_control=cache_control,
    )


def get_request(
    url: URLTypes,
    headers: Optional[HeaderTypes] = None,
    cache_control: CacheControl = DEFAULT_CACHE_CONTROL,
) -> RequestDescriptor:
    """Build a GET request."""
    return _build("GET", url, headers, None, cache_control)


def post_request(
    url: URLTypes,
    headers: Optional[HeaderTypes] = None,
    body: RequestBody = EMPTY_FORM_BODY,
    cache_control: CacheControl = DEFAULT_CACHE_CONTROL,
) -> RequestDescriptor:
    """Build a POST request."""
    return _build("POST", url, headers, body, cache_control)


def put_request(
    url: URLTypes,
    headers: Optional[HeaderTypes] = None,
    body: RequestBody = EMPTY_FORM_BODY,
    cache_control: CacheControl = DEFAULT_CACHE_CONTROL,
) -> RequestDescriptor:
    """Build a PUT request."""
    return _build("PUT", url, headers, body, cache_control)


def patch_request(
    url: URLTypes,
    headers: Optional[HeaderTypes] = None,
    body: RequestBody = EMPTY_FORM_BODY,
    cache_control: CacheControl = DEFAULT_CACHE_CONTROL,
) -> RequestDescriptor:
    """Build a PATCH request."""
    return _build("PATCH", url, headers, body, cache_control)


def delete_request(
    url: URLTypes,
    headers: Optional[HeaderTypes] = None,
    body: RequestBody = EMPTY_FORM_BODY,
    cache_control: CacheControl = DEFAULT_CACHE_CONTROL,
) -> RequestDescriptor:
    """Build a DELETE request."""
    return _build("DELETE", url, headers, body, cache_control)


def multipart_post_request(
    url: URLTypes,
    form_data: Optional[Mapping[str, str]] = None,
    files: Optional[Mapping[str, PathLike]] = None,
    headers: Optional[HeaderTypes] = None,
    cache_control: CacheControl = DEFAULT_CACHE_CONTROL,
) -> RequestDescriptor:
    """Build a ``multipart/form-data`` POST.

    Literal ``form_data`` fields come first, then ``files``, each in mapping
    order. File media types are inferred from their extension.

    Raises:
        InvalidURL: If *url* is not an absolute http(s) URL.
        UnreadableFile: If a file cannot be opened for streaming.
    """
    target = parse_url(url)
    body = build_multipart(form_data, files)
    return _build("POST", target, headers, body, cache_control)

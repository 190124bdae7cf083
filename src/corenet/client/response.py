"""Helpers for reading what the pipeline attached to a :class:`httpx.Response`.

The cache interceptor records how each response was obtained in
``response.extensions``; these helpers read it back, and
:func:`format_api_response` routes a response through the global
:class:`~corenet.output.OutputManager` for the CLI.
"""

from __future__ import annotations

from typing import Any

import httpx

from corenet.output import get_output


def is_from_cache(response: httpx.Response) -> bool:
    """Whether the body came from the disk cache (fresh, revalidated or offline)."""
    return bool(response.extensions.get("from_cache", False))


def cache_status(response: httpx.Response) -> str:
    """``hit``, ``conditional-hit``, ``offline-hit``, ``miss`` or ``unsatisfiable``."""
    return str(response.extensions.get("cache_status", "miss"))


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an HTTP response.

    Attempts to parse the body as JSON first. If that fails (e.g. the
    response is HTML or plain text), returns the raw text. Returns ``None``
    for responses with no content.
    """
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def format_api_response(response: httpx.Response, show_headers: bool = False) -> None:
    """Print the status line (and optionally headers) to stderr and the body to stdout."""
    output = get_output()
    output.info(
        f"HTTP {response.status_code} {response.reason_phrase or ''} [{cache_status(response)}]"
    )
    if show_headers:
        for name, value in response.headers.multi_items():
            output.info(f"{name}: {value}")

    data = extract_response_data(response)
    if data is not None:
        output.format_response(data, response.headers.get("content-type", "application/json"))

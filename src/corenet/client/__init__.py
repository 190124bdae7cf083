"""Client factory, client and call handles.

Use :func:`build_client` to obtain a :class:`Client` with timeouts, the disk
cache and the interceptor pipeline in place, then execute descriptors from
:mod:`corenet.request`::

    from corenet.client import build_client
    from corenet.request import get_request

    with build_client() as client:
        response = client.execute(get_request("https://example.com/"))

:class:`Client` executes blocking (:meth:`Client.execute`) or async
(:meth:`Client.aexecute`) calls through the same pipeline and cache;
:meth:`Client.new_call` returns a cancellable :class:`Call`.
"""

from corenet.client.call import Call
from corenet.client.client import Client, transport_timeout
from corenet.client.factory import build_client, build_interceptors
from corenet.client.response import cache_status, extract_response_data, is_from_cache

__all__ = [
    "Call",
    "Client",
    "build_client",
    "build_interceptors",
    "cache_status",
    "extract_response_data",
    "is_from_cache",
    "transport_timeout",
]

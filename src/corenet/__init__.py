"""corenet -- a configured HTTP client with disk caching and an interceptor pipeline.

corenet builds :class:`httpx`-based clients with sensible timeouts, an
on-disk response cache, Brotli/gzip negotiation and a fixed interceptor
pipeline, and provides typed builders for the requests they send.

Typical use::

    from corenet import build_client, get_request, post_request, form_body

    with build_client() as client:
        items = client.execute(get_request("https://api.example.com/items")).json()
        created = client.execute(
            post_request("https://api.example.com/items", body=form_body({"name": "a"}))
        )

Modules:
    client: Client factory, client and cancellable calls.
    request: Request descriptors, bodies and builders.
    interceptors: The interceptor contract and built-in interceptors.
    cache: Disk-backed response cache and its freshness rules.
    network: Network reachability.
    config: XDG-aware configuration loading.
    models: Pydantic models (``ClientConfig``).
    exceptions: Exception hierarchy with exit-code mapping.
    app: The ``corenet`` diagnostic CLI.
"""

__version__ = "0.1.0"

from corenet.cache.control import (  # noqa: E402
    DEFAULT_CACHE_CONTROL,
    FORCE_CACHE,
    FORCE_NETWORK,
    NO_STORE,
    CacheControl,
)
from corenet.client import Call, Client, build_client  # noqa: E402
from corenet.exceptions import (  # noqa: E402
    ConfigError,
    CorenetError,
    HTTPStatusError,
    InvalidURL,
    NetworkUnavailable,
    RequestCancelled,
    Timeout,
    TransportFailure,
    UnexpectedInternalFailure,
    UnreadableFile,
)
from corenet.interceptors import Interceptor  # noqa: E402
from corenet.models import ClientConfig  # noqa: E402
from corenet.network import is_network_reachable  # noqa: E402
from corenet.request import (  # noqa: E402
    RequestDescriptor,
    delete_request,
    form_body,
    get_request,
    json_body,
    multipart_post_request,
    patch_request,
    post_request,
    put_request,
)

__all__ = [
    "CacheControl",
    "Call",
    "Client",
    "ClientConfig",
    "ConfigError",
    "CorenetError",
    "DEFAULT_CACHE_CONTROL",
    "FORCE_CACHE",
    "FORCE_NETWORK",
    "HTTPStatusError",
    "Interceptor",
    "InvalidURL",
    "NO_STORE",
    "NetworkUnavailable",
    "RequestCancelled",
    "RequestDescriptor",
    "Timeout",
    "TransportFailure",
    "UnexpectedInternalFailure",
    "UnreadableFile",
    "build_client",
    "delete_request",
    "form_body",
    "get_request",
    "is_network_reachable",
    "json_body",
    "multipart_post_request",
    "patch_request",
    "post_request",
    "put_request",
]

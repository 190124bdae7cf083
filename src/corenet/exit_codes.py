"""Numeric process exit codes for the ``corenet`` diagnostic CLI.

Each constant maps to a failure category and is referenced by the
corresponding :class:`~corenet.exceptions.CorenetError` subclass, so shell
scripts can branch on the failure class without parsing stderr.

Example::

    $ corenet get https://api.example.com/items
    $ echo $?
    6   # EXIT_TRANSPORT_FAILURE -- DNS, TLS or connection error
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments (bad URL, unreadable file)."""

EXIT_HTTP_STATUS = 3
"""The server answered with a non-2xx status code."""

EXIT_TIMEOUT = 4
"""A connect, read, write, pool or call timeout elapsed."""

EXIT_NETWORK_UNAVAILABLE = 5
"""The host reported no usable network."""

EXIT_TRANSPORT_FAILURE = 6
"""A network-level error occurred (DNS failure, TLS error, connection reset)."""

EXIT_CANCELLED = 7
"""The request was cancelled before it completed."""

EXIT_INTERNAL_FAILURE = 10
"""An unexpected fault was caught inside the interceptor pipeline."""

"""Network reachability.

The host environment reports connectivity through a :class:`NetworkMonitor`:
anything with an ``active_network()`` method returning the current
:class:`NetworkInfo`, or ``None`` when there is no network at all. The check
is advisory only; a reachable network says nothing about any particular
server.

:class:`SocketNetworkMonitor` is the default. It asks the operating system
for a route to a public address without sending a packet.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

INTERNET = "internet"
"""Capability of a network that can reach the public internet."""


@dataclass(frozen=True)
class NetworkInfo:
    """The active network as the host sees it."""

    name: str
    capabilities: frozenset[str] = field(default_factory=frozenset)

    def has_capability(self, capability: str) -> bool:
        return capability in self.capabilities


@runtime_checkable
class NetworkMonitor(Protocol):
    """Source of connectivity information supplied by the host."""

    def active_network(self) -> Optional[NetworkInfo]:
        ...


class StaticNetworkMonitor:
    """Monitor that reports a fixed network; ``None`` means offline.

    Mostly useful for tests and for hosts that track connectivity
    themselves and push updates with :meth:`set_network`.
    """

    def __init__(self, network: Optional[NetworkInfo] = None) -> None:
        self._network = network

    @classmethod
    def online(cls, name: str = "static") -> StaticNetworkMonitor:
        return cls(NetworkInfo(name, frozenset({INTERNET})))

    @classmethod
    def offline(cls) -> StaticNetworkMonitor:
        return cls(None)

    def set_network(self, network: Optional[NetworkInfo]) -> None:
        self._network = network

    def active_network(self) -> Optional[NetworkInfo]:
        return self._network


class SocketNetworkMonitor:
    """Infers connectivity from the local routing table.

    Connecting a UDP socket sends nothing; it only selects the outgoing
    interface. A non-loopback local address means some route to the
    internet exists.

    Args:
        probe_host: Public address used to pick the route.
        probe_port: Port for the probe socket.
    """

    def __init__(self, probe_host: str = "1.1.1.1", probe_port: int = 53) -> None:
        self.probe_host = probe_host
        self.probe_port = probe_port

    def active_network(self) -> Optional[NetworkInfo]:
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
                sock.connect((self.probe_host, self.probe_port))
                local_address = sock.getsockname()[0]
        except OSError as exc:
            logger.debug("No route to %s: %s", self.probe_host, exc)
            return None
        if local_address.startswith("127.") or local_address == "0.0.0.0":
            return NetworkInfo(local_address)
        return NetworkInfo(local_address, frozenset({INTERNET}))


def is_network_reachable(monitor: Optional[NetworkMonitor] = None) -> bool:
    """Whether the active network claims internet access.

    Args:
        monitor: Connectivity source; defaults to :class:`SocketNetworkMonitor`.

    Returns:
        ``False`` when there is no active network or it lacks the
        :data:`INTERNET` capability.
    """
    monitor = monitor if monitor is not None else SocketNetworkMonitor()
    network = monitor.active_network()
    if network is None:
        return False
    return network.has_capability(INTERNET)

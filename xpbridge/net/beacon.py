"""One-shot multicast listener locating a running X-Plane instance."""
from __future__ import annotations

import logging
import socket
from typing import Callable, Iterable, List, Optional

import psutil

from ..core.errors import DiscoveryError, DiscoveryTimeout, MulticastJoinError
from ..core.protocol import MCAST_GROUP, MCAST_PORT, BeaconInfo, parse_beacon

logger = logging.getLogger(__name__)

BEACON_BUFFER_SIZE = 2048
DEFAULT_TIMEOUT_S = 5.0


def viable_interface_addresses() -> List[str]:
    """IPv4 addresses of interfaces that are up and multicast capable."""

    stats = psutil.net_if_stats()
    addrs = psutil.net_if_addrs()
    result: List[str] = []
    for name, st in stats.items():
        if not st.isup:
            continue
        # psutil reports no flags on some platforms; assume capable there.
        flags = getattr(st, "flags", "")
        if flags and "multicast" not in flags.split(","):
            continue
        for addr in addrs.get(name, []):
            if addr.family == socket.AF_INET:
                result.append(addr.address)
    return result


def _default_socket() -> socket.socket:
    return socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)


class BeaconDiscoverer:
    """Listens once for a simulator beacon on the multicast group."""

    def __init__(
        self,
        group: str = MCAST_GROUP,
        port: int = MCAST_PORT,
        *,
        socket_factory: Callable[[], socket.socket] = _default_socket,
        interfaces: Callable[[], Iterable[str]] = viable_interface_addresses,
    ) -> None:
        self.group = group
        self.port = port
        self._socket_factory = socket_factory
        self._interfaces = interfaces

    def discover(self, timeout: float = DEFAULT_TIMEOUT_S) -> BeaconInfo:
        """Wait up to *timeout* seconds for one beacon and decode it.

        A single datagram is read; a foreign packet fails with
        :class:`DiscoveryNotFound` and callers decide whether to retry.
        """

        sock = self._socket_factory()
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            try:
                sock.bind(("", self.port))
            except OSError as exc:
                raise DiscoveryError(f"failed to bind beacon port {self.port}: {exc}") from exc

            self._join_group(sock)
            sock.settimeout(timeout)

            try:
                packet, sender = sock.recvfrom(BEACON_BUFFER_SIZE)
            except socket.timeout as exc:
                raise DiscoveryTimeout(
                    f"no X-Plane beacon received within {timeout:.1f}s"
                ) from exc
            except OSError as exc:
                raise DiscoveryError(f"error reading beacon packet: {exc}") from exc

            logger.debug("Beacon from %s: %s", sender[0], packet.hex())
            return parse_beacon(packet, sender[0])
        finally:
            sock.close()

    def _join_group(self, sock: socket.socket) -> None:
        group = socket.inet_aton(self.group)
        joined: Optional[str] = None
        for address in self._interfaces():
            try:
                mreq = group + socket.inet_aton(address)
                sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)
            except OSError as exc:
                logger.debug("Could not join %s on %s: %s", self.group, address, exc)
                continue
            logger.debug("Joined %s on %s", self.group, address)
            joined = joined or address
        if joined is None:
            raise MulticastJoinError(
                f"failed to join multicast group {self.group} on any viable interface"
            )


__all__ = ["BeaconDiscoverer", "viable_interface_addresses"]

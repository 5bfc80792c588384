"""Exceptions raised by the bridge."""
from __future__ import annotations


class BridgeError(Exception):
    """Base class for all bridge failures."""


class DiscoveryError(BridgeError):
    """The simulator could not be located."""


class DiscoveryNotFound(DiscoveryError):
    """No usable beacon was received."""


class DiscoveryTimeout(DiscoveryNotFound):
    """No datagram arrived on the beacon socket before the deadline."""


class UnsupportedProtocolVersion(DiscoveryError):
    """The beacon advertises a version or host this bridge cannot talk to."""


class MulticastJoinError(DiscoveryError):
    """Joining the beacon multicast group failed on every interface."""


class SocketNotInitialized(BridgeError):
    """A request was issued before the simulator endpoint was configured."""


class SendFailure(BridgeError):
    """A subscription request could not be written to the socket."""


class SinkConnectionError(BridgeError, ConnectionError):
    """The downstream telemetry consumer is unreachable."""

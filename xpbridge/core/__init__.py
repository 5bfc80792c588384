"""Wire protocol and shared dataref state."""

from .errors import (
    BridgeError,
    DiscoveryError,
    DiscoveryNotFound,
    DiscoveryTimeout,
    MulticastJoinError,
    SendFailure,
    SinkConnectionError,
    SocketNotInitialized,
    UnsupportedProtocolVersion,
)
from .protocol import BeaconInfo
from .state import DatarefStore

__all__ = [
    "BeaconInfo",
    "BridgeError",
    "DatarefStore",
    "DiscoveryError",
    "DiscoveryNotFound",
    "DiscoveryTimeout",
    "MulticastJoinError",
    "SendFailure",
    "SinkConnectionError",
    "SocketNotInitialized",
    "UnsupportedProtocolVersion",
]

"""Networking helpers for the bridge."""

from .beacon import BeaconDiscoverer
from .subscription import SubscriptionChannel
from .tcp_sink import Endpoint, TcpSink
from .udp_receiver import ReceiverState, TelemetryReceiver

__all__ = [
    "BeaconDiscoverer",
    "Endpoint",
    "ReceiverState",
    "SubscriptionChannel",
    "TcpSink",
    "TelemetryReceiver",
]

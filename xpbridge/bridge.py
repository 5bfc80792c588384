"""Startup sequencing and shutdown of the X-Plane bridge."""
from __future__ import annotations

import logging
import socket
from typing import Callable, Optional

from .core.errors import DiscoveryNotFound, SendFailure, SocketNotInitialized
from .core.protocol import BeaconInfo
from .core.state import DatarefStore
from .net.beacon import BeaconDiscoverer
from .net.subscription import SubscriptionChannel
from .net.tcp_sink import Endpoint, TcpSink
from .net.udp_receiver import TelemetryReceiver
from .publish.position_publisher import PositionPublisher
from .services.aircraft_monitor import AircraftChangeMonitor, TelemetrySink
from .services.string_reader import StringDatarefReader
from .telemetry.assembler import TelemetryAssembler
from .telemetry.datarefs import POSITION_DATAREFS
from .telemetry.settings import BridgeSettings

logger = logging.getLogger(__name__)


def _open_udp_socket() -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("0.0.0.0", 0))
    return sock


class XPlaneBridge:
    """Wires discovery, subscriptions, the receiver and the publishers."""

    def __init__(
        self,
        settings: BridgeSettings,
        *,
        discoverer: Optional[BeaconDiscoverer] = None,
        sink: Optional[TelemetrySink] = None,
        socket_factory: Callable[[], socket.socket] = _open_udp_socket,
    ):
        self.settings = settings
        self.discoverer = discoverer or BeaconDiscoverer()
        self.sink = sink or TcpSink(Endpoint(settings.sink_host, settings.sink_port))
        self._socket_factory = socket_factory
        self._sock: Optional[socket.socket] = None
        self.beacon: Optional[BeaconInfo] = None

        self.store = DatarefStore()
        self.channel = SubscriptionChannel(self.store)
        self.receiver = TelemetryReceiver(self.store)
        self.assembler = TelemetryAssembler(settings.sim_abbreviation, settings.sim_version)
        self.reader = StringDatarefReader(self.channel, self.store)
        self.monitor = AircraftChangeMonitor(
            self.channel,
            self.store,
            self.reader,
            self.sink,
            self.assembler,
            interval=settings.monitor_interval_s,
        )
        self.publisher = PositionPublisher(
            self.store, self.sink, self.assembler, rate_hz=settings.publish_rate_hz
        )

    def discover(self) -> BeaconInfo:
        """Locate the simulator, retrying on timeouts and foreign packets."""

        attempts = max(1, self.settings.discovery_attempts)
        for attempt in range(1, attempts + 1):
            try:
                beacon = self.discoverer.discover(self.settings.discovery_timeout_s)
                break
            except DiscoveryNotFound as exc:
                logger.info("Discovery attempt %d/%d failed: %s", attempt, attempts, exc)
                if attempt == attempts:
                    raise

        logger.info(
            "Found X-Plane at %s:%d (Hostname: %s, version %d)",
            beacon.ip,
            beacon.port,
            beacon.hostname,
            beacon.xplane_version,
        )
        self.beacon = beacon
        return beacon

    def start(self) -> None:
        """Discover the simulator and start every background task."""

        self.receiver.start()
        beacon = self.discover()

        self._sock = self._socket_factory()
        self.channel.configure(self._sock, (beacon.ip, beacon.port))
        self.receiver.install_socket(self._sock)

        self.subscribe_position()
        self.monitor.start()
        self.publisher.start()
        logger.info(
            "Bridge running. Forwarding data to %s:%d",
            self.settings.sink_host,
            self.settings.sink_port,
        )

    def subscribe_position(self) -> None:
        for name in POSITION_DATAREFS:
            try:
                self.channel.set_frequency(name, self.settings.dataref_rate_hz)
            except (SendFailure, SocketNotInitialized) as exc:
                logger.warning("Failed to subscribe to %s: %s", name, exc)

    def shutdown(self) -> None:
        """Stop the loops, unsubscribe everything and release sockets."""

        self.publisher.stop()
        self.monitor.stop()
        if self._sock is not None:
            logger.info("Closing connection and unsubscribing from datarefs...")
            self.channel.unsubscribe_all()
        self.receiver.stop()
        if self._sock is not None:
            self._sock.close()
            self._sock = None
        close = getattr(self.sink, "close", None)
        if callable(close):
            close()
        logger.info("Connection closed.")


__all__ = ["XPlaneBridge"]

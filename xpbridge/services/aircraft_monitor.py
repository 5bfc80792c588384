"""Detect aircraft changes and announce the new aircraft downstream."""
from __future__ import annotations

import logging
import re
import threading
from typing import Optional, Protocol

from ..core.errors import BridgeError, SendFailure, SocketNotInitialized
from ..core.state import DatarefStore
from ..net.subscription import SubscriptionChannel
from ..telemetry import datarefs as dr
from ..telemetry.assembler import TelemetryAssembler
from .string_reader import StringDatarefReader, as_byte, element_names

logger = logging.getLogger(__name__)

# G-ABCD, EI-GJK / 9H-QDU, N12345 / N1A / N12AB
REGISTRATION_RE = re.compile(r"[A-Z]-[A-Z]{4}|([A-Z]|[1-9]){2}-[A-Z]{3}|N[0-9]{1,5}[A-Z]{0,2}")

TRIGGER_FREQ_HZ = 1


class TelemetrySink(Protocol):
    def send(self, payload: bytes) -> None: ...


def extract_registration(livery_path: str, tail_number: str) -> str:
    """Registration found in the livery path, else the tail number."""

    match = REGISTRATION_RE.search(livery_path)
    if match:
        return match.group(0)
    return tail_number


class AircraftChangeMonitor:
    """Polls the first ICAO bytes and refetches the identity on change."""

    def __init__(
        self,
        channel: SubscriptionChannel,
        store: DatarefStore,
        reader: StringDatarefReader,
        sink: TelemetrySink,
        assembler: TelemetryAssembler,
        *,
        interval: float = 2.0,
    ):
        self.channel = channel
        self.store = store
        self.reader = reader
        self.sink = sink
        self.assembler = assembler
        self.interval = interval
        self.last_icao = ""
        self._trigger_refs = element_names(dr.AIRCRAFT_ICAO, dr.ICAO_TRIGGER_LENGTH)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def subscribe_trigger(self) -> None:
        for name in self._trigger_refs:
            try:
                self.channel.set_frequency(name, TRIGGER_FREQ_HZ)
            except (SendFailure, SocketNotInitialized) as exc:
                logger.warning("Failed to subscribe to %s: %s", name, exc)

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self.subscribe_trigger()
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="AircraftChangeMonitor",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread:
            # A tick may be blocked inside a string read.
            self._thread.join(timeout=self.interval + 10.0)
        self._thread = None

    def current_prefix(self) -> str:
        """The cached trigger bytes, stopping at the first NUL.

        Empty until every element before the NUL has a cached value.
        """

        buf = bytearray()
        for name in self._trigger_refs:
            value, found = self.store.get(name)
            if not found:
                return ""
            byte = as_byte(value)
            if byte == 0:
                break
            buf.append(byte)
        return buf.decode("utf-8", errors="replace")

    def tick(self) -> bool:
        """Run one poll; returns True when an update was delivered."""

        prefix = self.current_prefix()
        if not prefix or prefix == self.last_icao:
            return False

        logger.info("Aircraft change detected (ICAO prefix: %s). Fetching details...", prefix)
        icao = self.reader.read_string(dr.AIRCRAFT_ICAO, dr.ICAO_LENGTH)
        tail_number = self.reader.read_string(dr.AIRCRAFT_TAILNUM, dr.TAILNUM_LENGTH)
        livery_path = self.reader.read_string(dr.AIRCRAFT_LIVERY, dr.LIVERY_LENGTH)
        # The ICAO read released the trigger elements along with the rest.
        self.subscribe_trigger()
        registration = extract_registration(livery_path, tail_number)

        logger.info("Sending aircraft update: ICAO=%s, Reg=%s", icao, registration)
        try:
            self.sink.send(self.assembler.build_aircraft_update(icao, registration))
        except (BridgeError, OSError) as exc:
            logger.warning("Failed to send aircraft update: %s", exc)
            return False

        # TODO: when the fetched ICAO disagrees with the trigger bytes the next
        # tick refetches again; decide whether to remember the trigger prefix.
        self.last_icao = icao[: dr.ICAO_TRIGGER_LENGTH] if icao else prefix
        return True

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Aircraft monitor tick failed")

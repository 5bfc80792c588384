"""Periodic POSITION_UPDATE delivery to the telemetry consumer."""
from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from ..core.errors import BridgeError
from ..core.state import DatarefStore
from ..services.aircraft_monitor import TelemetrySink
from ..telemetry.assembler import TelemetryAssembler

logger = logging.getLogger(__name__)


class PositionPublisher:
    """Sends the latest cached position at a fixed rate.

    Failed sends are skipped; the next tick carries fresh values.
    """

    def __init__(
        self,
        store: DatarefStore,
        sink: TelemetrySink,
        assembler: TelemetryAssembler,
        rate_hz: int = 10,
    ):
        self.store = store
        self.sink = sink
        self.assembler = assembler
        self.sent = 0
        self.skipped = 0
        self._period_ns = self._compute_period_ns(rate_hz)
        self._wakeup = threading.Event()
        self._running = False
        self._thread: Optional[threading.Thread] = None

    @staticmethod
    def _compute_period_ns(rate_hz: int) -> int:
        cap = max(1, min(60, int(rate_hz)))
        return max(1, int(1_000_000_000 / cap))

    def publish_once(self) -> bool:
        """Send one update; returns False when the sink rejected it."""

        payload = self.assembler.build_position_update(self.store.value)
        try:
            self.sink.send(payload)
        except (BridgeError, OSError) as exc:
            self.skipped += 1
            logger.debug("Position update skipped: %s", exc)
            return False
        self.sent += 1
        return True

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._running = True
        self._wakeup.clear()
        self._thread = threading.Thread(target=self._run, name="PositionPublisher", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._running = False
        self._wakeup.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
        self._thread = None

    def _run(self) -> None:
        next_deadline: Optional[int] = None
        while self._running:
            now_ns = time.perf_counter_ns()
            if next_deadline is not None and now_ns < next_deadline:
                self._wakeup.wait(timeout=(next_deadline - now_ns) / 1e9)
                self._wakeup.clear()
                continue

            self.publish_once()

            sent_ns = time.perf_counter_ns()
            period_ns = self._period_ns
            if next_deadline is None:
                next_deadline = sent_ns
            next_deadline += period_ns
            while next_deadline <= sent_ns:
                next_deadline += period_ns


__all__ = ["PositionPublisher"]

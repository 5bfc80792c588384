"""Reconstruct string datarefs from their per-byte array elements."""
from __future__ import annotations

import logging
import math
import time
from typing import Optional, Protocol, Sequence

from ..core.errors import SendFailure, SocketNotInitialized
from ..core.state import DatarefStore
from ..net.subscription import SubscriptionChannel

logger = logging.getLogger(__name__)

STRING_FREQ_HZ = 1
TICK_S = 0.1
TIMEOUT_S = 3.0


class Clock(Protocol):
    def monotonic(self) -> float: ...

    def sleep(self, seconds: float) -> None: ...


class SystemClock:
    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


def element_names(base_name: str, length: int) -> list[str]:
    return [f"{base_name}[{i}]" for i in range(length)]


def as_byte(value: float) -> int:
    if not math.isfinite(value):
        return 0
    return int(value) & 0xFF


class StringDatarefReader:
    """Subscribes to ``base[0..n-1]``, waits for the bytes, then unsubscribes.

    Blocking for at most ``timeout`` seconds. Each call subscribes its own
    element names, so reads of different datarefs may run concurrently.
    """

    def __init__(
        self,
        channel: SubscriptionChannel,
        store: DatarefStore,
        *,
        clock: Optional[Clock] = None,
        freq: int = STRING_FREQ_HZ,
    ):
        self.channel = channel
        self.store = store
        self.clock = clock or SystemClock()
        self.freq = freq

    def read_string(
        self,
        base_name: str,
        max_length: int,
        *,
        tick: float = TICK_S,
        timeout: float = TIMEOUT_S,
    ) -> str:
        names = element_names(base_name, max_length)
        if not names:
            return ""

        raw = b""
        try:
            for name in names:
                self._request(name, self.freq)

            deadline = self.clock.monotonic() + timeout
            while True:
                self.clock.sleep(tick)
                scanned = self.scan(names)
                if scanned is not None:
                    raw = scanned
                    break
                if self.clock.monotonic() >= deadline:
                    logger.debug("Timed out reading %s", base_name)
                    break
        finally:
            for name in names:
                self._request(name, 0)

        return raw.decode("utf-8", errors="replace")

    def scan(self, names: Sequence[str]) -> Optional[bytes]:
        """Return the string bytes once a contiguous prefix is complete.

        ``None`` means an element before the terminator has not arrived yet.
        """

        buf = bytearray()
        for name in names:
            value, found = self.store.get(name)
            if not found:
                return None
            byte = as_byte(value)
            if byte == 0:
                return bytes(buf)
            buf.append(byte)
        return bytes(buf)

    def _request(self, name: str, freq: int) -> None:
        try:
            self.channel.set_frequency(name, freq)
        except (SendFailure, SocketNotInitialized) as exc:
            logger.warning("RREF %s freq=%d failed: %s", name, freq, exc)


__all__ = ["Clock", "StringDatarefReader", "SystemClock", "as_byte", "element_names"]

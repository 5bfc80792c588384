"""Threaded receiver decoding RREF value packets into the dataref store."""
from __future__ import annotations

import enum
import logging
import socket
import threading
from typing import Optional

from ..core.protocol import decode_values, is_value_packet
from ..core.state import DatarefStore

logger = logging.getLogger(__name__)

RECV_BUFFER_SIZE = 2048


class ReceiverState(enum.Enum):
    IDLE = "idle"
    LISTENING = "listening"


class TelemetryReceiver:
    """A background thread that stores incoming dataref values.

    The socket is installed after discovery; until then the thread idles and
    rechecks every ``idle_interval`` seconds.
    """

    def __init__(
        self,
        store: DatarefStore,
        *,
        read_timeout: float = 5.0,
        idle_interval: float = 1.0,
    ):
        self.store = store
        self.read_timeout = read_timeout
        self.idle_interval = idle_interval
        self.packets = 0
        self.values = 0
        self._stop = threading.Event()
        self._sock: Optional[socket.socket] = None
        self._sock_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> ReceiverState:
        with self._sock_lock:
            return ReceiverState.IDLE if self._sock is None else ReceiverState.LISTENING

    def install_socket(self, sock: socket.socket) -> None:
        """Hand over the socket shared with the subscription channel."""
        with self._sock_lock:
            self._sock = sock

    def start(self) -> None:
        """Start the receiver thread if it is not already running."""
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="TelemetryReceiver",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop the receiver thread. The socket stays owned by the caller."""
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=self.read_timeout + 1.0)
        self._thread = None

    def handle_datagram(self, data: bytes) -> int:
        """Decode one datagram; returns the number of values stored."""

        if not is_value_packet(data):
            return 0
        self.packets += 1
        stored = self.store.apply_records(decode_values(data))
        self.values += stored
        return stored

    def _run(self) -> None:
        while not self._stop.is_set():
            with self._sock_lock:
                sock = self._sock
            if sock is None:
                self._stop.wait(self.idle_interval)
                continue

            try:
                sock.settimeout(self.read_timeout)
                data, _ = sock.recvfrom(RECV_BUFFER_SIZE)
            except socket.timeout:
                continue
            except OSError as exc:
                if self._stop.is_set():
                    break
                logger.warning("Error reading from UDP: %s", exc)
                if sock.fileno() == -1:
                    # Closed underneath us; wait for a new socket.
                    with self._sock_lock:
                        if self._sock is sock:
                            self._sock = None
                continue

            self.handle_datagram(data)


__all__ = ["ReceiverState", "TelemetryReceiver"]

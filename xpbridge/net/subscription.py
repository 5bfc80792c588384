"""Dataref subscribe/unsubscribe requests sent to the simulator."""
from __future__ import annotations

import logging
import socket
import threading
from typing import List, Optional, Tuple

from ..core.errors import SendFailure, SocketNotInitialized
from ..core.protocol import UNREGISTERED_INDEX, encode_subscribe
from ..core.state import DatarefStore

logger = logging.getLogger(__name__)


class SubscriptionChannel:
    """Maps dataref names to wire indices and sends RREF requests.

    The socket is shared with :class:`TelemetryReceiver`; the simulator
    answers to the address the requests were sent from.
    """

    def __init__(self, store: DatarefStore):
        self.store = store
        self._sock: Optional[socket.socket] = None
        self._destination: Optional[Tuple[str, int]] = None
        self._lock = threading.Lock()

    def configure(self, sock: socket.socket, destination: Tuple[str, int]) -> None:
        """Install the local socket and the simulator endpoint."""

        with self._lock:
            self._sock = sock
            self._destination = (destination[0], int(destination[1]))

    @property
    def destination(self) -> Optional[Tuple[str, int]]:
        return self._destination

    def set_frequency(self, name: str, freq: int) -> int:
        """Request *name* at *freq* Hz, or unsubscribe with ``freq == 0``.

        Returns the wire index used in the request.
        """

        with self._lock:
            sock = self._sock
            destination = self._destination
        if sock is None or destination is None:
            raise SocketNotInitialized("socket not initialized, configure the channel first")

        freq = int(freq)
        if freq > 0:
            index = self.store.allocate(name)
        else:
            released = self.store.release(name)
            index = UNREGISTERED_INDEX if released is None else released

        try:
            sock.sendto(encode_subscribe(freq, index, name), destination)
        except OSError as exc:
            raise SendFailure(f"failed to send RREF for {name}: {exc}") from exc
        logger.debug("RREF %s freq=%d idx=%d", name, freq, index)
        return index

    def subscribe(self, name: str, freq: int) -> int:
        return self.set_frequency(name, freq)

    def unsubscribe(self, name: str) -> int:
        return self.set_frequency(name, 0)

    def subscribed(self) -> List[str]:
        return self.store.registered()

    def unsubscribe_all(self) -> int:
        """Unsubscribe every registered dataref; returns the failure count."""

        failures = 0
        for name in self.store.registered():
            try:
                self.unsubscribe(name)
            except (SendFailure, SocketNotInitialized) as exc:
                failures += 1
                logger.warning("Failed to unsubscribe from %s: %s", name, exc)
        return failures


__all__ = ["SubscriptionChannel"]

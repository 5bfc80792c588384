"""Lazy TCP connection to the downstream telemetry consumer."""
from __future__ import annotations

import logging
import socket
import threading
from dataclasses import dataclass
from typing import Optional

from ..core.errors import SinkConnectionError

logger = logging.getLogger(__name__)


@dataclass
class Endpoint:
    """Simple TCP endpoint descriptor."""

    host: str
    port: int


class TcpSink:
    """Writes payloads to the consumer, reconnecting on the next send after a failure."""

    def __init__(self, endpoint: Endpoint, *, connect_timeout: float = 2.0):
        self.endpoint = endpoint
        self.connect_timeout = connect_timeout
        self._conn: Optional[socket.socket] = None
        self._lock = threading.Lock()

    @property
    def connected(self) -> bool:
        return self._conn is not None

    def send(self, payload: bytes) -> None:
        with self._lock:
            if self._conn is None:
                self._conn = self._connect()
            try:
                self._conn.sendall(payload)
            except OSError as exc:
                self._drop()
                raise SinkConnectionError(f"write to {self._address()} failed: {exc}") from exc

    def close(self) -> None:
        with self._lock:
            self._drop()

    def _connect(self) -> socket.socket:
        try:
            conn = socket.create_connection(
                (self.endpoint.host, self.endpoint.port), timeout=self.connect_timeout
            )
        except OSError as exc:
            raise SinkConnectionError(f"cannot connect to {self._address()}: {exc}") from exc
        logger.info("Connected to telemetry consumer at %s", self._address())
        return conn

    def _drop(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.close()
        except OSError:
            pass
        self._conn = None

    def _address(self) -> str:
        return f"{self.endpoint.host}:{self.endpoint.port}"


__all__ = ["Endpoint", "TcpSink"]

"""Dataref index registry and value cache shared between threads."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from .protocol import clamp_noise


class ReadWriteLock:
    """Many concurrent readers or a single writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class DatarefRegistry:
    """Bidirectional name <-> wire index mapping.

    Not synchronized; :class:`DatarefStore` serializes access.
    """

    def __init__(self) -> None:
        self._next_index = 0
        self._by_index: Dict[int, str] = {}
        self._by_name: Dict[str, int] = {}

    def allocate(self, name: str) -> int:
        existing = self._by_name.get(name)
        if existing is not None:
            return existing
        index = self._next_index
        self._next_index += 1
        self._by_index[index] = name
        self._by_name[name] = index
        return index

    def release(self, name: str) -> Optional[int]:
        index = self._by_name.pop(name, None)
        if index is not None:
            del self._by_index[index]
        return index

    def resolve(self, index: int) -> Optional[str]:
        return self._by_index.get(index)

    def index_of(self, name: str) -> Optional[int]:
        return self._by_name.get(name)

    def names(self) -> List[str]:
        return list(self._by_name)

    def __len__(self) -> int:
        return len(self._by_name)


class DatarefStore:
    """Registry and last-known values behind one reader/writer lock.

    The receiver thread is the only writer of values; the subscription
    channel allocates and releases indices. Everything else only reads.
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._registry = DatarefRegistry()
        self._values: Dict[str, float] = {}

    # -------------------- Registry --------------------
    def allocate(self, name: str) -> int:
        with self._lock.write():
            return self._registry.allocate(name)

    def release(self, name: str) -> Optional[int]:
        """Drop the registration and cached value of *name*."""
        with self._lock.write():
            index = self._registry.release(name)
            if index is not None:
                self._values.pop(name, None)
            return index

    def resolve(self, index: int) -> Optional[str]:
        with self._lock.read():
            return self._registry.resolve(index)

    def index_of(self, name: str) -> Optional[int]:
        with self._lock.read():
            return self._registry.index_of(name)

    def registered(self) -> List[str]:
        with self._lock.read():
            return self._registry.names()

    # -------------------- Values --------------------
    def get(self, name: str) -> Tuple[float, bool]:
        """Return ``(value, found)``; missing entries read as ``0.0``."""
        with self._lock.read():
            value = self._values.get(name)
        if value is None:
            return 0.0, False
        return value, True

    def value(self, name: str, default: float = 0.0) -> float:
        value, found = self.get(name)
        return value if found else default

    def apply_records(self, records: np.ndarray) -> int:
        """Store decoded ``(index, value)`` records, all under one write lock.

        Records whose index is not registered are dropped. Returns the number
        of values stored.
        """

        if len(records) == 0:
            return 0
        indices = records["index"].tolist()
        values = clamp_noise(records["value"]).tolist()
        stored = 0
        with self._lock.write():
            for index, value in zip(indices, values):
                name = self._registry.resolve(index)
                if name is None:
                    continue
                self._values[name] = value
                stored += 1
        return stored


__all__ = ["DatarefRegistry", "DatarefStore", "ReadWriteLock"]

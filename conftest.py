import time
from typing import Callable, List, Optional, Tuple

import pytest

from xpbridge.core.protocol import decode_subscribe, decode_values, encode_values
from xpbridge.core.state import DatarefStore
from xpbridge.net.subscription import SubscriptionChannel


class FakeClock:
    """Deterministic clock; ``sleep`` advances time and runs registered hooks."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps = 0
        self._hooks: List[Callable[[int], None]] = []

    def on_sleep(self, hook: Callable[[int], None]) -> None:
        self._hooks.append(hook)

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds
        self.sleeps += 1
        for hook in list(self._hooks):
            hook(self.sleeps)


class FakeUdpSocket:
    """Records outgoing datagrams instead of sending them."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: List[Tuple[bytes, Tuple[str, int]]] = []
        self.fail = fail

    def sendto(self, data: bytes, addr: Tuple[str, int]) -> int:
        if self.fail:
            raise OSError("network unreachable")
        self.sent.append((data, addr))
        return len(data)

    def requests(self) -> List[Tuple[int, int, str]]:
        return [decode_subscribe(data) for data, _ in self.sent]


class FakeSimulator:
    """Answers the channel's subscriptions by writing values into the store."""

    def __init__(self, store: DatarefStore, sock: FakeUdpSocket) -> None:
        self.store = store
        self.sock = sock
        self.values: dict = {}

    def deliver(self, names: Optional[List[str]] = None) -> int:
        active = {}
        for freq, idx, name in self.sock.requests():
            if freq > 0:
                active[name] = idx
            else:
                active.pop(name, None)
        records = [
            (idx, self.values[name])
            for name, idx in active.items()
            if name in self.values and (names is None or name in names)
        ]
        return self.store.apply_records(decode_values(encode_values(records)))


@pytest.fixture
def store() -> DatarefStore:
    return DatarefStore()


@pytest.fixture
def fake_socket() -> FakeUdpSocket:
    return FakeUdpSocket()


@pytest.fixture
def channel(store: DatarefStore, fake_socket: FakeUdpSocket) -> SubscriptionChannel:
    ch = SubscriptionChannel(store)
    ch.configure(fake_socket, ("192.168.1.10", 49000))
    return ch


@pytest.fixture
def simulator(store: DatarefStore, fake_socket: FakeUdpSocket) -> FakeSimulator:
    return FakeSimulator(store, fake_socket)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def wait_until() -> Callable[..., None]:
    def _wait_until(condition: Callable[[], bool], timeout: float = 1.0, interval: float = 0.01) -> None:
        deadline = time.monotonic() + timeout
        while not condition():
            if time.monotonic() > deadline:
                raise AssertionError("condition not met before timeout")
            time.sleep(interval)

    return _wait_until

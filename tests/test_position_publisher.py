import json
import logging
from unittest.mock import MagicMock

from xpbridge.core.errors import SinkConnectionError
from xpbridge.core.protocol import decode_values, encode_values
from xpbridge.core.state import DatarefStore
from xpbridge.publish.position_publisher import PositionPublisher
from xpbridge.telemetry import datarefs as dr
from xpbridge.telemetry.assembler import TelemetryAssembler


def test_publish_once_uses_cached_values(store: DatarefStore) -> None:
    index = store.allocate(dr.LATITUDE)
    store.apply_records(decode_values(encode_values([(index, 47.5)])))
    sink = MagicMock()
    publisher = PositionPublisher(store, sink, TelemetryAssembler())

    assert publisher.publish_once() is True

    data = json.loads(sink.send.call_args.args[0])["data"]
    assert data["latitude"] == 47.5
    assert data["longitude"] == 0.0
    assert publisher.sent == 1


def test_sink_failure_is_skipped(store: DatarefStore, caplog) -> None:
    caplog.set_level(logging.DEBUG)
    sink = MagicMock()
    sink.send.side_effect = SinkConnectionError("refused")
    publisher = PositionPublisher(store, sink, TelemetryAssembler())

    assert publisher.publish_once() is False
    assert publisher.skipped == 1
    assert any("Position update skipped" in message for _, __, message in caplog.record_tuples)


def test_background_loop_keeps_publishing_through_failures(store: DatarefStore, wait_until) -> None:
    calls = []

    def send(payload: bytes) -> None:
        calls.append(payload)
        if len(calls) == 1:
            raise SinkConnectionError("down")

    sink = MagicMock()
    sink.send.side_effect = send
    publisher = PositionPublisher(store, sink, TelemetryAssembler(), rate_hz=50)
    publisher.start()
    try:
        wait_until(lambda: publisher.sent >= 3, timeout=2.0)
    finally:
        publisher.stop()
    assert publisher.skipped == 1


def test_rate_is_clamped() -> None:
    assert PositionPublisher._compute_period_ns(0) == 1_000_000_000
    assert PositionPublisher._compute_period_ns(1000) == 1_000_000_000 // 60


def test_rate_is_fixed_at_construction(store: DatarefStore) -> None:
    publisher = PositionPublisher(store, MagicMock(), TelemetryAssembler(), rate_hz=20)
    assert publisher._period_ns == 50_000_000

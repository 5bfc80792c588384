import json
from unittest.mock import MagicMock

import pytest

from xpbridge.core.errors import SinkConnectionError
from xpbridge.core.state import DatarefStore
from xpbridge.net.subscription import SubscriptionChannel
from xpbridge.services.aircraft_monitor import AircraftChangeMonitor, extract_registration
from xpbridge.services.string_reader import StringDatarefReader
from xpbridge.telemetry import datarefs as dr
from xpbridge.telemetry.assembler import TelemetryAssembler

from conftest import FakeClock, FakeSimulator, FakeUdpSocket


@pytest.mark.parametrize(
    "livery,tail,expected",
    [
        ("Aircraft/Laminar/liveries/N12345AB/", "N1", "N12345AB"),
        ("liveries/Ryanair EI-DWF", "", "EI-DWF"),
        ("liveries/9H-QDU Air Malta", "", "9H-QDU"),
        ("liveries/G-ABCD", "", "G-ABCD"),
        ("liveries/default", "D-ABCD", "D-ABCD"),
        ("", "D-ABCD", "D-ABCD"),
    ],
)
def test_extract_registration(livery: str, tail: str, expected: str) -> None:
    assert extract_registration(livery, tail) == expected


def _monitor(channel, store, strings, sink=None):
    reader = MagicMock(spec=StringDatarefReader)
    reader.read_string.side_effect = lambda base, length: strings[base]
    sink = sink or MagicMock()
    monitor = AircraftChangeMonitor(channel, store, reader, sink, TelemetryAssembler())
    monitor.subscribe_trigger()
    return monitor, reader, sink


def _set_trigger(simulator: FakeSimulator, text: bytes) -> None:
    for i in range(dr.ICAO_TRIGGER_LENGTH):
        simulator.values[f"{dr.AIRCRAFT_ICAO}[{i}]"] = float(text[i]) if i < len(text) else 0.0
    simulator.deliver()


STRINGS = {
    dr.AIRCRAFT_ICAO: "B738",
    dr.AIRCRAFT_TAILNUM: "D-ABCD",
    dr.AIRCRAFT_LIVERY: "Aircraft/B738/liveries/N12345AB/",
}


def test_no_trigger_data_does_nothing(channel: SubscriptionChannel, store: DatarefStore) -> None:
    monitor, reader, sink = _monitor(channel, store, STRINGS)
    assert monitor.tick() is False
    reader.read_string.assert_not_called()
    sink.send.assert_not_called()


def test_change_sends_aircraft_update(
    channel: SubscriptionChannel, store: DatarefStore, simulator: FakeSimulator
) -> None:
    monitor, reader, sink = _monitor(channel, store, STRINGS)
    _set_trigger(simulator, b"B738")

    assert monitor.tick() is True

    assert [c.args for c in reader.read_string.call_args_list] == [
        (dr.AIRCRAFT_ICAO, 40),
        (dr.AIRCRAFT_TAILNUM, 40),
        (dr.AIRCRAFT_LIVERY, 255),
    ]
    message = json.loads(sink.send.call_args.args[0])
    assert message == {
        "type": "STREAM",
        "name": "AIRCRAFT_UPDATE",
        "data": {
            "title": "",
            "type": "B738",
            "model": "B738",
            "registration": "N12345AB",
            "airline": "",
        },
    }
    assert monitor.last_icao == "B738"


def test_same_prefix_is_not_refetched(
    channel: SubscriptionChannel, store: DatarefStore, simulator: FakeSimulator
) -> None:
    monitor, reader, sink = _monitor(channel, store, STRINGS)
    _set_trigger(simulator, b"B738")
    monitor.tick()
    _set_trigger(simulator, b"B738")

    assert monitor.tick() is False
    assert sink.send.call_count == 1


def test_prefix_stops_at_nul(channel: SubscriptionChannel, store: DatarefStore, simulator: FakeSimulator) -> None:
    monitor, _, _ = _monitor(channel, store, STRINGS)
    _set_trigger(simulator, b"C17")
    assert monitor.current_prefix() == "C17"


def test_failed_send_keeps_last_prefix(
    channel: SubscriptionChannel, store: DatarefStore, simulator: FakeSimulator
) -> None:
    sink = MagicMock()
    sink.send.side_effect = SinkConnectionError("refused")
    monitor, reader, _ = _monitor(channel, store, STRINGS, sink=sink)
    _set_trigger(simulator, b"B738")

    assert monitor.tick() is False
    assert monitor.last_icao == ""

    sink.send.side_effect = None
    _set_trigger(simulator, b"B738")
    assert monitor.tick() is True
    assert reader.read_string.call_count == 6


def test_last_prefix_follows_fetched_identifier(
    channel: SubscriptionChannel, store: DatarefStore, simulator: FakeSimulator
) -> None:
    strings = dict(STRINGS, **{dr.AIRCRAFT_ICAO: "A320neo"})
    monitor, _, _ = _monitor(channel, store, strings)
    _set_trigger(simulator, b"A32")

    monitor.tick()
    assert monitor.last_icao == "A320"


def test_short_identifier_is_remembered_whole(
    channel: SubscriptionChannel, store: DatarefStore, simulator: FakeSimulator
) -> None:
    strings = dict(STRINGS, **{dr.AIRCRAFT_ICAO: "C17"})
    monitor, _, _ = _monitor(channel, store, strings)
    _set_trigger(simulator, b"C17")

    monitor.tick()
    assert monitor.last_icao == "C17"
    _set_trigger(simulator, b"C17")
    assert monitor.tick() is False


def test_refetch_with_real_reader_restores_trigger_subscription(
    channel: SubscriptionChannel,
    store: DatarefStore,
    fake_socket: FakeUdpSocket,
    simulator: FakeSimulator,
    fake_clock: FakeClock,
) -> None:
    for base, text in (
        (dr.AIRCRAFT_ICAO, b"B738\x00"),
        (dr.AIRCRAFT_TAILNUM, b"D-ABCD\x00"),
        (dr.AIRCRAFT_LIVERY, b"liveries/default\x00"),
    ):
        for i, byte in enumerate(text):
            simulator.values[f"{base}[{i}]"] = float(byte)
    fake_clock.on_sleep(lambda _: simulator.deliver())
    reader = StringDatarefReader(channel, store, clock=fake_clock)
    sink = MagicMock()
    monitor = AircraftChangeMonitor(channel, store, reader, sink, TelemetryAssembler())
    monitor.subscribe_trigger()
    simulator.deliver()

    assert monitor.tick() is True
    message = json.loads(sink.send.call_args.args[0])
    assert message["data"]["type"] == "B738"
    assert message["data"]["registration"] == "D-ABCD"

    trigger = [f"{dr.AIRCRAFT_ICAO}[{i}]" for i in range(4)]
    assert set(trigger) <= set(store.registered())
    assert [name for name in store.registered() if name not in trigger] == []


def test_partial_trigger_is_not_a_prefix(
    channel: SubscriptionChannel, store: DatarefStore, simulator: FakeSimulator
) -> None:
    monitor, reader, sink = _monitor(channel, store, STRINGS)
    for i, byte in enumerate(b"B738"):
        simulator.values[f"{dr.AIRCRAFT_ICAO}[{i}]"] = float(byte)
    simulator.deliver(names=[f"{dr.AIRCRAFT_ICAO}[{i}]" for i in range(1, 4)])

    assert monitor.current_prefix() == ""
    assert monitor.tick() is False
    reader.read_string.assert_not_called()

    simulator.deliver()
    assert monitor.current_prefix() == "B738"

"""Binary records exchanged with X-Plane over UDP.

All fields are little-endian. Three record types are involved:

* the multicast beacon (``BECN``) advertising a running simulator,
* the subscription request (``RREF`` + NUL) sent to the simulator,
* the value packet (``RREF,``) streamed back for every subscribed index.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np

from .errors import DiscoveryNotFound, UnsupportedProtocolVersion

MCAST_GROUP = "239.255.1.1"
MCAST_PORT = 49707

BEACON_HEADER = b"BECN\x00"
SUBSCRIBE_HEADER = b"RREF\x00"
VALUES_HEADER = b"RREF,"
HEADER_SIZE = 5

NAME_FIELD_SIZE = 400
UNREGISTERED_INDEX = -9999

_BEACON_FIELDS = struct.Struct("<BBiiIH")
_SUBSCRIBE = struct.Struct(f"<5sii{NAME_FIELD_SIZE}s")
_RECORD = struct.Struct("<if")

VALUE_RECORD_DTYPE = np.dtype([("index", "<i4"), ("value", "<f4")])

SUPPORTED_BEACON_MAJOR = 1
MAX_BEACON_MINOR = 2
XPLANE_HOST_ID = 1

# Values in (-NOISE_FLOOR, 0) are float jitter on non-negative quantities.
NOISE_FLOOR = 0.001


@dataclass(frozen=True)
class BeaconInfo:
    """Endpoint and identity advertised by a simulator beacon."""

    ip: str
    port: int
    hostname: str
    xplane_version: int
    role: int


def parse_beacon(packet: bytes, sender_ip: str) -> BeaconInfo:
    """Decode a beacon datagram received from *sender_ip*."""

    if not packet.startswith(BEACON_HEADER):
        raise DiscoveryNotFound(f"received non-beacon packet from {sender_ip}")
    fixed_end = HEADER_SIZE + _BEACON_FIELDS.size
    if len(packet) < fixed_end:
        raise DiscoveryNotFound(
            f"truncated beacon packet from {sender_ip} ({len(packet)} bytes)"
        )

    major, minor, host_id, version, role, port = _BEACON_FIELDS.unpack_from(
        packet, HEADER_SIZE
    )
    if major != SUPPORTED_BEACON_MAJOR or minor > MAX_BEACON_MINOR or host_id != XPLANE_HOST_ID:
        raise UnsupportedProtocolVersion(
            f"beacon {major}.{minor} from host id {host_id} is not supported"
        )

    raw_name = packet[fixed_end:]
    nul = raw_name.find(b"\x00")
    if nul != -1:
        raw_name = raw_name[:nul]

    return BeaconInfo(
        ip=sender_ip,
        port=int(port),
        hostname=raw_name.decode("utf-8", errors="replace"),
        xplane_version=int(version),
        role=int(role),
    )


def build_beacon(
    port: int,
    hostname: str,
    *,
    major: int = 1,
    minor: int = 2,
    host_id: int = XPLANE_HOST_ID,
    xplane_version: int = 123200,
    role: int = 1,
) -> bytes:
    """Encode a beacon the way the simulator broadcasts it."""

    fields = _BEACON_FIELDS.pack(major, minor, host_id, xplane_version, role, port)
    return BEACON_HEADER + fields + hostname.encode("utf-8") + b"\x00"


def encode_subscribe(freq: int, index: int, name: str) -> bytes:
    """Encode a dataref request; ``freq == 0`` unsubscribes.

    The name is truncated or NUL-padded to the fixed 400 byte field.
    """

    return _SUBSCRIBE.pack(SUBSCRIBE_HEADER, int(freq), int(index), name.encode("utf-8"))


def decode_subscribe(data: bytes) -> Tuple[int, int, str]:
    """Inverse of :func:`encode_subscribe`, returning ``(freq, index, name)``."""

    header, freq, index, raw_name = _SUBSCRIBE.unpack(data[: _SUBSCRIBE.size])
    if header != SUBSCRIBE_HEADER:
        raise ValueError(f"not a subscription request: {header!r}")
    return freq, index, raw_name.rstrip(b"\x00").decode("utf-8", errors="replace")


def is_value_packet(data: bytes) -> bool:
    return data.startswith(VALUES_HEADER)


def decode_values(data: bytes) -> np.ndarray:
    """Decode the records of a value packet into a structured array.

    Trailing bytes that do not form a whole record are ignored.
    """

    body = memoryview(data)[HEADER_SIZE:]
    count = len(body) // VALUE_RECORD_DTYPE.itemsize
    if count == 0:
        return np.empty(0, dtype=VALUE_RECORD_DTYPE)
    return np.frombuffer(body, dtype=VALUE_RECORD_DTYPE, count=count)


def clamp_noise(values: np.ndarray) -> np.ndarray:
    """Round tiny negative float noise to exactly zero."""

    values = np.asarray(values, dtype=np.float32)
    noisy = (values < 0.0) & (values > -NOISE_FLOOR)
    return np.where(noisy, np.float32(0.0), values)


def encode_values(records: Iterable[Tuple[int, float]]) -> bytes:
    """Encode ``(index, value)`` pairs as a value packet."""

    return VALUES_HEADER + b"".join(_RECORD.pack(int(i), float(v)) for i, v in records)


__all__ = [
    "BEACON_HEADER",
    "BeaconInfo",
    "MCAST_GROUP",
    "MCAST_PORT",
    "NAME_FIELD_SIZE",
    "SUBSCRIBE_HEADER",
    "UNREGISTERED_INDEX",
    "VALUES_HEADER",
    "build_beacon",
    "clamp_noise",
    "decode_subscribe",
    "decode_values",
    "encode_subscribe",
    "encode_values",
    "is_value_packet",
    "parse_beacon",
]

#!/usr/bin/env python3
"""
Minimal X-Plane stand-in for exercising the bridge without a simulator.

Broadcasts a beacon on the multicast group and answers RREF subscriptions
with slowly changing synthetic values. String datarefs given with --string
are served byte by byte, like the simulator does for byte arrays.
"""

from __future__ import annotations

import argparse
import re
import socket
import threading
import time
from typing import Dict, Tuple

from xpbridge.core.protocol import (
    MCAST_GROUP,
    MCAST_PORT,
    build_beacon,
    decode_subscribe,
    encode_values,
)

_ELEMENT_RE = re.compile(r"^(?P<base>.+)\[(?P<idx>\d+)\]$")


def _parse_strings(items) -> Dict[str, bytes]:
    result: Dict[str, bytes] = {}
    for item in items or []:
        name, _, text = item.partition("=")
        result[name.strip()] = text.encode("utf-8")
    return result


def _value_for(name: str, strings: Dict[str, bytes], t: float) -> float:
    match = _ELEMENT_RE.match(name)
    if match and match.group("base") in strings:
        raw = strings[match.group("base")]
        idx = int(match.group("idx"))
        return float(raw[idx]) if idx < len(raw) else 0.0
    return float(int(t) % 100)


def _beacon_loop(port: int, hostname: str, interval: float) -> None:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 1)
    packet = build_beacon(port, hostname)
    while True:
        sock.sendto(packet, (MCAST_GROUP, MCAST_PORT))
        time.sleep(interval)


def main() -> None:
    parser = argparse.ArgumentParser(description="Fake X-Plane RREF server")
    parser.add_argument("--port", type=int, default=49000, help="UDP port to serve RREF on")
    parser.add_argument("--hostname", default="fake-xplane", help="Hostname in the beacon")
    parser.add_argument(
        "--string",
        action="append",
        help="String dataref as name=value (e.g. sim/aircraft/view/acf_ICAO=B738)",
    )
    args = parser.parse_args()

    strings = _parse_strings(args.string)
    subscriptions: Dict[Tuple[str, int], Tuple[int, str]] = {}

    threading.Thread(
        target=_beacon_loop, args=(args.port, args.hostname, 1.0), daemon=True
    ).start()

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("0.0.0.0", args.port))
    sock.settimeout(0.1)
    print(f"Serving RREF on udp://0.0.0.0:{args.port} (Ctrl+C to stop)")

    start = time.monotonic()
    while True:
        try:
            data, addr = sock.recvfrom(2048)
            freq, idx, name = decode_subscribe(data)
            key = (addr[0], idx)
            if freq == 0:
                subscriptions.pop(key, None)
            else:
                subscriptions[key] = (addr[1], name)
            print(f"[RREF] {addr[0]}:{addr[1]} freq={freq} idx={idx} {name}")
        except socket.timeout:
            pass
        except ValueError as exc:
            print(f"[WARN] ignored packet: {exc}")

        t = time.monotonic() - start
        by_client: Dict[Tuple[str, int], list] = {}
        for (host, idx), (port, name) in subscriptions.items():
            by_client.setdefault((host, port), []).append((idx, _value_for(name, strings, t)))
        for client, records in by_client.items():
            for offset in range(0, len(records), 100):
                sock.sendto(encode_values(records[offset : offset + 100]), client)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nStopped.")

#!/usr/bin/env python3
"""Minimal TCP telemetry consumer for local testing."""

import argparse
import json
import socket


def main() -> None:
    parser = argparse.ArgumentParser(description="Print messages sent by the bridge")
    parser.add_argument("--host", default="127.0.0.1", help="Address to listen on")
    parser.add_argument("--port", type=int, default=6746, help="TCP port to listen on")
    args = parser.parse_args()

    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    server.bind((args.host, args.port))
    server.listen(1)
    print(f"Listening for telemetry on {args.host}:{args.port} (Ctrl+C to exit)")

    decoder = json.JSONDecoder()
    try:
        while True:
            conn, addr = server.accept()
            print(f"{addr} connected")
            buffer = ""
            with conn:
                while True:
                    chunk = conn.recv(65535)
                    if not chunk:
                        break
                    buffer += chunk.decode("utf-8", errors="replace")
                    # Messages are concatenated JSON objects without a delimiter.
                    while buffer:
                        try:
                            payload, end = decoder.raw_decode(buffer)
                        except json.JSONDecodeError:
                            break
                        buffer = buffer[end:].lstrip()
                        print(f"{addr} -> {payload.get('name')}: {json.dumps(payload.get('data'))}")
            print(f"{addr} disconnected")
    except KeyboardInterrupt:
        print("\nStopped by user.")
    finally:
        server.close()


if __name__ == "__main__":
    main()

"""Outbound telemetry payloads and bridge settings."""

from .assembler import TelemetryAssembler
from .settings import BridgeSettings, load_settings, save_settings

__all__ = [
    "BridgeSettings",
    "TelemetryAssembler",
    "load_settings",
    "save_settings",
]

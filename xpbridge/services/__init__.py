"""Higher level operations built on dataref subscriptions."""

from .aircraft_monitor import AircraftChangeMonitor, extract_registration
from .string_reader import StringDatarefReader, SystemClock

__all__ = [
    "AircraftChangeMonitor",
    "StringDatarefReader",
    "SystemClock",
    "extract_registration",
]

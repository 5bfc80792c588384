"""Periodic publishing of cached telemetry."""

from .position_publisher import PositionPublisher

__all__ = ["PositionPublisher"]

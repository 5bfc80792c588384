"""JSON payloads streamed to the telemetry consumer."""
from __future__ import annotations

import json
from collections.abc import Callable, Mapping

from . import datarefs as dr

METERS_TO_FT = 3.28084
# framerate_period does not update reliably over UDP.
REPORTED_FPS = 144.0


class TelemetryAssembler:
    """Builds compact STREAM messages from cached dataref values."""

    def __init__(self, sim_abbreviation: str = "xp12", sim_version: str = "12.320"):
        self.sim_abbreviation = sim_abbreviation
        self.sim_version = sim_version

    @staticmethod
    def _encode(name: str, data: Mapping[str, object]) -> bytes:
        doc = {"type": "STREAM", "name": name, "data": dict(data)}
        return json.dumps(doc, separators=(",", ":")).encode("utf-8")

    def position_data(self, value: Callable[[str], float]) -> dict[str, object]:
        """Map dataref values to the POSITION_UPDATE fields.

        *value* returns the last known value of a dataref, or ``0.0``.
        """

        def flag(name: str, threshold: float = 0.5) -> bool:
            return value(name) > threshold

        return {
            "altitude_amsl": value(dr.ALT_AMSL) * METERS_TO_FT,
            "altitude_agl": value(dr.ALT_AGL) * METERS_TO_FT,
            "latitude": value(dr.LATITUDE),
            "longitude": value(dr.LONGITUDE),
            "pitch": value(dr.PITCH),
            "bank": value(dr.BANK),
            "heading_true": value(dr.HEADING),
            "ground_speed": value(dr.GROUND_SPEED),
            "vertical_speed": value(dr.VERTICAL_SPEED),
            "fuel_kg": value(dr.FUEL),
            "gravity": value(dr.GRAVITY),
            "transponder": f"{int(value(dr.TRANSPONDER)):04d}",
            "on_ground": flag(dr.ON_GROUND),
            "slew": flag(dr.SLEW),
            "paused": flag(dr.PAUSED),
            "in_replay_mode": flag(dr.REPLAY),
            "fps": REPORTED_FPS,
            "time_acceleration": value(dr.TIME_ACCEL),
            "autopilot_engaged": flag(dr.AUTOPILOT_MODE, 0.0),
            "engines_running": flag(dr.ENGINE_RUNNING),
            "parking_brake": flag(dr.PARKING_BRAKE),
            "sim_abbreviation": self.sim_abbreviation,
            "sim_version": self.sim_version,
            "wind_speed": value(dr.WIND_SPEED),
            "wind_direction": value(dr.WIND_DIRECTION),
        }

    def build_position_update(self, value: Callable[[str], float]) -> bytes:
        return self._encode("POSITION_UPDATE", self.position_data(value))

    def build_aircraft_update(self, icao: str, registration: str) -> bytes:
        return self._encode(
            "AIRCRAFT_UPDATE",
            {
                "title": "",
                "type": icao,
                "model": icao,
                "registration": registration,
                "airline": "",
            },
        )


__all__ = ["METERS_TO_FT", "TelemetryAssembler"]

"""Datarefs the bridge subscribes to."""
from __future__ import annotations

ALT_AMSL = "sim/flightmodel/position/elevation"
ALT_AGL = "sim/flightmodel/position/y_agl"
LATITUDE = "sim/flightmodel/position/latitude"
LONGITUDE = "sim/flightmodel/position/longitude"
PITCH = "sim/flightmodel/position/theta"
BANK = "sim/flightmodel/position/phi"
HEADING = "sim/flightmodel/position/psi"
GROUND_SPEED = "sim/flightmodel/position/groundspeed"
VERTICAL_SPEED = "sim/flightmodel/position/vh_ind_fpm"
FUEL = "sim/flightmodel/weight/m_fuel_total"
GRAVITY = "sim/physics/gravity_normal"
TRANSPONDER = "sim/cockpit/radios/transponder_code"
ON_GROUND = "sim/flightmodel/failures/onground_any"
SLEW = "sim/operation/override/override_planepath"
PAUSED = "sim/time/paused"
REPLAY = "sim/operation/prefs/replay_mode"
FRAME_PERIOD = "sim/graphics/view/framerate_period"
TIME_ACCEL = "sim/time/time_accel"
AUTOPILOT_MODE = "sim/cockpit/autopilot/autopilot_mode"
ENGINE_RUNNING = "sim/flightmodel/engine/ENGN_running"
PARKING_BRAKE = "sim/cockpit2/controls/parking_brake_ratio"
WIND_SPEED = "sim/weather/wind_speed_kt"
WIND_DIRECTION = "sim/weather/wind_direction_degt"

POSITION_DATAREFS = (
    ALT_AMSL,
    ALT_AGL,
    LATITUDE,
    LONGITUDE,
    PITCH,
    BANK,
    HEADING,
    GROUND_SPEED,
    VERTICAL_SPEED,
    FUEL,
    GRAVITY,
    TRANSPONDER,
    ON_GROUND,
    SLEW,
    PAUSED,
    REPLAY,
    FRAME_PERIOD,
    TIME_ACCEL,
    AUTOPILOT_MODE,
    ENGINE_RUNNING,
    PARKING_BRAKE,
    WIND_SPEED,
    WIND_DIRECTION,
)

# Byte-array string datarefs and their maximum lengths.
AIRCRAFT_ICAO = "sim/aircraft/view/acf_ICAO"
AIRCRAFT_TAILNUM = "sim/aircraft/view/acf_tailnum"
AIRCRAFT_LIVERY = "sim/aircraft/view/acf_livery_path"
ICAO_LENGTH = 40
TAILNUM_LENGTH = 40
LIVERY_LENGTH = 255
ICAO_TRIGGER_LENGTH = 4

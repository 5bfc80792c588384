"""Bridge settings stored via QSettings."""
from __future__ import annotations

from dataclasses import dataclass

from PySide6.QtCore import QSettings


@dataclass
class BridgeSettings:
    sink_host: str = "127.0.0.1"
    sink_port: int = 6746
    publish_rate_hz: int = 10
    dataref_rate_hz: int = 10
    discovery_timeout_s: float = 5.0
    discovery_attempts: int = 3
    monitor_interval_s: float = 2.0
    sim_abbreviation: str = "xp12"
    sim_version: str = "12.320"
    debug_log: bool = False


_DEFAULTS = BridgeSettings()


def _clamp(value, low, high):
    return max(low, min(high, value))


def _clamp_port(value: int) -> int:
    return _clamp(int(value), 1, 65535)


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        return value.lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _parse_int(raw, default: int, low: int, high: int) -> int:
    try:
        return _clamp(int(raw), low, high)
    except (TypeError, ValueError):
        return default


def _parse_float(raw, default: float, low: float, high: float) -> float:
    try:
        return _clamp(float(raw), low, high)
    except (TypeError, ValueError):
        return default


def _parse_str(raw, default: str) -> str:
    if isinstance(raw, str) and raw:
        return raw
    return default


def load_settings(qsettings: QSettings) -> BridgeSettings:
    """Load bridge settings from QSettings."""

    d = _DEFAULTS
    return BridgeSettings(
        sink_host=_parse_str(qsettings.value("bridge/sink_host", d.sink_host), d.sink_host),
        sink_port=_parse_int(qsettings.value("bridge/sink_port", d.sink_port), d.sink_port, 1, 65535),
        publish_rate_hz=_parse_int(
            qsettings.value("bridge/publish_rate_hz", d.publish_rate_hz), d.publish_rate_hz, 1, 60
        ),
        dataref_rate_hz=_parse_int(
            qsettings.value("bridge/dataref_rate_hz", d.dataref_rate_hz), d.dataref_rate_hz, 1, 99
        ),
        discovery_timeout_s=_parse_float(
            qsettings.value("bridge/discovery_timeout_s", d.discovery_timeout_s),
            d.discovery_timeout_s,
            0.5,
            60.0,
        ),
        discovery_attempts=_parse_int(
            qsettings.value("bridge/discovery_attempts", d.discovery_attempts),
            d.discovery_attempts,
            1,
            100,
        ),
        monitor_interval_s=_parse_float(
            qsettings.value("bridge/monitor_interval_s", d.monitor_interval_s),
            d.monitor_interval_s,
            0.5,
            60.0,
        ),
        sim_abbreviation=_parse_str(
            qsettings.value("bridge/sim_abbreviation", d.sim_abbreviation), d.sim_abbreviation
        ),
        sim_version=_parse_str(qsettings.value("bridge/sim_version", d.sim_version), d.sim_version),
        debug_log=_parse_bool(qsettings.value("bridge/debug_log", d.debug_log)),
    )


def save_settings(qsettings: QSettings, settings: BridgeSettings) -> None:
    """Persist bridge settings to QSettings."""

    qsettings.setValue("bridge/sink_host", settings.sink_host)
    qsettings.setValue("bridge/sink_port", _clamp_port(settings.sink_port))
    qsettings.setValue("bridge/publish_rate_hz", _clamp(int(settings.publish_rate_hz), 1, 60))
    qsettings.setValue("bridge/dataref_rate_hz", _clamp(int(settings.dataref_rate_hz), 1, 99))
    qsettings.setValue(
        "bridge/discovery_timeout_s", _clamp(float(settings.discovery_timeout_s), 0.5, 60.0)
    )
    qsettings.setValue("bridge/discovery_attempts", _clamp(int(settings.discovery_attempts), 1, 100))
    qsettings.setValue(
        "bridge/monitor_interval_s", _clamp(float(settings.monitor_interval_s), 0.5, 60.0)
    )
    qsettings.setValue("bridge/sim_abbreviation", settings.sim_abbreviation)
    qsettings.setValue("bridge/sim_version", settings.sim_version)
    qsettings.setValue("bridge/debug_log", bool(settings.debug_log))

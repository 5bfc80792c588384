import argparse
import logging
import sys
import time
from pathlib import Path

from PySide6.QtCore import QSettings

if __package__ is None or __package__ == "":
    # Ensure the project root is on sys.path so absolute imports succeed when
    # the script is executed as a top-level entry point (e.g., from PyInstaller).
    sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from xpbridge.bridge import XPlaneBridge
from xpbridge.core.errors import DiscoveryError
from xpbridge.telemetry.settings import BridgeSettings, load_settings
from xpbridge.version import APP_VERSION

logger = logging.getLogger("xpbridge")


def _parse_args(argv):
    parser = argparse.ArgumentParser(description="X-Plane UDP to TCP telemetry bridge")
    parser.add_argument("--config", type=str, default="", help="INI settings file")
    parser.add_argument("--sink-host", type=str, default=None, help="Telemetry consumer host")
    parser.add_argument("--sink-port", type=int, default=None, help="Telemetry consumer port")
    parser.add_argument(
        "--discovery-timeout",
        type=float,
        default=None,
        help="Seconds to wait for each X-Plane beacon",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    return parser.parse_args(argv)


def _settings_from(args) -> BridgeSettings:
    if args.config:
        qsettings = QSettings(args.config, QSettings.Format.IniFormat)
    else:
        qsettings = QSettings("xpbridge", "xpbridge")
    settings = load_settings(qsettings)
    if args.sink_host:
        settings.sink_host = args.sink_host
    if args.sink_port:
        settings.sink_port = max(1, min(65535, args.sink_port))
    if args.discovery_timeout:
        settings.discovery_timeout_s = max(0.5, args.discovery_timeout)
    if args.debug:
        settings.debug_log = True
    return settings


def main(argv=None) -> int:
    args = _parse_args(argv)
    settings = _settings_from(args)
    logging.basicConfig(
        level=logging.DEBUG if settings.debug_log else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger.info("X-Plane UDP bridge %s starting...", APP_VERSION)
    bridge = XPlaneBridge(settings)
    try:
        bridge.start()
        while True:
            time.sleep(1.0)
    except DiscoveryError as exc:
        logger.error("Failed to find X-Plane: %s", exc)
        return 1
    except KeyboardInterrupt:
        pass
    finally:
        bridge.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())

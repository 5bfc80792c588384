"""UDP bridge between X-Plane datarefs and a TCP telemetry consumer."""

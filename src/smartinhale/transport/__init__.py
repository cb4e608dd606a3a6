"""Device transports feeding the ingestion pipeline."""

from smartinhale.transport.base import DeviceTransport, TransportError
from smartinhale.transport.replay import ReplayTransport, parse_capture_line

__all__ = [
    "DeviceTransport",
    "ReplayTransport",
    "TransportError",
    "parse_capture_line",
]

"""
Connection status reporting.

The transport owns the device lifecycle; this module only records the
status strings it reports and hands them, unchanged, to whoever is
listening (CLI output, a dashboard).
"""

import logging

from collections.abc import Callable
from enum import Enum

from smartinhale.models.dashboard import DeviceInfo

logger = logging.getLogger(__name__)

StatusListener = Callable[[str], None]


class ConnectionState(str, Enum):
    """Coarse device lifecycle states."""

    IDLE = "idle"
    REQUESTING = "requesting"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"

    @staticmethod
    def error_status(message: str) -> str:
        """Status string for a transport failure."""
        return f"{ConnectionState.ERROR.value}:{message}"


class ConnectionStatusNotifier:
    """Holds the latest status string and device info, and fans out updates."""

    def __init__(self) -> None:
        self._status: str = ConnectionState.IDLE.value
        self._device: DeviceInfo | None = None
        self._listeners: list[StatusListener] = []

    @property
    def status(self) -> str:
        return self._status

    @property
    def device(self) -> DeviceInfo | None:
        return self._device

    @property
    def is_connected(self) -> bool:
        return self._status == ConnectionState.CONNECTED.value

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """
        Register a listener for status strings.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def notify(self, status: ConnectionState | str) -> None:
        """Record a status (enum or free-form string) and tell listeners."""
        text = status.value if isinstance(status, ConnectionState) else str(status)
        self._status = text
        if text == ConnectionState.DISCONNECTED.value:
            self._device = None
        logger.info(f"Status: {text}")
        for listener in list(self._listeners):
            try:
                listener(text)
            except Exception as e:
                logger.warning(f"Status listener failed: {e}")

    def notify_error(self, message: str) -> None:
        self.notify(ConnectionState.error_status(message))

    def set_device(self, device: DeviceInfo | None) -> None:
        self._device = device

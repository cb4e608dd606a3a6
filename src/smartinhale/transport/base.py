"""
Abstract Device Transport

A transport owns discovery, connection and notification subscription for
one inhaler device. The ingestion pipeline only needs two things from it:
the raw payload buffers, and lifecycle status strings.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator

from smartinhale.connection import ConnectionState, ConnectionStatusNotifier


class TransportError(Exception):
    """Base exception for connection and discovery failures."""

    def __init__(self, message: str, transport: "DeviceTransport | None" = None):
        super().__init__(message)
        self.transport = transport


class DeviceTransport(ABC):
    """
    Base class for device transports.

    Subclasses report lifecycle changes through the notifier passed to
    connect() and yield notification buffers from payloads().
    """

    def __init__(self) -> None:
        self._notifier: ConnectionStatusNotifier | None = None

    @abstractmethod
    def connect(self, notifier: ConnectionStatusNotifier) -> None:
        """
        Open the connection and subscribe to inhalation notifications.

        Raises:
            TransportError: If the device cannot be reached
        """

    @abstractmethod
    def payloads(self) -> Iterator[bytes]:
        """
        Yield notification buffers in arrival order until the device goes away.

        Raises:
            TransportError: If the link fails mid-stream
        """

    def disconnect(self) -> None:
        """Close the connection; reports `disconnected`."""
        if self._notifier is not None:
            self._notifier.notify(ConnectionState.DISCONNECTED)

    def _report(self, state: ConnectionState | str) -> None:
        if self._notifier is not None:
            self._notifier.notify(state)

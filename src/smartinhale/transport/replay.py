"""
Replay transport for recorded device captures.

Two capture layouts are supported:

- Text captures (any suffix but .bin): one notification per line. Lines
  starting with "{" are JSON text; other lines are hex-encoded binary
  records (whitespace between hex digits is allowed). Blank lines and lines
  starting with "#" are ignored.
- Binary captures (.bin): back-to-back 17-byte binary records.
"""

import logging

from collections.abc import Iterator
from pathlib import Path

from smartinhale.connection import ConnectionState, ConnectionStatusNotifier
from smartinhale.constants import BINARY_EVENT_SIZE
from smartinhale.models.dashboard import DeviceInfo
from smartinhale.transport.base import DeviceTransport, TransportError

logger = logging.getLogger(__name__)

BINARY_CAPTURE_SUFFIX = ".bin"


def parse_capture_line(line: str) -> bytes | None:
    """
    Convert one text-capture line into a notification buffer.

    Returns:
        Payload bytes, or None for blank, comment, or invalid hex lines
    """
    text = line.strip()
    if not text or text.startswith("#"):
        return None
    if text.startswith("{"):
        return text.encode("utf-8")
    try:
        return bytes.fromhex(text)
    except ValueError:
        logger.warning(f"Skipping capture line that is neither JSON nor hex: {text!r}")
        return None


class ReplayTransport(DeviceTransport):
    """Feeds payloads recorded from a device back through the pipeline."""

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = Path(path)
        self._connected = False

    def connect(self, notifier: ConnectionStatusNotifier) -> None:
        self._notifier = notifier
        self._report(ConnectionState.REQUESTING)
        if not self.path.is_file():
            raise TransportError(f"Capture file not found: {self.path}", self)
        self._report(ConnectionState.CONNECTING)
        notifier.set_device(DeviceInfo(name=self.path.stem))
        self._connected = True
        self._report(ConnectionState.CONNECTED)

    def payloads(self) -> Iterator[bytes]:
        if not self._connected:
            raise TransportError("Transport is not connected", self)

        try:
            if self.path.suffix == BINARY_CAPTURE_SUFFIX:
                yield from self._binary_records()
            else:
                yield from self._text_records()
        except OSError as e:
            raise TransportError(f"Failed reading {self.path}: {e}", self) from e

    def disconnect(self) -> None:
        self._connected = False
        super().disconnect()

    def _text_records(self) -> Iterator[bytes]:
        with open(self.path, encoding="utf-8") as f:
            for line in f:
                payload = parse_capture_line(line)
                if payload is not None:
                    yield payload

    def _binary_records(self) -> Iterator[bytes]:
        with open(self.path, "rb") as f:
            while chunk := f.read(BINARY_EVENT_SIZE):
                # A trailing partial record is yielded too; the decoder drops it.
                yield chunk

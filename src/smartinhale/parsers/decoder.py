"""
Inhalation Payload Decoder

Turns one notification buffer from the device into a raw event record.
Depending on firmware mode the device sends either UTF-8 JSON text or a
compact 17-byte big-endian record:

    [0-7]   uint64  timestamp (ms since epoch)
    [8-11]  float32 strength
    [12-15] float32 duration (seconds)
    [16]    uint8   flags (bit 0 = shake ok, bit 1 = orientation ok)

JSON is tried first; the binary layout is the fallback. Each path returns a
DecodeResult instead of raising, so malformed input never stops ingestion.
"""

import json
import logging
import struct

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from smartinhale.constants import (
    BINARY_EVENT_FORMAT,
    BINARY_EVENT_SIZE,
    FLAG_ORIENTATION_OK,
    FLAG_SHAKE_OK,
)
from smartinhale.models.event import Event, RawEventPayload

logger = logging.getLogger(__name__)


class PayloadFormat(str, Enum):
    """Wire encoding a payload was decoded from."""

    JSON = "json"
    BINARY = "binary"


class DecodeError(Exception):
    """Raised when neither JSON nor binary decoding succeeds."""

    def __init__(self, message: str, buffer: bytes | None = None):
        super().__init__(message)
        self.buffer = buffer


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of one decode attempt."""

    ok: bool
    format: PayloadFormat | None = None
    raw: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def payload(self) -> RawEventPayload | None:
        """Typed view of the decoded record (None on failure)."""
        if not self.ok:
            return None
        return RawEventPayload.model_validate(self.raw)

    def unwrap(self) -> dict[str, Any]:
        """
        Return the decoded record or raise.

        Raises:
            DecodeError: If decoding failed
        """
        if not self.ok:
            raise DecodeError(self.error or "Undecodable payload")
        return self.raw

    @classmethod
    def failure(cls, error: str, fmt: PayloadFormat | None = None) -> "DecodeResult":
        return cls(ok=False, format=fmt, error=error)


def decode_json(buffer: bytes) -> DecodeResult:
    """
    Decode a buffer as UTF-8 text holding a JSON object.

    Args:
        buffer: Raw notification bytes

    Returns:
        Successful result only if the text parses to a JSON object
    """
    try:
        text = bytes(buffer).decode("utf-8")
    except UnicodeDecodeError as e:
        return DecodeResult.failure(f"not UTF-8: {e}", PayloadFormat.JSON)

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        return DecodeResult.failure(f"invalid JSON: {e}", PayloadFormat.JSON)

    if not isinstance(parsed, dict):
        return DecodeResult.failure(
            f"JSON value is {type(parsed).__name__}, expected object",
            PayloadFormat.JSON,
        )

    return DecodeResult(ok=True, format=PayloadFormat.JSON, raw=parsed)


def decode_binary(buffer: bytes) -> DecodeResult:
    """
    Decode a buffer using the fixed 17-byte inhalation record layout.

    Bytes past the record are ignored, as are reserved flag bits.

    Args:
        buffer: Raw notification bytes

    Returns:
        Successful result with ts, strength, duration, shakeOk, orientationOk
    """
    data = bytes(buffer)
    if len(data) < BINARY_EVENT_SIZE:
        return DecodeResult.failure(
            f"Expected {BINARY_EVENT_SIZE} bytes, got {len(data)}",
            PayloadFormat.BINARY,
        )

    try:
        ts, strength, duration, flags = struct.unpack_from(BINARY_EVENT_FORMAT, data)
    except struct.error as e:
        return DecodeResult.failure(str(e), PayloadFormat.BINARY)

    return DecodeResult(
        ok=True,
        format=PayloadFormat.BINARY,
        raw={
            "ts": ts,
            "strength": strength,
            "duration": duration,
            "shakeOk": bool(flags & FLAG_SHAKE_OK),
            "orientationOk": bool(flags & FLAG_ORIENTATION_OK),
        },
    )


def decode_payload(buffer: bytes) -> DecodeResult:
    """
    Decode a notification buffer, JSON first with binary fallback.

    Args:
        buffer: Raw notification bytes

    Returns:
        DecodeResult; ok is False only when both encodings fail
    """
    json_result = decode_json(buffer)
    if json_result.ok:
        return json_result

    binary_result = decode_binary(buffer)
    if binary_result.ok:
        logger.debug(f"JSON decode failed ({json_result.error}), using binary layout")
        return binary_result

    return DecodeResult.failure(
        f"unparseable event: {json_result.error}; {binary_result.error}"
    )


def encode_binary(event: Event) -> bytes:
    """
    Encode an event into the 17-byte binary record.

    Strength and duration are narrowed to float32.

    Raises:
        struct.error: If ts does not fit in an unsigned 64-bit integer
    """
    flags = 0
    if event.shake_ok:
        flags |= FLAG_SHAKE_OK
    if event.orientation_ok:
        flags |= FLAG_ORIENTATION_OK
    return struct.pack(
        BINARY_EVENT_FORMAT, event.ts, event.strength, event.duration, flags
    )

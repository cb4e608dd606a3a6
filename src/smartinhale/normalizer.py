"""Normalization of raw device records into canonical events."""

import logging
import time

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from smartinhale.constants import MILLISECONDS_PER_SECOND
from smartinhale.models.event import Event, RawEventPayload

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def to_raw_payload(raw: Any) -> RawEventPayload:
    """
    Coerce whatever an event source produced into a RawEventPayload.

    Non-string keys are stringified. Non-mapping input, or a record that
    still fails validation, is treated as an empty record.
    """
    if isinstance(raw, RawEventPayload):
        return raw
    if not isinstance(raw, Mapping):
        logger.warning(
            f"Ignoring non-mapping event record of type {type(raw).__name__}"
        )
        return RawEventPayload()

    record = {str(key): value for key, value in raw.items()}
    try:
        return RawEventPayload.model_validate(record)
    except ValidationError as e:
        logger.warning(f"Ignoring unusable event record {record!r}: {e}")
        return RawEventPayload()


def normalize_event(raw: Any, now: int | None = None) -> Event:
    """
    Build a canonical Event from a raw record.

    Field precedence:
        ts:       raw ts if truthy (truncated to int ms), else ingestion time
        strength: raw strength if numeric, else force, else 0
        duration: raw duration if numeric, else inhale_ms / 1000, else 0
        flags:    truthiness of shakeOk / orientationOk

    Args:
        raw: RawEventPayload, mapping, or anything else
        now: Ingestion time in epoch ms (defaults to wall clock)

    Returns:
        A well-formed Event; this function does not raise for bad input
    """
    payload = to_raw_payload(raw)

    if payload.ts:
        ts = int(payload.ts)
    else:
        ts = now if now is not None else now_ms()

    if payload.strength is not None:
        strength = payload.strength
    elif payload.force:
        strength = payload.force
    else:
        strength = 0.0

    if payload.duration is not None:
        duration = payload.duration
    elif payload.inhale_ms:
        duration = payload.inhale_ms / MILLISECONDS_PER_SECOND
    else:
        duration = 0.0

    return Event(
        ts=ts,
        strength=strength,
        duration=duration,
        shake_ok=payload.shake_ok,
        orientation_ok=payload.orientation_ok,
    )

"""
Inhalation event models.

RawEventPayload is the loosely-typed record a device (or a simulator) hands
us; Event is the canonical, immutable shape everything downstream works
with. Field coercion on RawEventPayload never raises, so any JSON object a
device emits can be turned into an Event.
"""

import math

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from smartinhale.constants import (
    CORRECT_STRENGTH_THRESHOLD,
    MILLISECONDS_PER_SECOND,
    TECHNIQUE_LABEL_CORRECT,
    TECHNIQUE_LABEL_IMPROPER,
)


def _is_number(value: Any) -> bool:
    """True for finite int/float values; bools are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints beyond float range
        return False


def _coerce_measurement(value: Any) -> float | None:
    """Keep real, finite, non-negative numbers only."""
    if _is_number(value) and value >= 0:
        return float(value)
    return None


def _coerce_numeric(value: Any) -> float | None:
    """Accept numbers and numeric strings (firmware variants send both)."""
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    return _coerce_measurement(value)


def _coerce_timestamp(value: Any) -> int | float | None:
    """
    Epoch milliseconds from a number, a numeric string or ISO-8601 text.

    Numbers are kept as given (truncation happens after the truthiness
    check in normalize_event); ISO text outside the datetime range is None.
    """
    if _is_number(value):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        pass
    else:
        return number if math.isfinite(number) else None

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        return int(parsed.timestamp() * MILLISECONDS_PER_SECOND)
    except (OverflowError, OSError, ValueError):
        return None


class RawEventPayload(BaseModel):
    """
    Event record as received from the device or an event injector.

    Known fields are optional and coerced leniently; unknown keys are kept
    as extras so the original object survives untouched.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    ts: int | float | None = Field(default=None, description="Epoch milliseconds")
    strength: float | None = Field(default=None, description="Inhalation force")
    force: float | None = Field(
        default=None, description="Legacy firmware name for strength"
    )
    duration: float | None = Field(default=None, description="Inhale duration (s)")
    inhale_ms: float | None = Field(default=None, description="Inhale duration (ms)")
    shake_ok: bool = Field(default=False, alias="shakeOk")
    orientation_ok: bool = Field(default=False, alias="orientationOk")

    @field_validator("ts", mode="before")
    @classmethod
    def _validate_ts(cls, value: Any) -> int | float | None:
        return _coerce_timestamp(value)

    @field_validator("strength", "duration", mode="before")
    @classmethod
    def _validate_measurement(cls, value: Any) -> float | None:
        return _coerce_measurement(value)

    @field_validator("force", "inhale_ms", mode="before")
    @classmethod
    def _validate_numeric(cls, value: Any) -> float | None:
        return _coerce_numeric(value)

    @field_validator("shake_ok", "orientation_ok", mode="before")
    @classmethod
    def _validate_flag(cls, value: Any) -> bool:
        return bool(value)


class Event(BaseModel):
    """One recorded inhalation attempt (canonical, immutable)."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "ts": 1735725600000,
                "strength": 0.82,
                "duration": 1.4,
                "shakeOk": True,
                "orientationOk": True,
            }
        },
    )

    ts: int = Field(description="Epoch milliseconds")
    strength: float = Field(ge=0, description="Inhalation force (device units)")
    duration: float = Field(ge=0, description="Inhale duration (s)")
    shake_ok: bool = Field(alias="shakeOk", description="Shaken before use")
    orientation_ok: bool = Field(
        alias="orientationOk", description="Held upright during use"
    )

    def is_correct_technique(
        self, threshold: float = CORRECT_STRENGTH_THRESHOLD
    ) -> bool:
        """Both checks passed and strength strictly above threshold."""
        return self.shake_ok and self.orientation_ok and self.strength > threshold

    def technique_label(self, threshold: float = CORRECT_STRENGTH_THRESHOLD) -> str:
        if self.is_correct_technique(threshold):
            return TECHNIQUE_LABEL_CORRECT
        return TECHNIQUE_LABEL_IMPROPER

    @property
    def timestamp(self) -> datetime:
        """Event time as a naive local datetime."""
        return datetime.fromtimestamp(self.ts / MILLISECONDS_PER_SECOND)

    def to_record(self) -> dict[str, Any]:
        """Serialize with device field names (used for persistence)."""
        return self.model_dump(by_alias=True)


class Patient(BaseModel):
    """Patient registry entry."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    device_id: str = Field(alias="deviceId")

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

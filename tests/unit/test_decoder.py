"""Tests for the dual-format inhalation payload decoder."""

import json
import math

import pytest

from smartinhale.models.event import Event
from smartinhale.normalizer import normalize_event
from smartinhale.parsers.decoder import (
    DecodeError,
    PayloadFormat,
    decode_binary,
    decode_json,
    decode_payload,
    encode_binary,
)
from tests.helpers.synthetic_data import make_binary_payload, make_json_payload

TS = 1_741_790_000_000


@pytest.mark.parser
class TestJsonDecoding:
    """JSON text payloads are returned as the parsed object."""

    def test_json_object_returned_verbatim(self):
        obj = {"ts": TS, "force": 0.7, "inhale_ms": 1500, "firmware": "2.1-debug"}
        result = decode_payload(json.dumps(obj).encode("utf-8"))

        assert result.ok
        assert result.format == PayloadFormat.JSON
        assert result.raw == obj

    def test_extra_keys_survive_on_typed_payload(self):
        result = decode_payload(make_json_payload(ts=TS, battery=88))

        payload = result.payload
        assert payload is not None
        assert payload.ts == TS
        assert payload.model_extra == {"battery": 88}

    def test_empty_object_is_valid(self):
        result = decode_payload(b"{}")

        assert result.ok
        assert result.raw == {}

    def test_json_non_object_rejected(self):
        result = decode_json(b"[1, 2]")

        assert not result.ok
        assert "expected object" in result.error

    def test_invalid_utf8_rejected(self):
        result = decode_json(b"\xff\xfe{}")

        assert not result.ok
        assert "UTF-8" in result.error


@pytest.mark.parser
class TestBinaryDecoding:
    """Fixed 17-byte big-endian layout."""

    def test_fields_decoded(self):
        buffer = make_binary_payload(TS, 0.75, 1.5, flags=0b11)
        result = decode_payload(buffer)

        assert result.ok
        assert result.format == PayloadFormat.BINARY
        assert result.raw == {
            "ts": TS,
            "strength": 0.75,
            "duration": 1.5,
            "shakeOk": True,
            "orientationOk": True,
        }

    @pytest.mark.parametrize(
        "flags,shake,orientation",
        [
            (0b00, False, False),
            (0b01, True, False),
            (0b10, False, True),
            (0b11, True, True),
            (0b11111100, False, False),
            (0b11111111, True, True),
        ],
    )
    def test_flag_bits(self, flags, shake, orientation):
        result = decode_binary(make_binary_payload(TS, 0.6, 1.0, flags=flags))

        assert result.raw["shakeOk"] is shake
        assert result.raw["orientationOk"] is orientation

    def test_trailing_bytes_ignored(self):
        result = decode_binary(make_binary_payload(TS, 0.75, 1.5, trailing=b"\x00\x01"))

        assert result.ok
        assert result.raw["ts"] == TS

    def test_short_buffer_rejected(self):
        result = decode_binary(b"\x00" * 16)

        assert not result.ok
        assert "Expected 17 bytes, got 16" in result.error

    def test_binary_that_is_valid_utf8_still_decodes(self):
        """Leading zero bytes are valid UTF-8 but not JSON."""
        buffer = make_binary_payload(1000, 0.75, 1.5)
        buffer.decode("utf-8")

        result = decode_payload(buffer)

        assert result.format == PayloadFormat.BINARY
        assert result.raw["ts"] == 1000

    def test_non_object_json_of_binary_length_uses_binary_layout(self):
        buffer = b"[1, 2, 3, 4, 5, 6, 7]"
        assert len(buffer) >= 17

        result = decode_payload(buffer)

        assert result.ok
        assert result.format == PayloadFormat.BINARY


@pytest.mark.parser
class TestDecodeFailure:
    """Payloads that are neither JSON objects nor 17+ bytes."""

    @pytest.mark.parametrize("buffer", [b"", b"abc", b"{broken", b"\xff" * 16])
    def test_undecodable_payloads(self, buffer):
        result = decode_payload(buffer)

        assert not result.ok
        assert result.payload is None
        assert result.error.startswith("unparseable event")

    def test_unwrap_raises_decode_error(self):
        with pytest.raises(DecodeError):
            decode_payload(b"abc").unwrap()

    def test_unwrap_returns_raw_record(self):
        assert decode_payload(b'{"ts": 5}').unwrap() == {"ts": 5}


@pytest.mark.parser
class TestBinaryRoundTrip:
    """encode_binary is the inverse of binary decoding."""

    @pytest.mark.parametrize(
        "strength,duration,shake,orientation",
        [
            (0.6, 1.2, True, True),
            (0.123456789, 2.718281828, False, True),
            (0.0, 0.0, True, False),
            (12.5, 0.35, False, False),
        ],
    )
    def test_round_trip(self, strength, duration, shake, orientation):
        original = Event(
            ts=TS,
            strength=strength,
            duration=duration,
            shake_ok=shake,
            orientation_ok=orientation,
        )
        buffer = encode_binary(original)
        assert len(buffer) == 17

        decoded = normalize_event(decode_binary(buffer).payload)

        assert decoded.ts == original.ts
        assert math.isclose(decoded.strength, strength, rel_tol=1e-6, abs_tol=1e-7)
        assert math.isclose(decoded.duration, duration, rel_tol=1e-6, abs_tol=1e-7)
        assert decoded.shake_ok is shake
        assert decoded.orientation_ok is orientation

"""Payload classification and typed field extraction."""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Mapping, Optional, Union

from models.payloads import (
    AIR_QUALITY,
    ENERGY,
    MOTION,
    AirQualityPayload,
    EnergyPayload,
    MotionPayload,
    SensorPayload,
    UnknownPayload,
)
from models.records import RawPayload

logger = logging.getLogger(__name__)

FieldValue = Union[int, float, bool]

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1

# Payload fields each known category exposes.
FIELD_RULES: dict[str, tuple[str, ...]] = {
    ENERGY: ("energy",),
    AIR_QUALITY: ("co2", "humidity", "pm25"),
    MOTION: ("motionDetected",),
}


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        result = float(value)
    except OverflowError:
        return None
    if not math.isfinite(result):
        return None
    return result


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return None
        value = int(value)
    if not isinstance(value, int):
        return None
    if value < _INT32_MIN or value > _INT32_MAX:
        return None
    return value


def _as_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


class PayloadExtractor:
    """Turns raw, loosely-typed payloads into typed values.

    Nothing here raises on bad data. A payload that cannot be decoded, a
    missing key, or a value of the wrong kind all come back as ``None`` (or
    :class:`UnknownPayload` from :meth:`classify`).
    """

    def decode(self, payload: RawPayload, reading_id: str | None = None) -> Optional[Mapping[str, Any]]:
        """Return the payload as a mapping, or ``None`` if it is not one."""
        if isinstance(payload, Mapping):
            return payload
        if isinstance(payload, (str, bytes, bytearray)):
            try:
                decoded = json.loads(payload)
            except (ValueError, UnicodeDecodeError):
                logger.debug(
                    "Skipping undecodable payload",
                    extra={"reading_id": reading_id, "reason": "invalid json"},
                )
                return None
            except RecursionError:
                logger.debug(
                    "Skipping undecodable payload",
                    extra={"reading_id": reading_id, "reason": "nesting too deep"},
                )
                return None
            if isinstance(decoded, dict):
                return decoded
        logger.debug(
            "Skipping payload that is not an object",
            extra={"reading_id": reading_id, "reason": type(payload).__name__},
        )
        return None

    def classify(
        self,
        category: str,
        payload: RawPayload,
        reading_id: str | None = None,
    ) -> SensorPayload:
        if category not in FIELD_RULES:
            return UnknownPayload()

        data = self.decode(payload, reading_id=reading_id)
        if data is None:
            return UnknownPayload()

        if category == ENERGY:
            return EnergyPayload(energy=_as_float(data.get("energy")))
        if category == AIR_QUALITY:
            return AirQualityPayload(
                co2=_as_int(data.get("co2")),
                humidity=_as_int(data.get("humidity")),
                pm25=_as_int(data.get("pm25")),
            )
        return MotionPayload(motion_detected=_as_bool(data.get("motionDetected")))

    def field_value(self, parsed: SensorPayload, field_name: str) -> Optional[FieldValue]:
        """Pick ``field_name`` out of an already classified payload."""
        if isinstance(parsed, EnergyPayload):
            return parsed.energy if field_name == "energy" else None
        if isinstance(parsed, AirQualityPayload):
            if field_name == "co2":
                return parsed.co2
            if field_name == "humidity":
                return parsed.humidity
            if field_name == "pm25":
                return parsed.pm25
            return None
        if isinstance(parsed, MotionPayload):
            return parsed.motion_detected if field_name == "motionDetected" else None
        return None

    def extract(
        self,
        category: str,
        payload: RawPayload,
        field_name: str,
    ) -> Optional[FieldValue]:
        """Extract one typed field for a reading of ``category``."""
        if field_name not in FIELD_RULES.get(category, ()):
            return None
        return self.field_value(self.classify(category, payload), field_name)

"""Typed payload variants, one per known sensor category."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

ENERGY = "energy"
AIR_QUALITY = "air_quality"
MOTION = "motion"


@dataclass(frozen=True, slots=True)
class EnergyPayload:
    energy: float | None = None


@dataclass(frozen=True, slots=True)
class AirQualityPayload:
    co2: int | None = None
    humidity: int | None = None
    pm25: int | None = None


@dataclass(frozen=True, slots=True)
class MotionPayload:
    motion_detected: bool | None = None


@dataclass(frozen=True, slots=True)
class UnknownPayload:
    """Unparseable payloads and unrecognised categories."""


SensorPayload = Union[EnergyPayload, AirQualityPayload, MotionPayload, UnknownPayload]

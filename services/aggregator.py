"""Aggregation logic for sensor readings."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from itertools import islice
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from models.payloads import AirQualityPayload, EnergyPayload, MotionPayload
from models.records import SensorReading
from services.extractor import PayloadExtractor

logger = logging.getLogger(__name__)

MAX_SERIES_POINTS = 20


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _mean(values: List[float]) -> float:
    if not values:
        return 0.0
    count = len(values)
    mean = sum(values) / count
    if math.isinf(mean):
        # The running sum overflowed; scale each value down before adding.
        mean = sum(value / count for value in values)
    return mean


def _truncated_mean(values: List[int]) -> int:
    # Truncates toward zero; existing consumers rely on this over rounding.
    if not values:
        return 0
    total = sum(values)
    quotient = abs(total) // len(values)
    return quotient if total >= 0 else -quotient


@dataclass
class MetricsSnapshot:
    """Summary metrics over a set of readings."""

    total_readings: int = 0
    average_energy: float = 0.0
    average_co2: int = 0
    average_humidity: int = 0
    motion_detected_count: int = 0
    last_updated: Optional[datetime] = None


@dataclass
class AggregatedPoint:
    """Averages for all readings that fall into one hour."""

    bucket_start: datetime
    energy: float = 0.0
    co2: int = 0
    humidity: int = 0


@dataclass
class _CategoryValues:
    """Valid values collected per metric while scanning readings."""

    energy: List[float] = field(default_factory=list)
    co2: List[int] = field(default_factory=list)
    humidity: List[int] = field(default_factory=list)
    motion_detected: int = 0

    def add(self, extractor: PayloadExtractor, reading: SensorReading) -> None:
        parsed = extractor.classify(
            reading.sensor_category, reading.payload, reading_id=reading.id
        )
        if isinstance(parsed, EnergyPayload):
            if parsed.energy is not None:
                self.energy.append(parsed.energy)
        elif isinstance(parsed, AirQualityPayload):
            if parsed.co2 is not None:
                self.co2.append(parsed.co2)
            if parsed.humidity is not None:
                self.humidity.append(parsed.humidity)
        elif isinstance(parsed, MotionPayload):
            if parsed.motion_detected is True:
                self.motion_detected += 1


def bucket_key(timestamp: datetime) -> datetime:
    """Truncate ``timestamp`` to the top of its hour."""
    return timestamp.replace(minute=0, second=0, microsecond=0)


class MetricsAggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def __init__(
        self,
        extractor: Optional[PayloadExtractor] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.extractor = extractor or PayloadExtractor()
        self.clock = clock

    def compute_metrics(self, readings: Iterable[SensorReading]) -> MetricsSnapshot:
        values = _CategoryValues()
        total = 0
        for reading in readings:
            total += 1
            values.add(self.extractor, reading)

        snapshot = MetricsSnapshot(
            total_readings=total,
            average_energy=_mean(values.energy),
            average_co2=_truncated_mean(values.co2),
            average_humidity=_truncated_mean(values.humidity),
            motion_detected_count=values.motion_detected,
            last_updated=self.clock(),
        )
        logger.debug(
            "Computed metrics snapshot",
            extra={"total_readings": snapshot.total_readings},
        )
        return snapshot


class TimeBucketAggregator:
    """Groups readings into hourly buckets and averages each one.

    Readings are expected to be pre-filtered to the window and sorted by
    timestamp; only the earliest ``max_points`` buckets are emitted.
    """

    def __init__(
        self,
        extractor: Optional[PayloadExtractor] = None,
        max_points: int = MAX_SERIES_POINTS,
    ) -> None:
        self.extractor = extractor or PayloadExtractor()
        self.max_points = max_points

    def iter_series(
        self,
        readings: Iterable[SensorReading],
        window_start: datetime,
    ) -> Iterator[AggregatedPoint]:
        buckets: Dict[datetime, _CategoryValues] = {}
        for reading in readings:
            key = bucket_key(reading.timestamp)
            bucket = buckets.get(key)
            if bucket is None:
                bucket = buckets[key] = _CategoryValues()
            bucket.add(self.extractor, reading)

        if len(buckets) > self.max_points:
            logger.info(
                "Series truncated to the earliest buckets",
                extra={"window_start": window_start.isoformat(), "point_count": self.max_points},
            )

        for key in islice(sorted(buckets), self.max_points):
            values = buckets[key]
            yield AggregatedPoint(
                bucket_start=key,
                energy=_mean(values.energy),
                co2=_truncated_mean(values.co2),
                humidity=_truncated_mean(values.humidity),
            )

    def compute_series(
        self,
        readings: Iterable[SensorReading],
        window_start: datetime,
    ) -> List[AggregatedPoint]:
        return list(self.iter_series(readings, window_start))

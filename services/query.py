"""Read-side queries over stored readings."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable, List, Optional

from datastore.readings_store import SensorReadingStore, build_default_store
from models.records import ProcessingStats, SensorReading
from services.aggregator import (
    AggregatedPoint,
    MetricsAggregator,
    MetricsSnapshot,
    TimeBucketAggregator,
)
from services.extractor import PayloadExtractor
from services.windows import DEFAULT_TIME_RANGE, is_known_time_range, resolve_window
from settings import get_settings

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SensorQueryService:
    """Coordinates the reading store and the aggregators."""

    def __init__(
        self,
        store: SensorReadingStore,
        metrics_aggregator: MetricsAggregator,
        series_aggregator: TimeBucketAggregator,
        default_limit: int = 50,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.metrics_aggregator = metrics_aggregator
        self.series_aggregator = series_aggregator
        self.default_limit = default_limit
        self.clock = clock

    def get_metrics(self) -> MetricsSnapshot:
        """Summary metrics over the whole reading corpus."""
        return self.metrics_aggregator.compute_metrics(self.store.scan())

    def get_aggregated_series(self, time_range: Optional[str] = None) -> List[AggregatedPoint]:
        """Hourly averages for readings inside the requested window."""
        if time_range is not None and not is_known_time_range(time_range):
            logger.warning(
                "Unknown time range, using default window",
                extra={"time_range": time_range, "reason": f"default={DEFAULT_TIME_RANGE}"},
            )

        window_start = resolve_window(time_range, self.clock())
        readings = self.store.query(since=window_start)
        points = self.series_aggregator.compute_series(readings, window_start)
        logger.debug(
            "Computed aggregated series",
            extra={
                "time_range": time_range or DEFAULT_TIME_RANGE,
                "window_start": window_start.isoformat(),
                "point_count": len(points),
            },
        )
        return points

    def get_readings(self, limit: Optional[int] = None) -> List[SensorReading]:
        """Most recent readings, newest first."""
        return self.store.query(descending=True, limit=limit or self.default_limit)

    def get_readings_by_type(
        self, sensor_type: str, limit: Optional[int] = None
    ) -> List[SensorReading]:
        return self.store.query(sensor_category=sensor_type, descending=True, limit=limit)

    def get_readings_by_location(
        self, sensor_name: str, limit: Optional[int] = None
    ) -> List[SensorReading]:
        return self.store.query(sensor_name=sensor_name, descending=True, limit=limit)

    def get_reading(self, reading_id: str) -> SensorReading:
        reading = self.store.get_item(reading_id)
        if reading is None:
            raise KeyError(f"Sensor reading {reading_id!r} not found.")
        return reading

    def get_processing_stats(self, limit: int = 10) -> List[ProcessingStats]:
        """Statistics for the most recent ingestion batches, newest first."""
        return self.store.latest_stats(limit)

    def count_readings(self) -> int:
        return self.store.count()


@lru_cache
def build_default_query_service() -> SensorQueryService:
    """Factory that wires the query service with the default store."""
    extractor = PayloadExtractor()
    return SensorQueryService(
        store=build_default_store(),
        metrics_aggregator=MetricsAggregator(extractor=extractor),
        series_aggregator=TimeBucketAggregator(extractor=extractor),
        default_limit=get_settings().default_readings_limit,
    )

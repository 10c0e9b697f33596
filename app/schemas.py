"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.records import ProcessingStats, SensorReading
from services.aggregator import AggregatedPoint, MetricsSnapshot


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SensorMetrics(_CamelModel):
    """Summary metrics across every stored reading."""

    total_readings: int = Field(..., ge=0, alias="totalReadings")
    average_energy: float = Field(0.0, alias="averageEnergy")
    average_co2: int = Field(0, alias="averageCO2")
    average_humidity: int = Field(0, alias="averageHumidity")
    motion_detected_count: int = Field(0, ge=0, alias="motionDetectedCount")
    last_updated: Optional[datetime] = Field(None, alias="lastUpdated")

    @classmethod
    def from_snapshot(cls, snapshot: MetricsSnapshot) -> "SensorMetrics":
        return cls(
            total_readings=snapshot.total_readings,
            average_energy=snapshot.average_energy,
            average_co2=snapshot.average_co2,
            average_humidity=snapshot.average_humidity,
            motion_detected_count=snapshot.motion_detected_count,
            last_updated=snapshot.last_updated,
        )


class SensorDataPoint(_CamelModel):
    """One hourly bucket of the aggregated series."""

    bucket_start: datetime = Field(..., alias="bucketStart")
    energy: float = 0.0
    co2: int = 0
    humidity: int = 0

    @classmethod
    def from_point(cls, point: AggregatedPoint) -> "SensorDataPoint":
        return cls(
            bucket_start=point.bucket_start,
            energy=point.energy,
            co2=point.co2,
            humidity=point.humidity,
        )


class SensorReadingOut(_CamelModel):
    """A stored reading with its payload rendered as JSON text."""

    id: str
    sensor_type: str = Field(..., alias="sensorType")
    sensor_name: str = Field(..., alias="sensorName")
    payload: str
    timestamp: datetime
    created_at: datetime = Field(..., alias="createdAt")

    @classmethod
    def from_reading(cls, reading: SensorReading) -> "SensorReadingOut":
        payload = reading.payload
        if isinstance(payload, (bytes, bytearray)):
            text = payload.decode("utf-8", errors="replace")
        elif isinstance(payload, str):
            text = payload
        elif payload is None:
            text = ""
        elif isinstance(payload, Mapping):
            text = json.dumps(dict(payload))
        else:
            text = json.dumps(payload)
        return cls(
            id=reading.id,
            sensor_type=reading.sensor_category,
            sensor_name=reading.sensor_name,
            payload=text,
            timestamp=reading.timestamp,
            created_at=reading.created_at,
        )


class ProcessingStatsOut(_CamelModel):
    """Counters recorded for one ingestion batch."""

    id: int
    processed_messages: int = Field(..., ge=0, alias="processedMessages")
    failed_messages: int = Field(..., ge=0, alias="failedMessages")
    last_processed_at: Optional[datetime] = Field(None, alias="lastProcessedAt")
    processing_rate_per_second: Optional[float] = Field(None, alias="processingRatePerSecond")
    created_at: datetime = Field(..., alias="createdAt")

    @classmethod
    def from_stats(cls, stats: ProcessingStats) -> "ProcessingStatsOut":
        return cls(
            id=stats.id,
            processed_messages=stats.processed_messages,
            failed_messages=stats.failed_messages,
            last_processed_at=stats.last_processed_at,
            processing_rate_per_second=stats.processing_rate_per_second,
            created_at=stats.created_at,
        )


class HealthStatus(BaseModel):
    status: str = "ok"
    count: int = Field(..., ge=0)


class IngestStatus(str, Enum):
    """Outcome of an ingestion batch."""

    processed = "processed"
    partial = "partial"
    failed = "failed"


class IngestError(BaseModel):
    """Details about a record that failed validation."""

    row_number: int = Field(..., ge=1)
    reason: str


class IngestResponse(_CamelModel):
    status: IngestStatus
    accepted: int = Field(..., ge=0)
    reading_ids: List[str] = Field(default_factory=list, alias="readingIds")
    errors: List[IngestError] = Field(default_factory=list)

"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Union

RawPayload = Union[str, bytes, Mapping[str, Any], None]


@dataclass(frozen=True, slots=True)
class SensorReading:
    """A single stored sensor observation.

    ``payload`` is kept exactly as it was received: JSON text, an already
    decoded mapping, or something corrupt. Interpreting it is the job of the
    payload extractor.
    """

    id: str
    sensor_category: str
    sensor_name: str
    payload: RawPayload
    timestamp: datetime
    created_at: datetime


@dataclass(frozen=True, slots=True)
class ProcessingStats:
    """Counters recorded for one ingestion batch."""

    id: int
    processed_messages: int
    failed_messages: int
    last_processed_at: Optional[datetime]
    processing_rate_per_second: Optional[float]
    created_at: datetime

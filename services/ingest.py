"""Validation and storage of incoming sensor reading batches."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Callable, List, Mapping, Optional, Sequence
from uuid import uuid4

from app.schemas import IngestError, IngestStatus
from datastore.readings_store import SensorReadingStore, build_default_store
from models.records import SensorReading

logger = logging.getLogger(__name__)

_CATEGORY_KEYS = ("sensorType", "type")
_NAME_KEYS = ("sensorName", "location")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _first_text(record: Mapping[str, Any], keys: Sequence[str]) -> str:
    for key in keys:
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


@dataclass
class IngestResult:
    status: IngestStatus
    readings: List[SensorReading] = field(default_factory=list)
    errors: List[IngestError] = field(default_factory=list)


class IngestService:
    """Turns raw reading records into stored :class:`SensorReading` objects.

    A bad record is reported and skipped; it never fails the rest of the
    batch. Payloads are stored untouched.
    """

    def __init__(
        self,
        store: SensorReadingStore,
        clock: Callable[[], datetime] = _utcnow,
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.store = store
        self.clock = clock
        self.timer = timer

    def ingest(self, records: Sequence[Any]) -> IngestResult:
        if not records:
            raise ValueError("No readings supplied.")

        received_at = self.clock()
        started = self.timer()
        readings: list[SensorReading] = []
        errors: list[IngestError] = []

        for row_number, record in enumerate(records, start=1):
            reading = self._parse_record(record, row_number, received_at, errors)
            if reading is not None:
                readings.append(reading)

        if readings:
            self.store.put_items(readings)
        self._record_stats(readings, errors, received_at, self.timer() - started)

        if not readings:
            status = IngestStatus.failed
        elif errors:
            status = IngestStatus.partial
        else:
            status = IngestStatus.processed

        logger.info(
            "Ingested reading batch",
            extra={
                "status": status.value,
                "accepted_count": len(readings),
                "error_count": len(errors),
            },
        )
        return IngestResult(status=status, readings=readings, errors=errors)

    def _record_stats(
        self,
        readings: list[SensorReading],
        errors: list[IngestError],
        received_at: datetime,
        elapsed: float,
    ) -> None:
        rate = round(len(readings) / elapsed, 2) if elapsed > 0 else None
        self.store.record_stats(
            processed_messages=len(readings),
            failed_messages=len(errors),
            created_at=received_at,
            last_processed_at=self.clock() if readings else None,
            processing_rate_per_second=rate,
        )

    def _parse_record(
        self,
        record: Any,
        row_number: int,
        received_at: datetime,
        errors: list[IngestError],
    ) -> Optional[SensorReading]:
        def reject(reason: str) -> None:
            errors.append(IngestError(row_number=row_number, reason=reason))
            logger.warning(
                "Rejected reading", extra={"row_number": row_number, "reason": reason}
            )

        if not isinstance(record, Mapping):
            reject("record is not an object")
            return None

        category = _first_text(record, _CATEGORY_KEYS)
        if not category:
            reject("missing sensorType")
            return None

        name = _first_text(record, _NAME_KEYS)
        if not name:
            reject("missing sensorName")
            return None

        if "payload" not in record:
            reject("missing payload")
            return None

        timestamp_raw = record.get("timestamp")
        if timestamp_raw is None:
            timestamp = received_at
        elif isinstance(timestamp_raw, str):
            try:
                timestamp = self._parse_timestamp(timestamp_raw)
            except ValueError:
                reject("invalid timestamp")
                return None
        else:
            reject("invalid timestamp")
            return None

        reading_id = record.get("id")
        if reading_id is None:
            reading_id = str(uuid4())
        elif not isinstance(reading_id, str) or not reading_id.strip():
            reject("invalid id")
            return None

        return SensorReading(
            id=reading_id.strip(),
            sensor_category=category,
            sensor_name=name,
            payload=record["payload"],
            timestamp=timestamp,
            created_at=received_at,
        )

    @staticmethod
    def _parse_timestamp(value: str) -> datetime:
        candidate = value.strip()
        if not candidate:
            raise ValueError("Timestamp is empty.")

        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"

        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError as exc:
            raise ValueError("Invalid timestamp format") from exc

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)

        return parsed.astimezone(timezone.utc)


@lru_cache
def build_default_ingest_service() -> IngestService:
    """Factory that wires the ingest service with the default store."""
    return IngestService(store=build_default_store())

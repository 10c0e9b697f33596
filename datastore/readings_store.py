from __future__ import annotations
import json
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Iterable, List, Mapping, Optional

from models.records import ProcessingStats, SensorReading
from settings import get_settings


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_json(reading: SensorReading) -> Dict[str, Any]:
    payload = reading.payload
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8", errors="replace")
    elif isinstance(payload, Mapping):
        payload = dict(payload)
    return {
        "id": reading.id,
        "sensor_category": reading.sensor_category,
        "sensor_name": reading.sensor_name,
        "payload": payload,
        "timestamp": reading.timestamp.isoformat(),
        "created_at": reading.created_at.isoformat(),
    }


def _from_json(data: Dict[str, Any]) -> SensorReading:
    return SensorReading(
        id=data["id"],
        sensor_category=data["sensor_category"],
        sensor_name=data["sensor_name"],
        payload=data.get("payload"),
        timestamp=_ensure_utc(datetime.fromisoformat(data["timestamp"])),
        created_at=_ensure_utc(datetime.fromisoformat(data["created_at"])),
    )


class SensorReadingStore:
    """In-memory sensor reading table with optional JSON persistence."""

    def __init__(self, name: str, persistence_path: Optional[Path] = None) -> None:
        self.name = name
        self._items: Dict[str, SensorReading] = {}
        # Batch statistics live in memory only; the file holds readings.
        self._stats: List[ProcessingStats] = []
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def put_item(self, reading: SensorReading) -> None:
        self.put_items([reading])

    def put_items(self, readings: Iterable[SensorReading]) -> None:
        with self._lock:
            for reading in readings:
                self._items[reading.id] = self._normalize(reading)
            self._persist()

    def get_item(self, key: str) -> Optional[SensorReading]:
        with self._lock:
            return self._items.get(key)

    def scan(self) -> List[SensorReading]:
        with self._lock:
            return list(self._items.values())

    def count(self) -> int:
        with self._lock:
            return len(self._items)

    def record_stats(
        self,
        processed_messages: int,
        failed_messages: int,
        created_at: datetime,
        last_processed_at: Optional[datetime] = None,
        processing_rate_per_second: Optional[float] = None,
    ) -> ProcessingStats:
        with self._lock:
            stats = ProcessingStats(
                id=len(self._stats) + 1,
                processed_messages=processed_messages,
                failed_messages=failed_messages,
                last_processed_at=_ensure_utc(last_processed_at) if last_processed_at else None,
                processing_rate_per_second=processing_rate_per_second,
                created_at=_ensure_utc(created_at),
            )
            self._stats.append(stats)
        return stats

    def latest_stats(self, limit: int = 10) -> List[ProcessingStats]:
        """Most recently created batch statistics first."""
        with self._lock:
            stats = list(self._stats)
        stats.sort(key=lambda item: (item.created_at, item.id), reverse=True)
        return stats[: max(limit, 0)]

    def query(
        self,
        sensor_category: Optional[str] = None,
        sensor_name: Optional[str] = None,
        since: Optional[datetime] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[SensorReading]:
        """Filter readings and return them ordered by timestamp."""

        lower_bound = _ensure_utc(since) if since is not None else None
        with self._lock:
            matches = [
                reading
                for reading in self._items.values()
                if (sensor_category is None or reading.sensor_category == sensor_category)
                and (sensor_name is None or reading.sensor_name == sensor_name)
                and (lower_bound is None or reading.timestamp >= lower_bound)
            ]

        matches.sort(key=lambda reading: reading.timestamp, reverse=descending)
        if limit is not None:
            matches = matches[: max(limit, 0)]
        return matches

    @staticmethod
    def _normalize(reading: SensorReading) -> SensorReading:
        # Stored readings always carry UTC timestamps.
        timestamp = _ensure_utc(reading.timestamp)
        created_at = _ensure_utc(reading.created_at)
        if timestamp is reading.timestamp and created_at is reading.created_at:
            return reading
        return SensorReading(
            id=reading.id,
            sensor_category=reading.sensor_category,
            sensor_name=reading.sensor_name,
            payload=reading.payload,
            timestamp=timestamp,
            created_at=created_at,
        )

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {reading_id: _to_json(item) for reading_id, item in self._items.items()}
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            data = {}

        for reading_id, payload in data.items():
            self._items[reading_id] = _from_json(payload)


@lru_cache
def build_default_store(
    name: Optional[str] = None,
    path: Optional[str] = None,
) -> SensorReadingStore:
    settings = get_settings()
    store_name = settings.store_name if name is None else name
    store_path = settings.store_persistence_path if path is None else path
    persistence = Path(store_path) if store_path else None
    return SensorReadingStore(name=store_name, persistence_path=persistence)

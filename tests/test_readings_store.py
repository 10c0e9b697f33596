"""Unit tests for the in-memory sensor reading store."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

from datastore.readings_store import SensorReadingStore
from models.records import SensorReading

BASE = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _sample(reading_id: str, category: str = "energy", name: str = "Office", minutes: int = 0, payload=None) -> SensorReading:
    timestamp = BASE + timedelta(minutes=minutes)
    return SensorReading(
        id=reading_id,
        sensor_category=category,
        sensor_name=name,
        payload=payload if payload is not None else {"energy": 1.0},
        timestamp=timestamp,
        created_at=timestamp,
    )


def test_put_and_get_item() -> None:
    store = SensorReadingStore(name="sensor_readings")
    reading = _sample("r-1")

    store.put_item(reading)

    assert store.get_item("r-1") == reading
    assert store.get_item("missing-id") is None
    assert store.count() == 1


def test_naive_timestamps_are_stored_as_utc() -> None:
    store = SensorReadingStore(name="sensor_readings")
    naive = SensorReading(
        id="naive",
        sensor_category="motion",
        sensor_name="Hall",
        payload={"motionDetected": True},
        timestamp=datetime(2024, 1, 1, 8, 30),
        created_at=datetime(2024, 1, 1, 8, 31),
    )

    store.put_item(naive)

    stored = store.get_item("naive")
    assert stored is not None
    assert stored.timestamp == datetime(2024, 1, 1, 8, 30, tzinfo=timezone.utc)
    assert stored.created_at.tzinfo is not None


def test_query_filters_and_orders() -> None:
    store = SensorReadingStore(name="sensor_readings")
    store.put_items(
        [
            _sample("late", minutes=30),
            _sample("early", minutes=-30),
            _sample("air", category="air_quality", name="Lab", minutes=10, payload={"co2": 400}),
            _sample("middle", minutes=5),
        ]
    )

    ascending = store.query(since=BASE)
    assert [r.id for r in ascending] == ["middle", "air", "late"]

    newest = store.query(descending=True, limit=2)
    assert [r.id for r in newest] == ["late", "air"]

    energy = store.query(sensor_category="energy", descending=True)
    assert [r.id for r in energy] == ["late", "middle", "early"]

    lab = store.query(sensor_name="Lab")
    assert [r.id for r in lab] == ["air"]

    assert store.query(sensor_category="energy", sensor_name="Lab") == []


def test_query_since_bound_is_inclusive() -> None:
    store = SensorReadingStore(name="sensor_readings")
    store.put_items([_sample("at-bound"), _sample("before", minutes=-1)])

    assert [r.id for r in store.query(since=BASE)] == ["at-bound"]


def test_put_items_persists_to_disk_and_reloads(tmp_path) -> None:
    path = tmp_path / "readings.json"
    store = SensorReadingStore(name="sensor_readings", persistence_path=path)
    corrupt = _sample("corrupt", payload='{"energy": 1')
    structured = _sample("structured", category="air_quality", payload={"co2": 864, "humidity": 72})
    listed = _sample("listed", payload=[1, 2, 3])

    store.put_items([corrupt, structured, listed])

    assert path.exists()
    payload = json.loads(path.read_text())
    assert payload["corrupt"]["payload"] == '{"energy": 1'
    assert payload["structured"]["payload"] == {"co2": 864, "humidity": 72}

    reloaded = SensorReadingStore(name="sensor_readings", persistence_path=path)
    assert reloaded.get_item("corrupt") == corrupt
    assert reloaded.get_item("structured") == structured
    assert reloaded.get_item("listed") == listed
    assert reloaded.count() == 3


def test_unreadable_persistence_file_starts_empty(tmp_path) -> None:
    path = tmp_path / "readings.json"
    path.write_text("{not json")

    store = SensorReadingStore(name="sensor_readings", persistence_path=path)

    assert store.scan() == []


def test_latest_stats_are_newest_first_and_limited() -> None:
    store = SensorReadingStore(name="sensor_readings")
    for minutes in range(12):
        store.record_stats(
            processed_messages=minutes,
            failed_messages=0,
            created_at=BASE + timedelta(minutes=minutes),
        )

    latest = store.latest_stats()

    assert len(latest) == 10
    assert [stats.id for stats in latest[:3]] == [12, 11, 10]
    assert latest[0].created_at == BASE + timedelta(minutes=11)
    assert store.latest_stats(limit=2)[1].processed_messages == 10
    assert store.count() == 0

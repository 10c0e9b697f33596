from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
import typer
from typer.testing import CliRunner

from cli.app import _get_state, app


class StubClient:
    def __init__(self, config, ingest_status: str = "processed") -> None:
        self.config = config
        self.series_calls: List[Optional[str]] = []
        self.readings_calls: List[Dict[str, Any]] = []
        self.ingested_path: Path | None = None
        self.ingest_status = ingest_status
        self.closed = False

    def get_metrics(self) -> Dict[str, Any]:
        return {
            "totalReadings": 2,
            "averageEnergy": 470.585,
            "averageCO2": 688,
            "averageHumidity": 72,
            "motionDetectedCount": 1,
            "lastUpdated": "2024-01-01T12:00:00Z",
        }

    def get_series(self, time_range: Optional[str] = None) -> List[Dict[str, Any]]:
        self.series_calls.append(time_range)
        return [
            {"bucketStart": "2024-01-01T10:00:00Z", "energy": 12.5, "co2": 0, "humidity": 0},
            {"bucketStart": "2024-01-01T11:00:00Z", "energy": 0.0, "co2": 688, "humidity": 72},
        ]

    def list_readings(self, sensor_type=None, location=None, limit=None) -> List[Dict[str, Any]]:
        self.readings_calls.append({"sensor_type": sensor_type, "location": location, "limit": limit})
        return [
            {
                "id": "r-1",
                "sensorType": "energy",
                "sensorName": "Office",
                "payload": '{"energy": 770.79}',
                "timestamp": "2024-01-01T10:05:00Z",
                "createdAt": "2024-01-01T10:05:01Z",
            }
        ]

    def ingest_file(self, path: Path) -> Dict[str, Any]:
        self.ingested_path = path
        errors = [] if self.ingest_status == "processed" else [{"row_number": 1, "reason": "missing sensorType"}]
        return {"status": self.ingest_status, "accepted": 0 if errors else 1, "readingIds": [], "errors": errors}

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def _install_stub(monkeypatch, stub: StubClient) -> None:
    def factory(config):
        stub.config = config
        return stub

    monkeypatch.setattr("cli.app.ApiClient", factory)


def test_metrics_command(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["--base-url", "http://gateway:9000/", "metrics"])

    assert result.exit_code == 0
    assert "Sensor Metrics" in result.stdout
    assert "averageCO2: 688" in result.stdout
    assert stub.config.base_url == "http://gateway:9000"
    assert stub.closed is True


def test_series_command_passes_range(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["series", "--range", "7d"])

    assert result.exit_code == 0
    assert stub.series_calls == ["7d"]
    assert "2024-01-01T11:00:00Z" in result.stdout
    assert "12.50" in result.stdout


def test_readings_command_filters(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["readings", "--type", "energy", "--limit", "5"])

    assert result.exit_code == 0
    assert stub.readings_calls == [{"sensor_type": "energy", "location": None, "limit": 5}]
    assert "energy @ Office" in result.stdout


def test_ingest_command(monkeypatch, runner: CliRunner, tmp_path) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)
    data_path = tmp_path / "readings.json"
    data_path.write_text(json.dumps([{"sensorType": "energy", "sensorName": "Office", "payload": {"energy": 1.0}}]))

    result = runner.invoke(app, ["ingest", str(data_path)])

    assert result.exit_code == 0
    assert stub.ingested_path == data_path
    assert "status: processed" in result.stdout
    assert "No errors recorded." in result.stdout


def test_ingest_command_fails_when_nothing_accepted(monkeypatch, runner: CliRunner, tmp_path) -> None:
    stub = StubClient(config=None, ingest_status="failed")
    _install_stub(monkeypatch, stub)
    data_path = tmp_path / "readings.json"
    data_path.write_text("[{}]")

    result = runner.invoke(app, ["ingest", str(data_path)])

    assert result.exit_code == 1
    assert "row 1: missing sensorType" in result.stdout
    assert stub.closed is True


def test_uninitialized_state_exits_with_message(capsys) -> None:
    with pytest.raises(typer.Exit) as excinfo:
        _get_state(SimpleNamespace(obj=None))

    assert excinfo.value.exit_code == 1
    assert "CLI state is uninitialized." in capsys.readouterr().err

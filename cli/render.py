from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_metrics(payload: Dict[str, Any]) -> None:
    echo_heading("Sensor Metrics")
    echo_key_values(
        [
            ("totalReadings", payload.get("totalReadings")),
            ("averageEnergy", payload.get("averageEnergy")),
            ("averageCO2", payload.get("averageCO2")),
            ("averageHumidity", payload.get("averageHumidity")),
            ("motionDetectedCount", payload.get("motionDetectedCount")),
            ("lastUpdated", payload.get("lastUpdated")),
        ]
    )


def render_series(points: List[Dict[str, Any]]) -> None:
    echo_heading("Aggregated Series")
    if not points:
        typer.echo("No readings in the selected window.")
        return
    typer.echo(f"{'bucketStart':<27} {'energy':>10} {'co2':>6} {'humidity':>8}")
    for point in points:
        typer.echo(
            f"{point.get('bucketStart', ''):<27} "
            f"{point.get('energy', 0):>10.2f} "
            f"{point.get('co2', 0):>6} "
            f"{point.get('humidity', 0):>8}"
        )


def render_readings(readings: List[Dict[str, Any]]) -> None:
    echo_heading("Sensor Readings")
    if not readings:
        typer.echo("No readings found.")
        return
    for reading in readings:
        typer.echo(
            f"  - {reading.get('timestamp')} {reading.get('sensorType')} "
            f"@ {reading.get('sensorName')}: {reading.get('payload')}"
        )


def render_ingest_result(payload: Dict[str, Any]) -> None:
    echo_heading("Ingest Result")
    echo_key_values(
        [
            ("status", payload.get("status")),
            ("accepted", payload.get("accepted")),
        ]
    )

    errors = payload.get("errors") or []
    typer.echo()
    echo_heading("Errors")
    if errors:
        for error in errors:
            typer.echo(
                f"  - row {error.get('row_number')}: {error.get('reason')}"
            )
    else:
        typer.echo("No errors recorded.")

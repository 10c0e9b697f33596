from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_ingest_result, render_metrics, render_readings, render_series


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for querying the sensor metrics gateway.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.echo("CLI state is uninitialized.", err=True)
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Gateway API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Request timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, request_timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("metrics")
def metrics_command(ctx: typer.Context) -> None:
    """Show summary metrics across all readings."""
    state = _get_state(ctx)
    render_metrics(state.client.get_metrics())


@app.command("series")
def series_command(
    ctx: typer.Context,
    time_range: str = typer.Option(
        "24h",
        "--range",
        "-r",
        help="Window to aggregate: 1h, 6h, 12h, 24h, 7d or 30d.",
    ),
) -> None:
    """Show hourly averages for a time window."""
    state = _get_state(ctx)
    render_series(state.client.get_series(time_range))


@app.command("readings")
def readings_command(
    ctx: typer.Context,
    sensor_type: Optional[str] = typer.Option(None, "--type", "-t", help="Filter by sensor type."),
    location: Optional[str] = typer.Option(None, "--location", "-l", help="Filter by sensor name."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Maximum readings to list."),
) -> None:
    """List the most recent readings."""
    state = _get_state(ctx)
    render_readings(state.client.list_readings(sensor_type=sensor_type, location=location, limit=limit))


@app.command("ingest")
def ingest_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="JSON file of readings."),
) -> None:
    """Send a JSON file of raw readings to the gateway."""
    state = _get_state(ctx)
    typer.echo(f"Sending {file} to {state.config.base_url} ...")
    result = state.client.ingest_file(file)
    render_ingest_result(result)
    if result.get("status") == "failed":
        raise typer.Exit(code=1)

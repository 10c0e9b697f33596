from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the sensor metrics gateway."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.request_timeout)

    def close(self) -> None:
        self._client.close()

    def get_metrics(self) -> Dict[str, Any]:
        return self._get("/metrics")

    def get_series(self, time_range: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"timeRange": time_range} if time_range else None
        return self._get("/aggregated", params=params)

    def list_readings(
        self,
        sensor_type: Optional[str] = None,
        location: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        if sensor_type and location:
            raise typer.BadParameter("Use either --type or --location, not both.")
        if sensor_type:
            path = f"/readings/by-type/{sensor_type}"
        elif location:
            path = f"/readings/by-location/{location}"
        else:
            path = "/readings"
        params = {"limit": limit} if limit else None
        return self._get(path, params=params)

    def ingest_file(self, path: Path) -> Dict[str, Any]:
        if not path.is_file():
            raise typer.BadParameter(f"Path {path} is not a file.")
        try:
            records = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise typer.BadParameter(f"File {path} is not valid JSON: {exc}") from exc
        if isinstance(records, dict):
            records = [records]

        try:
            response = self._client.post("/readings", json=records)
            # A fully rejected batch still carries per-row errors worth showing.
            if response.status_code == 400 and "status" in response.json():
                return response.json()
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

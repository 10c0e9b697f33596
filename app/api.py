"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status

from app.schemas import (
    HealthStatus,
    IngestResponse,
    IngestStatus,
    ProcessingStatsOut,
    SensorDataPoint,
    SensorMetrics,
    SensorReadingOut,
)
from services.ingest import IngestService, build_default_ingest_service
from services.query import SensorQueryService, build_default_query_service

router = APIRouter()


def get_query_service() -> SensorQueryService:
    return build_default_query_service()


def get_ingest_service() -> IngestService:
    return build_default_ingest_service()


@router.get(
    "/metrics",
    response_model=SensorMetrics,
    summary="Summary metrics across all stored readings.",
)
async def get_metrics(
    service: SensorQueryService = Depends(get_query_service),
) -> SensorMetrics:
    return SensorMetrics.from_snapshot(service.get_metrics())


@router.get(
    "/aggregated",
    response_model=List[SensorDataPoint],
    summary="Hourly averages for a time range (1h, 6h, 12h, 24h, 7d, 30d).",
)
async def get_aggregated_data(
    time_range: Optional[str] = Query(None, alias="timeRange"),
    service: SensorQueryService = Depends(get_query_service),
) -> List[SensorDataPoint]:
    points = service.get_aggregated_series(time_range)
    return [SensorDataPoint.from_point(point) for point in points]


@router.get(
    "/readings",
    response_model=List[SensorReadingOut],
    summary="Most recent sensor readings.",
)
async def list_readings(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    service: SensorQueryService = Depends(get_query_service),
) -> List[SensorReadingOut]:
    return [SensorReadingOut.from_reading(r) for r in service.get_readings(limit)]


@router.get(
    "/readings/by-type/{sensor_type}",
    response_model=List[SensorReadingOut],
    summary="Readings for one sensor type, newest first.",
)
async def list_readings_by_type(
    sensor_type: str,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    service: SensorQueryService = Depends(get_query_service),
) -> List[SensorReadingOut]:
    readings = service.get_readings_by_type(sensor_type, limit)
    return [SensorReadingOut.from_reading(r) for r in readings]


@router.get(
    "/readings/by-location/{sensor_name}",
    response_model=List[SensorReadingOut],
    summary="Readings for one sensor location, newest first.",
)
async def list_readings_by_location(
    sensor_name: str,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    service: SensorQueryService = Depends(get_query_service),
) -> List[SensorReadingOut]:
    readings = service.get_readings_by_location(sensor_name, limit)
    return [SensorReadingOut.from_reading(r) for r in readings]


@router.get(
    "/readings/{reading_id}",
    response_model=SensorReadingOut,
    summary="Fetch a single reading by id.",
)
async def get_reading(
    reading_id: str,
    service: SensorQueryService = Depends(get_query_service),
) -> SensorReadingOut:
    try:
        reading = service.get_reading(reading_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Sensor reading {reading_id!r} not found.",
        ) from exc
    return SensorReadingOut.from_reading(reading)


@router.post(
    "/readings",
    status_code=status.HTTP_201_CREATED,
    response_model=IngestResponse,
    summary="Store a batch of raw sensor readings.",
)
async def ingest_readings(
    response: Response,
    records: List[Any] = Body(..., description="Raw reading objects."),
    service: IngestService = Depends(get_ingest_service),
) -> IngestResponse:
    try:
        result = service.ingest(records)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    if result.status is IngestStatus.failed:
        response.status_code = status.HTTP_400_BAD_REQUEST
    return IngestResponse(
        status=result.status,
        accepted=len(result.readings),
        reading_ids=[reading.id for reading in result.readings],
        errors=result.errors,
    )


@router.get(
    "/processing-stats",
    response_model=List[ProcessingStatsOut],
    summary="Statistics for the ten most recent ingestion batches.",
)
async def get_processing_stats(
    service: SensorQueryService = Depends(get_query_service),
) -> List[ProcessingStatsOut]:
    return [ProcessingStatsOut.from_stats(stats) for stats in service.get_processing_stats()]


@router.get(
    "/health",
    response_model=HealthStatus,
    summary="Health check endpoint with the stored reading count.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(
    service: SensorQueryService = Depends(get_query_service),
) -> HealthStatus:
    return HealthStatus(count=service.count_readings())


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}

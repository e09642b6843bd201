"""Lecturas: últimas N, historial, estadísticas y gráfico."""

from __future__ import annotations

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from ..auth import require_api_key
from ..core.domain.reading import to_naive_utc
from ..core.storage import DEFAULT_BUCKET_COUNT, DEFAULT_LATEST_LIMIT
from ..schemas import ChannelStatsOut, ChartBucketOut, ReadingOut
from ..services import Services
from .deps import get_services, parse_sensor_type

router = APIRouter(prefix="/api", tags=["readings"], dependencies=[Depends(require_api_key)])


def _check_window(start: datetime, end: datetime) -> None:
    if to_naive_utc(start) > to_naive_utc(end):
        raise HTTPException(status_code=400, detail="startTime must be before endTime")


@router.get("/latest-data", response_model=List[ReadingOut])
def latest_data(
    limit: int = Query(DEFAULT_LATEST_LIMIT, ge=1, le=1000),
    services: Services = Depends(get_services),
):
    return [ReadingOut.from_domain(r) for r in services.store.latest(limit)]


@router.get("/history/readings", response_model=List[ReadingOut])
def history_readings(
    start_time: datetime = Query(..., alias="startTime"),
    end_time: datetime = Query(..., alias="endTime"),
    services: Services = Depends(get_services),
):
    _check_window(start_time, end_time)
    return [ReadingOut.from_domain(r) for r in services.store.query_range(start_time, end_time)]


@router.get("/history/stats", response_model=ChannelStatsOut)
def history_stats(
    start_time: datetime = Query(..., alias="startTime"),
    end_time: datetime = Query(..., alias="endTime"),
    sensor_type: str = Query(..., alias="sensorType"),
    services: Services = Depends(get_services),
):
    _check_window(start_time, end_time)
    family = parse_sensor_type(sensor_type)
    return ChannelStatsOut.from_domain(
        services.store.aggregate_channel(start_time, end_time, family)
    )


@router.get("/history/chart", response_model=List[ChartBucketOut])
def history_chart(
    start_time: datetime = Query(..., alias="startTime"),
    end_time: datetime = Query(..., alias="endTime"),
    sensor_type: str = Query(..., alias="sensorType"),
    buckets: int = Query(DEFAULT_BUCKET_COUNT, ge=1, le=500),
    services: Services = Depends(get_services),
):
    _check_window(start_time, end_time)
    family = parse_sensor_type(sensor_type)
    return [
        ChartBucketOut.from_domain(b)
        for b in services.store.bucketed_averages(start_time, end_time, buckets, family)
    ]

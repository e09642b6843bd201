from __future__ import annotations

from fastapi import HTTPException, Request

from ..core.domain.channels import ChannelFamily, resolve_family
from ..services import Services


def get_services(request: Request) -> Services:
    return request.app.state.services


def parse_sensor_type(sensor_type: str) -> ChannelFamily:
    family = resolve_family(sensor_type)
    if family is None:
        raise HTTPException(status_code=400, detail=f"Unknown sensorType: {sensor_type}")
    return family

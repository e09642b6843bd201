"""Fallas de sensores: listado y resolución."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from ..auth import require_api_key
from ..schemas import FailureOut, ResolveOut
from ..services import Services
from .deps import get_services

router = APIRouter(prefix="/api/failures", tags=["failures"], dependencies=[Depends(require_api_key)])


@router.get("/active", response_model=List[FailureOut])
def active_failures(services: Services = Depends(get_services)):
    return [FailureOut.from_domain(f) for f in services.ledger.list_active()]


@router.get("/all", response_model=List[FailureOut])
def all_failures(services: Services = Depends(get_services)):
    return [FailureOut.from_domain(f) for f in services.ledger.list_all()]


@router.post("/resolve/{failure_id}", response_model=ResolveOut)
def resolve_failure(failure_id: int, services: Services = Depends(get_services)):
    """Marca una falla como resuelta. 404 si no existe."""
    result = services.ledger.resolve(failure_id)
    message = "Failure already resolved" if result.already_resolved else "Failure resolved"
    return ResolveOut(
        message=message,
        already_resolved=result.already_resolved,
        failure=FailureOut.from_domain(result.failure),
    )

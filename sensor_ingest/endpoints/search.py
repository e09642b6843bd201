from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from ..auth import require_api_key
from ..schemas import CommandOut, FailureOut, SearchOut
from ..services import Services
from .deps import get_services

router = APIRouter(prefix="/api", tags=["search"], dependencies=[Depends(require_api_key)])

SEARCH_LIMIT = 5


@router.get("/search", response_model=SearchOut)
def search(
    q: str = Query("", max_length=100),
    services: Services = Depends(get_services),
):
    term = q.strip()
    if not term:
        raise HTTPException(status_code=400, detail="Search query is required.")
    return SearchOut(
        failures=[FailureOut.from_domain(f) for f in services.ledger.search(term, SEARCH_LIMIT)],
        commands=[CommandOut.from_domain(c) for c in services.command_log.search(term, SEARCH_LIMIT)],
    )

"""Control de actuadores y log de comandos."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query

from ..auth import command_user, require_api_key
from ..core.domain.records import CommandUser
from ..schemas import CommandIn, CommandOut, CommandSentOut
from ..services import Services
from .deps import get_services

router = APIRouter(prefix="/api", tags=["commands"], dependencies=[Depends(require_api_key)])


@router.post("/control", response_model=CommandSentOut)
def send_command(
    body: CommandIn,
    user: CommandUser = Depends(command_user),
    services: Services = Depends(get_services),
):
    """Publica un comando; PublishError se traduce a 502."""
    result = services.publisher.publish(body.actuator_type, body.index, body.level, user)
    return CommandSentOut(
        message="Command sent",
        topic=services.publisher.topic,
        command=CommandOut.from_domain(result.command) if result.audited else None,
    )


@router.get("/commands/all", response_model=List[CommandOut])
def all_commands(
    limit: int | None = Query(None, ge=1, le=1000),
    services: Services = Depends(get_services),
):
    return [CommandOut.from_domain(c) for c in services.command_log.list_all(limit)]

"""Audit log of actuator commands that reached the broker."""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import desc, insert, or_, select
from sqlalchemy.engine import Engine

from ..domain.reading import utcnow
from ..domain.records import Command, CommandUser
from .failure_ledger import like_pattern
from .schema import commands

logger = logging.getLogger(__name__)


class CommandLog:
    """Append-only command audit log."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def append(
        self,
        actuator_type: str,
        actuator_index: int,
        level: str,
        user: Optional[CommandUser] = None,
    ) -> Command:
        user = user or CommandUser()
        now = utcnow()
        with self._engine.begin() as conn:
            result = conn.execute(
                insert(commands).values(
                    user_id=user.id,
                    user_email=user.email,
                    actuator_type=actuator_type,
                    actuator_index=actuator_index,
                    level=level,
                    timestamp=now,
                )
            )
            new_id = int(result.inserted_primary_key[0])

        return Command(
            id=new_id,
            user=user,
            actuator_type=actuator_type,
            actuator_index=actuator_index,
            level=level,
            timestamp=now,
        )

    def list_all(self, limit: Optional[int] = None) -> List[Command]:
        return self._list(None, limit)

    def search(self, term: str, limit: int = 5) -> List[Command]:
        pattern = like_pattern(term)
        condition = or_(
            commands.c.actuator_type.ilike(pattern, escape="\\"),
            commands.c.level.ilike(pattern, escape="\\"),
            commands.c.user_email.ilike(pattern, escape="\\"),
        )
        return self._list(condition, limit)

    def _list(self, condition, limit: Optional[int]) -> List[Command]:
        stmt = select(commands).order_by(desc(commands.c.timestamp), desc(commands.c.id))
        if condition is not None:
            stmt = stmt.where(condition)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [Command.from_row(row) for row in rows]

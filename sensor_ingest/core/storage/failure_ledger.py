"""Ledger de fallas de sensores.

Mantiene UNA falla activa por (sensor_type, sensor_index). The check before
the insert keeps the common path cheap; the partial unique index
``ux_failures_open`` closes the race between two concurrent trips of the
same key, and the losing insert is treated as "already open".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import desc, insert, or_, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from ...errors import NotFoundError
from ..domain.reading import utcnow
from ..domain.records import Failure
from .schema import failures

logger = logging.getLogger(__name__)


def like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


@dataclass(frozen=True)
class ResolveResult:
    failure: Failure
    already_resolved: bool


class FailureLedger:
    """Persistent failure records with lifecycle active -> resolved."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def find_open(self, sensor_type: str, sensor_index: str) -> Optional[Failure]:
        stmt = select(failures).where(
            failures.c.sensor_type == sensor_type,
            failures.c.sensor_index == sensor_index,
            failures.c.resolved.is_(False),
        )
        with self._engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        return Failure.from_row(row) if row else None

    def open_failure(self, sensor_type: str, sensor_index: str, message: str) -> Optional[Failure]:
        """Crea una falla activa si no existe otra para el mismo sensor.

        Returns:
            The new Failure, or None when an unresolved one already exists.
        """
        now = utcnow()
        try:
            with self._engine.begin() as conn:
                existing = conn.execute(
                    select(failures.c.id).where(
                        failures.c.sensor_type == sensor_type,
                        failures.c.sensor_index == sensor_index,
                        failures.c.resolved.is_(False),
                    )
                ).first()
                if existing is not None:
                    logger.info(
                        "[LEDGER] Active failure already exists id=%s %s/%s",
                        existing[0], sensor_type, sensor_index,
                    )
                    return None

                result = conn.execute(
                    insert(failures).values(
                        sensor_type=sensor_type,
                        sensor_index=sensor_index,
                        message=message,
                        resolved=False,
                        timestamp=now,
                    )
                )
                new_id = int(result.inserted_primary_key[0])
        except IntegrityError:
            logger.info(
                "[LEDGER] Concurrent insert lost for %s/%s, failure already open",
                sensor_type, sensor_index,
            )
            return None

        logger.warning("[LEDGER] Failure opened id=%d %s/%s", new_id, sensor_type, sensor_index)
        return Failure(
            id=new_id,
            sensor_type=sensor_type,
            sensor_index=sensor_index,
            message=message,
            resolved=False,
            timestamp=now,
        )

    def list_active(self) -> List[Failure]:
        return self._list(failures.c.resolved.is_(False))

    def list_all(self) -> List[Failure]:
        return self._list(None)

    def get(self, failure_id: int) -> Failure:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(failures).where(failures.c.id == failure_id)
            ).mappings().first()
        if row is None:
            raise NotFoundError(f"Failure {failure_id} not found")
        return Failure.from_row(row)

    def resolve(self, failure_id: int) -> ResolveResult:
        """Marca una falla como resuelta.

        Resolving an already-resolved failure is a no-op success.

        Raises:
            NotFoundError: si el id no existe
        """
        failure = self.get(failure_id)
        if failure.resolved:
            logger.info("[LEDGER] Failure id=%d already resolved", failure_id)
            return ResolveResult(failure=failure, already_resolved=True)

        with self._engine.begin() as conn:
            conn.execute(
                update(failures)
                .where(failures.c.id == failure_id)
                .values(resolved=True)
            )

        logger.info("[LEDGER] Failure resolved id=%d %s/%s", failure_id, failure.sensor_type, failure.sensor_index)
        return ResolveResult(
            failure=Failure(
                id=failure.id,
                sensor_type=failure.sensor_type,
                sensor_index=failure.sensor_index,
                message=failure.message,
                resolved=True,
                timestamp=failure.timestamp,
            ),
            already_resolved=False,
        )

    def search(self, term: str, limit: int = 5) -> List[Failure]:
        pattern = like_pattern(term)
        condition = or_(
            failures.c.message.ilike(pattern, escape="\\"),
            failures.c.sensor_type.ilike(pattern, escape="\\"),
        )
        return self._list(condition, limit=limit)

    def _list(self, condition, limit: Optional[int] = None) -> List[Failure]:
        stmt = select(failures).order_by(desc(failures.c.timestamp), desc(failures.c.id))
        if condition is not None:
            stmt = stmt.where(condition)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [Failure.from_row(row) for row in rows]

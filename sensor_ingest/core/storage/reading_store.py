"""Repositorio de lecturas - append y consultas por ventana de tiempo."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import desc, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ...errors import StoreError
from ..domain.channels import ChannelFamily
from ..domain.reading import Reading, to_naive_utc
from ..resilience.retry import RetryConfig, RetryExecutor
from .bucketing import ChannelStats, ChartBucket, Sample, auto_buckets, channel_stats
from .schema import readings

logger = logging.getLogger(__name__)

DEFAULT_LATEST_LIMIT = 20
DEFAULT_BUCKET_COUNT = 20


class ReadingStore:
    """Time-ordered, append-only store of normalized readings."""

    def __init__(self, engine: Engine, retry: Optional[RetryExecutor] = None):
        self._engine = engine
        self._retry = retry or RetryExecutor(
            RetryConfig(retryable_exceptions=(SQLAlchemyError,))
        )

    @property
    def retry_stats(self) -> dict:
        return self._retry.stats

    def append(self, reading: Reading) -> Reading:
        """Persiste una lectura; retorna la lectura con su id asignado.

        Raises:
            StoreError: si la escritura falla después de los reintentos
        """
        try:
            new_id = self._retry.execute(self._insert, reading)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to persist reading: {e}") from e

        logger.debug("[STORE] Reading saved id=%s", new_id)
        return Reading(timestamp=reading.timestamp, channels=reading.channels, id=new_id)

    def _insert(self, reading: Reading) -> int:
        row = reading.to_row()
        row["timestamp"] = to_naive_utc(reading.timestamp)
        with self._engine.begin() as conn:
            result = conn.execute(insert(readings).values(**row))
            return int(result.inserted_primary_key[0])

    def query_range(self, start: datetime, end: datetime) -> List[Reading]:
        """Lecturas en [start, end], en orden ascendente de tiempo."""
        stmt = (
            select(readings)
            .where(readings.c.timestamp.between(to_naive_utc(start), to_naive_utc(end)))
            .order_by(readings.c.timestamp, readings.c.id)
        )
        return [Reading.from_row(row) for row in self._fetch(stmt)]

    def latest(self, limit: int = DEFAULT_LATEST_LIMIT) -> List[Reading]:
        """Las N lecturas más recientes, la más antigua primero."""
        if limit < 1:
            return []
        stmt = (
            select(readings)
            .order_by(desc(readings.c.timestamp), desc(readings.c.id))
            .limit(limit)
        )
        newest_first = [Reading.from_row(row) for row in self._fetch(stmt)]
        newest_first.reverse()
        return newest_first

    def aggregate_channel(
        self, start: datetime, end: datetime, family: ChannelFamily
    ) -> Optional[ChannelStats]:
        """min/max/avg of a channel over the window, None when there is no data."""
        return channel_stats(self._channel_window(start, end, family))

    def bucketed_averages(
        self,
        start: datetime,
        end: datetime,
        bucket_count: int,
        family: ChannelFamily,
    ) -> List[ChartBucket]:
        """Per-device averages over about ``bucket_count`` auto-sized buckets."""
        return auto_buckets(self._channel_window(start, end, family), bucket_count)

    def _channel_window(self, start: datetime, end: datetime, family: ChannelFamily) -> List[Sample]:
        column = readings.c[family.value]
        stmt = (
            select(readings.c.timestamp, column)
            .where(readings.c.timestamp.between(to_naive_utc(start), to_naive_utc(end)))
            .order_by(readings.c.timestamp, readings.c.id)
        )
        # Solo lecturas donde el canal tiene datos
        return [
            (row["timestamp"], [float(v) for v in row[family.value]])
            for row in self._fetch(stmt)
            if row[family.value]
        ]

    def _fetch(self, stmt):
        try:
            with self._engine.connect() as conn:
                return conn.execute(stmt).mappings().all()
        except SQLAlchemyError as e:
            logger.error("[STORE] Query failed: %s", e)
            raise StoreError(f"Reading query failed: {e}") from e

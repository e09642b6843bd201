"""Tablas persistentes: readings, failures, commands."""

from __future__ import annotations

import logging

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

metadata = MetaData()

readings = Table(
    "readings",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("timestamp", DateTime, nullable=False),
    Column("temperature", JSON, nullable=False),
    Column("humidity", JSON, nullable=False),
    Column("light", JSON, nullable=False),
    Column("gas", JSON, nullable=False),
    Column("current", JSON, nullable=False, quote=True),
    Index("ix_readings_timestamp", "timestamp"),
)

failures = Table(
    "failures",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("sensor_type", String(32), nullable=False),
    Column("sensor_index", String(32), nullable=False),
    Column("message", Text, nullable=False),
    Column("resolved", Boolean, nullable=False, default=False),
    Column("timestamp", DateTime, nullable=False),
)

# Una sola falla activa por (sensor_type, sensor_index)
Index(
    "ux_failures_open",
    failures.c.sensor_type,
    failures.c.sensor_index,
    unique=True,
    sqlite_where=~failures.c.resolved,
    postgresql_where=~failures.c.resolved,
)

commands = Table(
    "commands",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(64), nullable=True),
    Column("user_email", String(255), nullable=True),
    Column("actuator_type", String(64), nullable=False),
    Column("actuator_index", Integer, nullable=False),
    Column("level", String(64), nullable=False),
    Column("timestamp", DateTime, nullable=False),
)


def ensure_schema(engine: Engine) -> None:
    """Creates the tables and indexes if they don't exist. Safe to call multiple times."""
    logger.info("[DB] Ensuring schema exists")
    metadata.create_all(engine)

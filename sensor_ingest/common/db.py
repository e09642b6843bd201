from __future__ import annotations

import logging
from typing import Optional

import orjson
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from .config import Settings, get_settings


logger = logging.getLogger(__name__)

# Singleton engine
_engine: Optional[Engine] = None


def _json_serializer(obj) -> str:
    return orjson.dumps(obj).decode("utf-8")


def create_db_engine(url: str, pool_timeout: float = 10.0) -> Engine:
    """Builds an engine for the reading/failure/command tables.

    In-memory SQLite is pinned to a single shared connection so the MQTT
    worker threads and the API see the same database.
    """
    kwargs = {
        "pool_pre_ping": True,
        "future": True,
        "json_serializer": _json_serializer,
        "json_deserializer": orjson.loads,
    }

    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": pool_timeout}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_recycle"] = 300
        kwargs["pool_timeout"] = pool_timeout

    return create_engine(url, **kwargs)


def get_engine(settings: Settings | None = None) -> Engine:
    global _engine

    if _engine is not None:
        return _engine

    settings = settings or get_settings()

    # Log básico de parámetros de conexión (sin contraseña)
    logger.info("[DB] Creating engine url=%s", settings.database_url.split("@")[-1])

    _engine = create_db_engine(settings.database_url, settings.db_pool_timeout_seconds)

    try:
        with _engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("[DB] Connection test OK")
    except Exception:
        logger.exception("[DB] Connection test FAILED")

    return _engine


def reset_engine() -> None:
    """Disposes the singleton engine (used on shutdown and by tests)."""
    global _engine

    if _engine is not None:
        _engine.dispose()
        _engine = None

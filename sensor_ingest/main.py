from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .common.config import Settings, get_settings
from .endpoints import (
    commands_router,
    failures_router,
    health_router,
    readings_router,
    search_router,
)
from .errors import NotFoundError, PublishError, StoreError
from .mqtt.command_publisher import CommandTransport
from .services import build_services

logger = logging.getLogger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(PublishError)
    async def _publish_failed(request: Request, exc: PublishError):
        logger.error("[API] Command publish failed: %s", exc)
        return JSONResponse(status_code=502, content={"detail": f"Failed to send command: {exc}"})

    @app.exception_handler(StoreError)
    async def _store_failed(request: Request, exc: StoreError):
        logger.error("[API] Store unavailable: %s", exc)
        return JSONResponse(status_code=503, content={"detail": "Reading store unavailable"})

    @app.exception_handler(SQLAlchemyError)
    async def _db_failed(request: Request, exc: SQLAlchemyError):
        # No exponer detalles del error al cliente
        logger.exception("[API] Database error")
        return JSONResponse(status_code=503, content={"detail": "Database unavailable"})


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    transport: Optional[CommandTransport] = None,
) -> FastAPI:
    """Crea la aplicación FastAPI.

    ``engine`` and ``transport`` replace the configured database and MQTT
    client; passing a transport also disables the MQTT receiver.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services = build_services(settings, engine=engine, transport=transport)
        services.start()
        app.state.services = services
        logger.info("[API] Service started (environment=%s)", settings.environment)
        try:
            yield
        finally:
            services.stop()
            logger.info("[API] Service stopped")

    app = FastAPI(title="Room Sensor Ingest Service", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings

    app.include_router(health_router)
    app.include_router(readings_router)
    app.include_router(failures_router)
    app.include_router(commands_router)
    app.include_router(search_router)
    _register_error_handlers(app)
    return app

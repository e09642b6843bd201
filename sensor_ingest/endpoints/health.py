"""Health and readiness endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text

from ..services import Services
from .deps import get_services

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Liveness probe - always returns ok if process is running."""
    return {"status": "ok"}


@router.get("/ready")
def ready(services: Services = Depends(get_services)):
    """Readiness probe - checks DB connectivity."""
    try:
        with services.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Readiness check failed")
        raise HTTPException(status_code=503, detail="not ready")
    return {"status": "ready"}


@router.get("/mqtt/health")
def mqtt_health(services: Services = Depends(get_services)):
    """Estado del receptor MQTT y del pipeline."""
    receiver = services.receiver
    if receiver is None:
        return {
            "enabled": False,
            "pipeline": services.pipeline.stats.to_dict(),
            "detector": services.detector.stats,
            "store_retry": services.store.retry_stats,
        }
    return {
        "enabled": True,
        **receiver.health_check(),
        "details": receiver.stats,
        "store_retry": services.store.retry_stats,
    }

"""Autenticación por API Key para los endpoints /api.

SECURITY: En producción, INGEST_API_KEY debe estar configurado.
"""

from __future__ import annotations

import hmac
import logging

from fastapi import Header, HTTPException, Request

from .core.domain.records import CommandUser

logger = logging.getLogger(__name__)


def require_api_key(
    request: Request,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
) -> None:
    """Valida API key.

    En modo desarrollo, permite acceso sin autenticación con warning.
    """
    settings = request.app.state.settings
    expected = settings.api_key

    if not expected:
        if settings.is_production:
            logger.error("CRITICAL: INGEST_API_KEY not configured in production!")
            raise HTTPException(
                status_code=500,
                detail="Server misconfiguration: API key not set",
            )
        logger.warning(
            "[SECURITY WARNING] INGEST_API_KEY not set - "
            "allowing unauthenticated access (DEV ONLY)"
        )
        return

    if not x_api_key:
        raise HTTPException(status_code=401, detail="API key required")

    if not hmac.compare_digest(x_api_key.encode(), expected.encode()):
        logger.warning("Invalid API key attempt from request")
        raise HTTPException(status_code=401, detail="Invalid API key")


def command_user(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    x_user_email: str | None = Header(default=None, alias="X-User-Email"),
) -> CommandUser:
    """Operator snapshot set by the upstream auth gateway."""
    return CommandUser(id=x_user_id or None, email=x_user_email or None)

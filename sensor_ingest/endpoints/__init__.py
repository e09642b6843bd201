"""Módulo de endpoints HTTP.

Contiene todos los endpoints de la API organizados por función.
"""

from .commands import router as commands_router
from .failures import router as failures_router
from .health import router as health_router
from .readings import router as readings_router
from .search import router as search_router

__all__ = [
    "commands_router",
    "failures_router",
    "health_router",
    "readings_router",
    "search_router",
]

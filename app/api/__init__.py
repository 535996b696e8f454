"""API endpoints."""

from app.api.routes import get_orchestrator, router

__all__ = [
    "router",
    "get_orchestrator",
]

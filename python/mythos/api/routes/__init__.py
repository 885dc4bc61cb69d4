"""API route definitions.

Uses a factory pattern to avoid import-time settings loading.
"""

from fastapi import APIRouter

from mythos.api.routes.ai import router as ai_router
from mythos.api.routes.health import router as health_router


def create_api_router() -> APIRouter:
    """Create and configure the API router."""
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(ai_router, tags=["ai"])
    return api_router


__all__ = ["create_api_router"]

"""FastAPI dependencies for route handlers."""

from fastapi import Request

from mythos.services.llm import ProviderRouter
from mythos.services.replies import ReplyOrchestrator

__all__ = ["get_provider_router", "get_reply_orchestrator"]


def get_provider_router(request: Request) -> ProviderRouter:
    """Get the shared ProviderRouter from app state.

    The router is created at startup around the shared httpx.AsyncClient.
    """
    return request.app.state.provider_router


def get_reply_orchestrator(request: Request) -> ReplyOrchestrator:
    """Get the shared ReplyOrchestrator from app state."""
    return request.app.state.reply_orchestrator

"""Reply generation routes.

Routes are transport-only: each calls exactly one service function.

- POST /ai/generate-reply: Generate 1..5 reply variations for a tweet
- GET /ai/models: Models available on the active backend

All routes require authentication.
Response envelope: {"data": ...}
Error envelope: {"error": {"code": "...", "message": "...", "request_id": "..."}}
Provider errors propagate to mythos.responses.llm_error_handler.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from mythos.api.deps import get_provider_router, get_reply_orchestrator
from mythos.auth.middleware import Viewer, get_viewer
from mythos.errors import ApiError, ApiErrorCode
from mythos.responses import success_response
from mythos.schemas.ai import GenerateReplyOut, GenerateReplyRequest, ModelOut, ModelsOut
from mythos.services.llm import ProviderRouter
from mythos.services.replies import ReplyOrchestrator

router = APIRouter(prefix="/ai")


@router.post("/generate-reply")
async def generate_reply(
    body: GenerateReplyRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    orchestrator: Annotated[ReplyOrchestrator, Depends(get_reply_orchestrator)],
) -> dict:
    """Generate reply variations for the given tweet."""
    if not body.original_tweet or not body.original_tweet.strip():
        raise ApiError(ApiErrorCode.E_INVALID_REQUEST, "originalTweet is required")

    batch = await orchestrator.generate_replies(body.to_options())

    out = GenerateReplyOut(**batch.to_dict())
    return success_response(out.model_dump())


@router.get("/models")
async def list_models(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    provider_router: Annotated[ProviderRouter, Depends(get_provider_router)],
) -> dict:
    """List catalog models for the active backend."""
    out = ModelsOut(
        provider=provider_router.active_kind.value,
        default_model_id=provider_router.default_model_id(),
        models=[ModelOut.from_info(m) for m in provider_router.available_models()],
    )
    return success_response(out.model_dump())

"""Response envelopes and the exception handlers that produce them.

Success: {"data": ...}
Error: {"error": {"code": "E_...", "message": "...", "request_id": "..."}}

Errors reach clients through two paths: ApiError raised by routes and
middleware, and LLMError raised by the provider layer. Both end in the same
envelope; provider detail (backend, upstream status) stays in the logs.
"""

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mythos.errors import ApiError, ApiErrorCode
from mythos.logging import get_logger, get_request_id
from mythos.services.llm import BackendError, ConfigurationError, LLMError, ValidationError

logger = get_logger(__name__)

# Framework-raised statuses (unknown route, wrong method, body schema)
HTTP_STATUS_TO_CODE: dict[int, ApiErrorCode] = {
    400: ApiErrorCode.E_INVALID_REQUEST,
    401: ApiErrorCode.E_UNAUTHENTICATED,
    403: ApiErrorCode.E_FORBIDDEN,
    404: ApiErrorCode.E_NOT_FOUND,
    405: ApiErrorCode.E_INVALID_REQUEST,
    422: ApiErrorCode.E_INVALID_REQUEST,
}


def success_response(data: Any) -> dict[str, Any]:
    return {"data": data}


def error_response(
    code: ApiErrorCode, message: str, request_id: str | None = None
) -> dict[str, Any]:
    """Build the error envelope; request_id defaults to the current request's."""
    if request_id is None:
        request_id = get_request_id()

    error = {"code": code.value, "message": message}
    if request_id:
        error["request_id"] = request_id

    return {"error": error}


def api_error_from_llm_error(error: LLMError) -> ApiError:
    """Map a provider-layer error onto the API error taxonomy.

    Only validation messages are user-facing; backend failures get a fixed
    message so upstream bodies never reach the client.
    """
    if isinstance(error, ValidationError):
        return ApiError(ApiErrorCode.E_INVALID_REQUEST, error.message)
    if isinstance(error, ConfigurationError):
        return ApiError(ApiErrorCode.E_LLM_NOT_CONFIGURED, "AI provider is not configured")
    if isinstance(error, BackendError):
        return ApiError(ApiErrorCode.E_LLM_GENERATION_FAILED, "Failed to generate reply")
    return ApiError(ApiErrorCode.E_INTERNAL, "Internal server error")


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.code, exc.message),
    )


async def llm_error_handler(request: Request, exc: LLMError) -> JSONResponse:
    """Render a provider-layer error that escaped a route."""
    return await api_error_handler(request, api_error_from_llm_error(exc))


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    code = HTTP_STATUS_TO_CODE.get(exc.status_code, ApiErrorCode.E_INTERNAL)
    message = str(exc.detail) if exc.detail else "An error occurred"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(code, message),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Body schema failures are 400 E_INVALID_REQUEST, not FastAPI's 422."""
    return JSONResponse(
        status_code=400,
        content=error_response(ApiErrorCode.E_INVALID_REQUEST, "Invalid request body"),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log server-side and answer 500 E_INTERNAL without exception detail."""
    logger.exception("unhandled_exception", error_type=type(exc).__name__)

    return JSONResponse(
        status_code=500,
        content=error_response(ApiErrorCode.E_INTERNAL, "Internal server error"),
    )

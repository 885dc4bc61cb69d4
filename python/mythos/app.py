"""FastAPI application creation and configuration.

Registers exception handlers, auth middleware, request-id middleware, and routes.

Middleware Ordering:
- Middleware runs in reverse order of registration
- RequestIDMiddleware is added LAST so it runs FIRST (outermost)

Actual execution order per request:
1. RequestIDMiddleware (sets request_id, starts timer)
2. AuthMiddleware (verifies bearer token, sets viewer)
3. Route handler
4. RequestIDMiddleware (logs, sets response header)

Provider Lifecycle:
- One httpx.AsyncClient is created at startup and stored in app.state
- ProviderRouter wraps the shared client; ReplyOrchestrator wraps the router
- The client is closed at shutdown
"""

import json
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mythos.api.routes import create_api_router
from mythos.auth.middleware import AuthMiddleware
from mythos.auth.verifier import JwtSecretVerifier, TokenVerifier
from mythos.config import get_settings
from mythos.errors import ApiError, ApiErrorCode
from mythos.logging import get_logger
from mythos.middleware.request_id import RequestIDMiddleware
from mythos.responses import (
    api_error_handler,
    error_response,
    http_exception_handler,
    llm_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from mythos.services.llm import CONNECT_TIMEOUT_S, LLMError, ProviderRouter, ProviderSettings
from mythos.services.replies import ReplyOrchestrator

logger = get_logger(__name__)


def create_token_verifier() -> TokenVerifier:
    """Create the HS256 token verifier from JWT_SECRET.

    Raises:
        RuntimeError: JWT_SECRET is not configured.
    """
    settings = get_settings()
    if not settings.jwt_secret:
        raise RuntimeError("JWT_SECRET is required to serve authenticated routes")
    return JwtSecretVerifier(settings.jwt_secret)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage the shared HTTP client and provider router."""
    provider_settings = app.state.provider_settings or ProviderSettings.from_settings(
        get_settings()
    )

    app.state.httpx_client = httpx.AsyncClient(
        timeout=httpx.Timeout(float(provider_settings.timeout_s), connect=CONNECT_TIMEOUT_S),
        limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
    )

    app.state.provider_router = ProviderRouter(app.state.httpx_client, provider_settings)
    app.state.reply_orchestrator = ReplyOrchestrator(
        app.state.provider_router,
        concurrency=provider_settings.reply_concurrency,
    )

    logger.info(
        "provider_router_initialized",
        provider=provider_settings.kind.value,
        gateway_key_configured=bool(provider_settings.gateway_api_key),
        edge_key_configured=bool(provider_settings.edge_api_key),
        concurrency=provider_settings.reply_concurrency,
    )

    yield

    await app.state.httpx_client.aclose()
    logger.info("httpx_client_closed")


def create_app(
    skip_auth_middleware: bool = False,
    token_verifier: TokenVerifier | None = None,
    provider_settings: ProviderSettings | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        skip_auth_middleware: If True, skip adding auth middleware (for testing).
        token_verifier: Optional custom token verifier (for testing).
        provider_settings: Provider configuration override; read from the
            environment at startup when None.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Mythos API",
        description="Reply generation over pluggable AI inference backends",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.provider_settings = provider_settings

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(LLMError, llm_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.middleware("http")
    async def catch_json_decode_errors(request: Request, call_next):
        """Reject malformed JSON bodies before they reach route handlers."""
        if request.method in ("POST", "PUT", "PATCH"):
            content_type = request.headers.get("content-type", "")
            if "application/json" in content_type:
                body = await request.body()
                if body:
                    try:
                        json.loads(body)
                    except json.JSONDecodeError:
                        return JSONResponse(
                            status_code=400,
                            content=error_response(
                                ApiErrorCode.E_INVALID_REQUEST, "Malformed JSON body"
                            ),
                        )
        return await call_next(request)

    app.include_router(create_api_router())

    if not skip_auth_middleware:
        verifier = token_verifier or create_token_verifier()
        app.add_middleware(AuthMiddleware, verifier=verifier)
        logger.info("auth_middleware_enabled", env=settings.mythos_env.value)

    return app


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Add request-id middleware to the app.

    Call AFTER all other middleware is added so it runs FIRST and every
    response, including auth failures, carries X-Request-ID.
    """
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
    logger.info("request_id_middleware_enabled")

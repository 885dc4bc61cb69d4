"""Error taxonomy and classification for the AI provider layer.

- ConfigurationError: Required credential missing for the selected backend.
  Raised before any network call is attempted.
- ValidationError: Caller-supplied generation options violate constraints.
  Raised before any network call is attempted.
- BackendError: Upstream call failed (non-2xx, network failure, timeout).
- MalformedResponseError: Upstream returned 2xx with a body that cannot be
  normalized (e.g. gateway returned zero choices). A BackendError variant.

No retries and no cross-backend fallback happen at this layer; callers decide
how to present failures.

Error classes (for HTTP/status classification):
- E_LLM_INVALID_KEY: Authentication failure (401/403)
- E_LLM_RATE_LIMIT: Rate limit exceeded (429)
- E_LLM_TIMEOUT: Request timed out
- E_LLM_PROVIDER_DOWN: Provider unavailable (5xx, network error)
- E_MODEL_NOT_AVAILABLE: Model not found
- E_LLM_BAD_REQUEST: Upstream rejected the request (other 4xx)
- E_LLM_MALFORMED_RESPONSE: 2xx with unusable body
- E_LLM_NOT_CONFIGURED: Missing credential
- E_INVALID_OPTIONS: Caller options rejected
"""

from enum import Enum

from mythos.logging import get_logger

logger = get_logger(__name__)

MALFORMED_RESPONSE_KIND = "malformed-response"


class LLMErrorClass(str, Enum):
    """Normalized LLM error classifications."""

    INVALID_KEY = "E_LLM_INVALID_KEY"
    RATE_LIMIT = "E_LLM_RATE_LIMIT"
    TIMEOUT = "E_LLM_TIMEOUT"
    PROVIDER_DOWN = "E_LLM_PROVIDER_DOWN"
    MODEL_NOT_AVAILABLE = "E_MODEL_NOT_AVAILABLE"
    BAD_REQUEST = "E_LLM_BAD_REQUEST"
    MALFORMED_RESPONSE = "E_LLM_MALFORMED_RESPONSE"
    NOT_CONFIGURED = "E_LLM_NOT_CONFIGURED"
    INVALID_OPTIONS = "E_INVALID_OPTIONS"


class LLMError(Exception):
    """Base exception for the AI provider layer.

    Attributes:
        error_class: The normalized error classification
        message: Human-readable error message
    """

    def __init__(self, error_class: LLMErrorClass, message: str):
        self.error_class = error_class
        self.message = message
        super().__init__(message)


class ConfigurationError(LLMError):
    """Required configuration (credential) is missing for the selected backend."""

    def __init__(self, message: str):
        super().__init__(LLMErrorClass.NOT_CONFIGURED, message)


class ValidationError(LLMError):
    """Generation options violate constraints (count out of range, missing text)."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(LLMErrorClass.INVALID_OPTIONS, message)


class BackendError(LLMError):
    """Upstream inference call failed.

    Attributes:
        kind: Backend kind value ("openrouter" / "edgecloud") or "malformed-response"
        status: Upstream HTTP status, when one was received
        provider: Backend kind value that served the call (kept even for malformed bodies)
    """

    def __init__(
        self,
        kind: str,
        message: str,
        *,
        status: int | None = None,
        error_class: LLMErrorClass = LLMErrorClass.PROVIDER_DOWN,
        provider: str | None = None,
    ):
        self.kind = kind
        self.status = status
        self.provider = provider or kind
        super().__init__(error_class, message)


class MalformedResponseError(BackendError):
    """Upstream returned 2xx with a body missing required fields."""

    def __init__(self, provider: str, message: str, *, status: int | None = None):
        super().__init__(
            MALFORMED_RESPONSE_KIND,
            message,
            status=status,
            error_class=LLMErrorClass.MALFORMED_RESPONSE,
            provider=provider,
        )


def classify_provider_error(
    provider: str,
    status_code: int | None,
    json_body: dict | None,
    exception: Exception | None,
) -> LLMErrorClass:
    """Classify a backend failure into a normalized error class.

    Args:
        provider: Backend kind value ("openrouter" or "edgecloud")
        status_code: HTTP status code (if available)
        json_body: Parsed JSON error response (if available)
        exception: The exception that was raised (if any)

    Returns:
        The appropriate LLMErrorClass for this error.
    """
    # Transport failures carry no status code
    if exception is not None:
        exception_type = type(exception).__name__
        if "Timeout" in exception_type or "timeout" in str(exception).lower():
            return LLMErrorClass.TIMEOUT
        if "Network" in exception_type or "Connection" in exception_type:
            return LLMErrorClass.PROVIDER_DOWN

    if status_code is None:
        return LLMErrorClass.PROVIDER_DOWN

    if provider == "openrouter":
        return _classify_gateway_error(status_code, json_body)
    elif provider == "edgecloud":
        return _classify_edge_error(status_code)
    else:
        logger.warning("unknown_provider_for_error_classification", provider=provider)
        return LLMErrorClass.PROVIDER_DOWN


def _classify_gateway_error(status_code: int, json_body: dict | None) -> LLMErrorClass:
    """Classify OpenRouter gateway errors.

    - 401 or 403 → INVALID_KEY
    - 402 → RATE_LIMIT (credits exhausted)
    - 429 → RATE_LIMIT
    - 404 or "model" + "not found"/"not a valid" in message → MODEL_NOT_AVAILABLE
    - 5xx → PROVIDER_DOWN
    - other 4xx → BAD_REQUEST
    """
    if status_code in (401, 403):
        return LLMErrorClass.INVALID_KEY

    if status_code in (402, 429):
        return LLMErrorClass.RATE_LIMIT

    if status_code == 404:
        return LLMErrorClass.MODEL_NOT_AVAILABLE

    if status_code >= 500:
        return LLMErrorClass.PROVIDER_DOWN

    if json_body:
        error = json_body.get("error") or {}
        error_message = str(error.get("message", "")).lower() if isinstance(error, dict) else ""
        if "model" in error_message and (
            "not found" in error_message or "not a valid" in error_message
        ):
            return LLMErrorClass.MODEL_NOT_AVAILABLE

    return LLMErrorClass.BAD_REQUEST


def _classify_edge_error(status_code: int) -> LLMErrorClass:
    """Classify edge inference errors (status code only; body shape is undocumented)."""
    if status_code in (401, 403):
        return LLMErrorClass.INVALID_KEY

    if status_code == 429:
        return LLMErrorClass.RATE_LIMIT

    if status_code == 404:
        return LLMErrorClass.MODEL_NOT_AVAILABLE

    if status_code >= 500:
        return LLMErrorClass.PROVIDER_DOWN

    return LLMErrorClass.BAD_REQUEST

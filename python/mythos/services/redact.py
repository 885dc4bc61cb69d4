"""Redaction, hashing, and log guard utilities.

- hash_text: stable SHA-256 hex digest for log correlation
- safe_kv: log guard that blocks forbidden keys at call site

Never-log policy:
- Backend credentials (gateway key, edge key, placeholder included)
- Bearer tokens
- Rendered prompts
- Source tweet text and generated reply text
- Custom instructions

Allowed (with suffix):
- _chars, _length: length of text
- _sha256, _hash: hash of text
- Token counts, cost, latency, provider job ID
"""

import hashlib
import os

FORBIDDEN_KEYS = frozenset(
    {
        "prompt",
        "content",
        "text",
        "api_key",
        "credential",
        "bearer",
        "token",
        "secret",
        "password",
        "source_text",
        "reply_text",
        "custom_instructions",
        "raw_body",
    }
)

REDACTED_SUFFIXES = ("_sha256", "_hash", "_length", "_chars")


def hash_text(value: str) -> str:
    """SHA-256 hex digest of a string.

    Args:
        value: Text to hash.

    Returns:
        Hex-encoded SHA-256 digest.
    """
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def _has_redacted_suffix(key: str) -> bool:
    """Check if key ends with a recognized redacted suffix."""
    return any(key.endswith(suffix) for suffix in REDACTED_SUFFIXES)


def safe_kv(*, _env: str | None = None, **kwargs) -> dict:
    """Validate that no forbidden keys are present unless already redacted.

    Raises ValueError in local/test environments if a forbidden key is used
    without a redacted suffix. In staging/prod, logs a warning instead.

    Usage:
        logger.info("llm.request.started", **safe_kv(
            provider="gateway",
            model_id="google/gemma-2-9b-it:free",
            prompt_chars=1234,        # OK: _chars suffix
            prompt_sha256="abc123",   # OK: _sha256 suffix
            # prompt="hello world",   # BLOCKED: forbidden key
        ))

    Args:
        _env: Override for MYTHOS_ENV (test-only). If None, reads from env.
        **kwargs: Keyword arguments to validate and return.

    Returns:
        The same kwargs dict, after validation.

    Raises:
        ValueError: In local/test, if a forbidden key is used without redacted suffix.
    """
    violations = []
    for key in kwargs:
        if key in FORBIDDEN_KEYS and not _has_redacted_suffix(key):
            violations.append(key)

    if violations:
        msg = f"Forbidden log keys without redacted suffix: {violations}"
        env = _env or os.environ.get("MYTHOS_ENV", "local")
        if env in ("local", "test"):
            raise ValueError(msg)
        else:
            import structlog

            _logger = structlog.get_logger("mythos.services.redact")
            _logger.warning("safe_kv_violation", forbidden_keys=violations)

    return kwargs

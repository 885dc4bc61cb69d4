"""Shared helpers for tests: fixtures on disk, upstream URLs, test tokens."""

import json
import time
from pathlib import Path

import jwt

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "llm"

GATEWAY_URL = "https://openrouter.ai/api/v1/chat/completions"
EDGE_BASE_URL = "https://ondemand.thetaedgecloud.com"

TEST_JWT_SECRET = "test-jwt-secret-not-for-production"


def edge_url(model_id: str = "llama-3-70b-instruct") -> str:
    return f"{EDGE_BASE_URL}/infer_request/{model_id}/completions"


def load_fixture(backend: str, filename: str) -> dict | str:
    """Load a test fixture file."""
    path = FIXTURES_DIR / backend / filename
    content = path.read_text()
    if filename.endswith(".json"):
        return json.loads(content)
    return content


def chat_completion(text: str, *, finish_reason: str = "stop") -> dict:
    """Minimal chat-completion envelope with the given text."""
    return {
        "id": "gen-test",
        "model": "google/gemma-2-9b-it:free",
        "choices": [
            {"message": {"role": "assistant", "content": text}, "finish_reason": finish_reason}
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }


def make_token(user_id: str = "user-123", *, expires_in: int = 3600, secret: str | None = None) -> str:
    """Mint an HS256 token accepted by the test verifier."""
    now = int(time.time())
    return jwt.encode(
        {"sub": user_id, "iat": now, "exp": now + expires_in},
        secret or TEST_JWT_SECRET,
        algorithm="HS256",
    )


def auth_headers(user_id: str = "user-123") -> dict[str, str]:
    """Authorization header for a test user."""
    return {"Authorization": f"Bearer {make_token(user_id)}"}

"""Authentication module.

This module provides:
- Token verification (HS256 shared-secret verifier)
- Auth middleware for FastAPI
- Request state with viewer identity
"""

from mythos.auth.middleware import AuthMiddleware, Viewer, get_viewer
from mythos.auth.verifier import JwtSecretVerifier, TokenVerifier

__all__ = [
    "AuthMiddleware",
    "JwtSecretVerifier",
    "TokenVerifier",
    "Viewer",
    "get_viewer",
]

"""Token verification implementations.

Provides:
- TokenVerifier: Protocol for token verification
- JwtSecretVerifier: HS256 verifier using the shared JWT_SECRET
"""

import logging
from typing import Any, Protocol

import jwt
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    InvalidAudienceError,
    InvalidSignatureError,
    InvalidTokenError,
)

from mythos.errors import ApiError, ApiErrorCode

logger = logging.getLogger(__name__)

# Clock skew allowance in seconds
CLOCK_SKEW_SECONDS = 60

ALGORITHM = "HS256"


class TokenVerifier(Protocol):
    """Protocol for token verification.

    Implementations must verify JWT tokens and return decoded claims.
    """

    def verify(self, token: str) -> dict[str, Any]:
        """Verify token and return decoded claims.

        Args:
            token: The JWT token string to verify.

        Returns:
            Decoded JWT claims dictionary.

        Raises:
            ApiError(E_UNAUTHENTICATED): Token is invalid, expired, or malformed.
        """
        ...


class JwtSecretVerifier:
    """Token verifier for HS256 tokens signed with a shared secret.

    Validates:
    - Signature with the configured secret
    - exp with ±60s clock skew
    - aud when an audience is configured
    - sub is a non-empty string
    """

    def __init__(self, secret: str, audience: str | None = None):
        if not secret:
            raise ValueError("secret must be non-empty")
        self._secret = secret
        self.audience = audience

    def verify(self, token: str) -> dict[str, Any]:
        """Verify an HS256 token.

        Raises:
            ApiError(E_UNAUTHENTICATED): Token is invalid.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                audience=self.audience,
                leeway=CLOCK_SKEW_SECONDS,
                options={
                    "require": ["exp", "sub"],
                    "verify_aud": self.audience is not None,
                },
            )
        except ExpiredSignatureError as e:
            logger.warning("auth_failure", extra={"reason": "expired_token"})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Token expired") from e
        except InvalidSignatureError as e:
            logger.warning("auth_failure", extra={"reason": "invalid_signature"})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token signature") from e
        except InvalidAudienceError as e:
            logger.warning("auth_failure", extra={"reason": "invalid_audience"})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token audience") from e
        except DecodeError as e:
            logger.warning("auth_failure", extra={"reason": "decode_error", "error": str(e)})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token format") from e
        except InvalidTokenError as e:
            logger.warning("auth_failure", extra={"reason": "invalid_token", "error": str(e)})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token") from e

        sub = payload.get("sub")
        if not isinstance(sub, str) or not sub.strip():
            logger.warning("auth_failure", extra={"reason": "missing_sub"})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token: missing sub")

        return payload

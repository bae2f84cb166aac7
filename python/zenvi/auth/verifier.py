"""Token verification implementations.

Provides:
- TokenVerifier: Protocol for token verification
- JwtTokenVerifier: HS256 verifier for tokens minted by the identity service

Registration, login and session cookies live in the identity service; this
API only verifies the bearer tokens it issues.
"""

from typing import Any, Protocol
from uuid import UUID

import jwt
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    InvalidAudienceError,
    InvalidIssuerError,
    InvalidSignatureError,
    InvalidTokenError,
)

from zenvi.errors import ApiErrorCode, UnauthorizedError
from zenvi.logging import get_logger

logger = get_logger(__name__)

# Clock skew allowance in seconds
CLOCK_SKEW_SECONDS = 60

# Claims consulted (in order) to seed a username on first login
USERNAME_CLAIMS = ("preferred_username", "username", "email")


class TokenVerifier(Protocol):
    """Protocol for token verification.

    Implementations must verify JWT tokens and return decoded claims.
    """

    def verify(self, token: str) -> dict[str, Any]:
        """Verify token and return decoded claims.

        Raises:
            UnauthorizedError(E_UNAUTHENTICATED): Token is invalid, expired, or malformed.
        """
        ...


class JwtTokenVerifier:
    """Token verifier for HS256-signed JWTs.

    Validates:
    - Signature with the shared secret
    - exp with ±60s clock skew
    - iss matches configured issuer (after normalization)
    - aud must be in configured audience list
    - sub must be valid UUID
    """

    algorithms = ["HS256"]

    def __init__(self, secret: str, issuer: str, audiences: list[str]):
        self.secret = secret
        self.issuer = issuer.rstrip("/")
        self.audiences = audiences

    def verify(self, token: str) -> dict[str, Any]:
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=self.algorithms,
                audience=self.audiences,
                issuer=self.issuer,
                leeway=CLOCK_SKEW_SECONDS,
                options={"require": ["exp", "iss", "sub"], "verify_aud": True},
            )
        except ExpiredSignatureError as e:
            logger.warning("auth_failure", reason="expired_token")
            raise UnauthorizedError(ApiErrorCode.E_UNAUTHENTICATED, "Token expired") from e
        except InvalidSignatureError as e:
            logger.warning("auth_failure", reason="invalid_signature")
            raise UnauthorizedError(
                ApiErrorCode.E_UNAUTHENTICATED, "Invalid token signature"
            ) from e
        except InvalidIssuerError as e:
            logger.warning("auth_failure", reason="invalid_issuer")
            raise UnauthorizedError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token issuer") from e
        except InvalidAudienceError as e:
            logger.warning("auth_failure", reason="invalid_audience")
            raise UnauthorizedError(
                ApiErrorCode.E_UNAUTHENTICATED, "Invalid token audience"
            ) from e
        except DecodeError as e:
            logger.warning("auth_failure", reason="decode_error")
            raise UnauthorizedError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token format") from e
        except InvalidTokenError as e:
            logger.warning("auth_failure", reason="invalid_token", error=str(e))
            raise UnauthorizedError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token") from e

        try:
            UUID(str(payload["sub"]))
        except (ValueError, TypeError) as e:
            logger.warning("auth_failure", reason="invalid_sub")
            raise UnauthorizedError(
                ApiErrorCode.E_UNAUTHENTICATED, "Invalid token: sub is not a valid UUID"
            ) from e

        return payload


def username_from_claims(claims: dict[str, Any]) -> str | None:
    """Pick a username seed from token claims (local part for emails)."""
    for claim in USERNAME_CLAIMS:
        value = claims.get(claim)
        if isinstance(value, str) and value.strip():
            return value.strip().split("@", 1)[0] if claim == "email" else value.strip()
    return None

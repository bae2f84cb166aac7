"""Test helpers for authentication and common test operations.

Provides:
- Token minting for test authentication (HS256, matching conftest env)
- Header generation for test requests
- User ID helpers
"""

import time
from uuid import UUID, uuid4

import jwt

# Must match the JWT_* env vars set in conftest.py
TEST_JWT_SECRET = "zenvi-test-secret-0123456789abcdef0123456789"
TEST_ISSUER = "zenvi-test-identity"
TEST_AUDIENCE = "zenvi-test-api"
DEFAULT_EXPIRES_IN = 3600  # 1 hour


def mint_test_token(
    user_id: UUID | str,
    expires_in: int = DEFAULT_EXPIRES_IN,
    issuer: str = TEST_ISSUER,
    audience: str = TEST_AUDIENCE,
    secret: str = TEST_JWT_SECRET,
    **extra_claims,
) -> str:
    """Mint a valid test JWT token.

    Args:
        user_id: The user ID to set as the `sub` claim.
        expires_in: Token validity in seconds from now.
        issuer: The `iss` claim value.
        audience: The `aud` claim value.
        secret: HS256 signing secret.
        **extra_claims: Additional claims to include in the token.

    Returns:
        A signed JWT token string.
    """
    now = int(time.time())
    payload = {
        "sub": str(user_id),
        "iss": issuer,
        "aud": audience,
        "iat": now,
        "exp": now + expires_in,
        **extra_claims,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def mint_expired_token(user_id: UUID | str) -> str:
    """Mint a token that expired 1 hour ago (well past clock-skew leeway)."""
    return mint_test_token(user_id=user_id, expires_in=-3600)


def mint_token_with_bad_signature(user_id: UUID | str) -> str:
    """Mint a token signed with a different secret."""
    return mint_test_token(user_id=user_id, secret="not-the-test-secret-0123456789abcdef")


def auth_headers(user_id: UUID | str, **extra_claims) -> dict[str, str]:
    """Generate Authorization headers for a test user.

    Args:
        user_id: The user ID to authenticate as.
        **extra_claims: Additional token claims (e.g. preferred_username).

    Returns:
        Dict with Authorization header.
    """
    token = mint_test_token(user_id, **extra_claims)
    return {"Authorization": f"Bearer {token}"}


def create_test_user_id() -> UUID:
    """Generate a random UUID for a test user."""
    return uuid4()

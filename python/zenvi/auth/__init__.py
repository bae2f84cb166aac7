"""Authentication and authorization module.

This module provides:
- Token verification (HS256 JWT verifier)
- Auth middleware for FastAPI
- Request state with viewer identity
- Access policy predicates (zenvi.auth.permissions)
"""

from zenvi.auth.middleware import AuthMiddleware, Viewer, get_viewer
from zenvi.auth.verifier import JwtTokenVerifier, TokenVerifier

__all__ = [
    "AuthMiddleware",
    "Viewer",
    "get_viewer",
    "JwtTokenVerifier",
    "TokenVerifier",
]

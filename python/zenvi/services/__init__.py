"""Business logic services.

This module contains service-layer functions that implement business logic.
Services are called by route handlers and orchestrate database operations;
authorization decisions come from zenvi.auth.permissions.
"""

from zenvi.services.bootstrap import ensure_user

__all__ = [
    "ensure_user",
]

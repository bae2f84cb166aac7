"""API route definitions.

Uses a factory pattern to avoid import-time settings loading.
This allows tests to import modules without requiring all environment
variables to be configured upfront.
"""

from fastapi import APIRouter

from zenvi.api.routes.conversations import router as conversations_router
from zenvi.api.routes.health import router as health_router
from zenvi.api.routes.me import router as me_router
from zenvi.api.routes.media import router as media_router
from zenvi.api.routes.posts import router as posts_router
from zenvi.api.routes.search import router as search_router
from zenvi.api.routes.users import router as users_router


def create_api_router() -> APIRouter:
    """Create and configure the API router.

    Returns:
        Configured APIRouter with all routes registered.
    """
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(me_router, tags=["user"])
    api_router.include_router(users_router, tags=["users"])
    api_router.include_router(posts_router, tags=["posts"])
    api_router.include_router(conversations_router, tags=["conversations"])
    api_router.include_router(media_router, tags=["media"])
    api_router.include_router(search_router, tags=["search"])
    return api_router


__all__ = ["create_api_router"]

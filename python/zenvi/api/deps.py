"""FastAPI dependencies for route handlers.

Common dependencies like database sessions and the media storage client.
"""

from fastapi import Request

from zenvi.db.session import get_db, get_session_factory
from zenvi.storage.client import StorageClientBase

__all__ = ["get_db", "get_session_factory", "get_storage"]


def get_storage(request: Request) -> StorageClientBase:
    """Get the shared storage client from app state.

    The client is created once by create_app(); tests pass a FakeStorageClient.
    """
    return request.app.state.storage

"""Storage module for uploaded media bytes."""

from zenvi.storage.client import (
    FakeStorageClient,
    LocalStorageClient,
    ObjectMetadata,
    StorageClientBase,
    StorageError,
    get_storage_client,
)

__all__ = [
    "StorageClientBase",
    "LocalStorageClient",
    "FakeStorageClient",
    "ObjectMetadata",
    "StorageError",
    "get_storage_client",
]

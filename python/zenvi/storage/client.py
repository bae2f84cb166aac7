"""Media storage client abstraction.

Provides a small interface for storing uploaded media bytes under a flat
object name (the Media.name column, e.g. "3f2a...c1.png"):
- put / get / head / delete by name
- LocalStorageClient writes to a directory on disk (MEDIA_STORAGE_PATH)
- FakeStorageClient keeps objects in memory for tests
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from zenvi.config import get_settings
from zenvi.logging import get_logger

logger = get_logger(__name__)

# Object names are generated by the upload path; never accept path separators
VALID_OBJECT_NAME = re.compile(r"^[A-Za-z0-9_-]+(\.[A-Za-z0-9]+)?$")


@dataclass(frozen=True)
class ObjectMetadata:
    """Storage object metadata."""

    content_type: str
    size_bytes: int


class StorageError(Exception):
    """Storage operation error."""

    def __init__(self, message: str, code: str = "E_STORAGE_ERROR"):
        super().__init__(message)
        self.message = message
        self.code = code


def _check_name(name: str) -> None:
    if not VALID_OBJECT_NAME.match(name):
        raise StorageError(f"Invalid object name: {name!r}", code="E_INVALID_OBJECT_NAME")


class StorageClientBase(ABC):
    """Abstract base class for storage client implementations."""

    @abstractmethod
    def put_object(self, name: str, content: bytes, content_type: str) -> None:
        """Store bytes under name, replacing any existing object.

        Raises:
            StorageError: If the write fails or the name is invalid.
        """
        ...

    @abstractmethod
    def get_object(self, name: str) -> bytes:
        """Return the stored bytes.

        Raises:
            StorageError(E_STORAGE_MISSING): If the object doesn't exist.
        """
        ...

    @abstractmethod
    def head_object(self, name: str) -> ObjectMetadata | None:
        """Return metadata if the object exists, None otherwise."""
        ...

    @abstractmethod
    def delete_object(self, name: str) -> None:
        """Delete an object. Best-effort: logs errors but doesn't raise."""
        ...


class LocalStorageClient(StorageClientBase):
    """Filesystem storage rooted at a single directory.

    Content types are not persisted; callers keep them on the Media row.
    """

    def __init__(self, root: str | Path):
        self._root = Path(root)

    def _path(self, name: str) -> Path:
        _check_name(name)
        return self._root / name

    def put_object(self, name: str, content: bytes, content_type: str) -> None:
        path = self._path(name)
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            raise StorageError(f"Failed to write object: {name}") from e

    def get_object(self, name: str) -> bytes:
        path = self._path(name)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise StorageError(f"Object not found: {name}", code="E_STORAGE_MISSING") from e
        except OSError as e:
            raise StorageError(f"Failed to read object: {name}") from e

    def head_object(self, name: str) -> ObjectMetadata | None:
        path = self._path(name)
        if not path.is_file():
            return None
        return ObjectMetadata(
            content_type="application/octet-stream",
            size_bytes=path.stat().st_size,
        )

    def delete_object(self, name: str) -> None:
        try:
            self._path(name).unlink(missing_ok=True)
        except (OSError, StorageError) as e:
            logger.warning("storage_delete_failed", object_name=name, error=str(e))


class FakeStorageClient(StorageClientBase):
    """Fake storage client for testing.

    Stores objects in memory and provides deterministic behavior for unit tests.
    """

    def __init__(self):
        self._objects: dict[str, tuple[bytes, str]] = {}  # name -> (content, content_type)

    def put_object(self, name: str, content: bytes, content_type: str) -> None:
        _check_name(name)
        self._objects[name] = (content, content_type)

    def get_object(self, name: str) -> bytes:
        if name not in self._objects:
            raise StorageError(f"Object not found: {name}", code="E_STORAGE_MISSING")
        return self._objects[name][0]

    def head_object(self, name: str) -> ObjectMetadata | None:
        if name not in self._objects:
            return None
        content, content_type = self._objects[name]
        return ObjectMetadata(content_type=content_type, size_bytes=len(content))

    def delete_object(self, name: str) -> None:
        self._objects.pop(name, None)

    # Test helper methods

    def names(self) -> list[str]:
        """Names of all stored objects (test helper)."""
        return sorted(self._objects)

    def clear(self) -> None:
        """Clear all stored objects (test helper)."""
        self._objects.clear()


def get_storage_client() -> StorageClientBase:
    """Get the configured storage client (filesystem under MEDIA_STORAGE_PATH)."""
    return LocalStorageClient(get_settings().media_storage_path)

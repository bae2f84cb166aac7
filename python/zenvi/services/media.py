"""Media service layer.

Uploads are the only path that creates Media rows. Posts and messages link
pre-existing media by name; a media row belongs to at most one post or
message at a time.
"""

from collections.abc import Sequence
from pathlib import PurePath
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from zenvi.auth.permissions import can_modify
from zenvi.config import get_settings
from zenvi.db import store
from zenvi.db.models import Media, Message, Post
from zenvi.db.session import transaction
from zenvi.errors import (
    ApiError,
    ApiErrorCode,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
)
from zenvi.logging import get_logger
from zenvi.schemas.media import MediaOut
from zenvi.services.users import get_viewer_user_or_401
from zenvi.storage.client import StorageClientBase, StorageError

logger = get_logger(__name__)

# Accepted upload types, keyed by file extension
EXTENSION_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
}


def detect_media_type(filename: str | None, content_type: str | None) -> tuple[str, str]:
    """Return (extension, content type) for an upload.

    The filename extension wins; the declared content type is the fallback.

    Raises:
        InvalidRequestError(E_INVALID_FILE_TYPE): Neither is an accepted type.
    """
    ext = PurePath(filename or "").suffix.lower()
    if ext in EXTENSION_CONTENT_TYPES:
        return ext, EXTENSION_CONTENT_TYPES[ext]

    declared = (content_type or "").split(";", 1)[0].strip().lower()
    for known_ext, known_type in EXTENSION_CONTENT_TYPES.items():
        if known_type == declared:
            return known_ext, known_type

    raise InvalidRequestError(ApiErrorCode.E_INVALID_FILE_TYPE, "Unsupported file type")


def media_to_out(media: Media) -> MediaOut:
    return MediaOut.model_validate(media)


# =============================================================================
# Linking
# =============================================================================


def resolve_media_by_names(db: Session, viewer_id: UUID, names: Sequence[str]) -> list[Media]:
    """Resolve the viewer's pre-uploaded media rows by name, in request order.

    Duplicate names collapse to one entry.

    Raises:
        NotFoundError(E_MEDIA_NOT_FOUND): If any name is unknown.
        ForbiddenError: A row was uploaded by someone else.
    """
    unique_names = list(dict.fromkeys(names))
    found = store.get_media_by_names(db, unique_names)
    if len(found) != len(unique_names):
        found_names = {media.name for media in found}
        missing = next(name for name in unique_names if name not in found_names)
        raise NotFoundError(ApiErrorCode.E_MEDIA_NOT_FOUND, f"Media not found: {missing}")
    for media in found:
        if not can_modify(viewer_id, media.uploader_user_id):
            raise ForbiddenError(
                ApiErrorCode.E_FORBIDDEN, f"Media belongs to another user: {media.name}"
            )
    return found


def attach_media(target: Post | Message, media: Sequence[Media]) -> None:
    """Replace target's media set with the given rows, in order.

    Rows dropped from the set are unlinked, not deleted.

    Raises:
        InvalidRequestError(E_MEDIA_IN_USE): A row is linked to another post or message.
    """
    post_id = target.id if isinstance(target, Post) else None
    message_id = target.id if isinstance(target, Message) else None
    for item in media:
        linked_elsewhere = (item.post_id is not None and item.post_id != post_id) or (
            item.message_id is not None and item.message_id != message_id
        )
        if linked_elsewhere:
            raise InvalidRequestError(
                ApiErrorCode.E_MEDIA_IN_USE, f"Media already attached elsewhere: {item.name}"
            )
    target.media = list(media)
    target.media.reorder()


# =============================================================================
# Service Functions
# =============================================================================


def upload_media(
    db: Session,
    storage: StorageClientBase,
    viewer_id: UUID,
    filename: str | None,
    content_type: str | None,
    data: bytes,
) -> MediaOut:
    """Store an uploaded file and create its Media row.

    Raises:
        InvalidRequestError(E_INVALID_REQUEST): Empty file.
        InvalidRequestError(E_FILE_TOO_LARGE): Larger than MAX_MEDIA_BYTES.
        InvalidRequestError(E_INVALID_FILE_TYPE): Unsupported type.
        ApiError(E_STORAGE_ERROR): The bytes could not be written.
    """
    get_viewer_user_or_401(db, viewer_id)

    max_bytes = get_settings().max_media_bytes
    if not data:
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, "No file uploaded")
    if len(data) > max_bytes:
        raise InvalidRequestError(
            ApiErrorCode.E_FILE_TOO_LARGE, f"File exceeds the {max_bytes} byte limit"
        )

    ext, mime_type = detect_media_type(filename, content_type)
    name = f"{uuid4().hex}{ext}"

    try:
        storage.put_object(name, data, mime_type)
    except StorageError as e:
        logger.error("media_store_failed", object_name=name, error=e.message)
        raise ApiError(ApiErrorCode.E_STORAGE_ERROR, "Failed to store file") from e

    try:
        with transaction(db):
            media = store.add_media(
                db,
                Media(
                    name=name,
                    mime_type=mime_type,
                    size_bytes=len(data),
                    uploader_user_id=viewer_id,
                ),
            )
    except Exception:
        storage.delete_object(name)
        raise

    logger.info("media_uploaded", media_name=name, mime_type=mime_type, size_bytes=len(data))
    return media_to_out(media)


def get_media(db: Session, name: str) -> MediaOut:
    media = store.get_media_by_name(db, name)
    if media is None:
        raise NotFoundError(ApiErrorCode.E_MEDIA_NOT_FOUND, "Media not found")
    return media_to_out(media)


def get_media_file(db: Session, storage: StorageClientBase, name: str) -> tuple[bytes, str]:
    """Return (bytes, content type) for a media name.

    Raises:
        NotFoundError(E_MEDIA_NOT_FOUND): Unknown name or missing bytes.
    """
    media = store.get_media_by_name(db, name)
    if media is None:
        raise NotFoundError(ApiErrorCode.E_MEDIA_NOT_FOUND, "Media not found")
    try:
        data = storage.get_object(media.name)
    except StorageError as e:
        logger.warning("media_bytes_missing", media_name=name, error=e.message)
        raise NotFoundError(ApiErrorCode.E_MEDIA_NOT_FOUND, "Media not found") from e
    return data, media.mime_type


def delete_media(db: Session, storage: StorageClientBase, viewer_id: UUID, name: str) -> None:
    """Delete a media row and its bytes.

    Media attached to a post or message can't be deleted on its own; edit or
    delete the owner instead. Profile pictures referencing it lose the
    reference.

    Raises:
        NotFoundError(E_MEDIA_NOT_FOUND): Unknown name.
        ForbiddenError: Viewer is not the uploader.
        InvalidRequestError(E_MEDIA_IN_USE): Attached to a post or message.
    """
    media = store.get_media_by_name(db, name)
    if media is None:
        raise NotFoundError(ApiErrorCode.E_MEDIA_NOT_FOUND, "Media not found")
    if not can_modify(viewer_id, media.uploader_user_id):
        raise ForbiddenError(ApiErrorCode.E_FORBIDDEN, "Only the uploader can delete media")
    if media.post_id is not None or media.message_id is not None:
        raise InvalidRequestError(
            ApiErrorCode.E_MEDIA_IN_USE, "Media is attached to a post or message"
        )

    with transaction(db):
        store.delete_media(db, media)

    storage.delete_object(name)
    logger.info("media_deleted", media_name=name)

"""User and profile service layer.

Owns the User -> schema converters shared by the other services.
"""

import re
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from zenvi.auth.permissions import can_modify
from zenvi.db import store
from zenvi.db.models import Media, User, utcnow
from zenvi.db.session import transaction
from zenvi.errors import (
    ApiErrorCode,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
    UnauthorizedError,
)
from zenvi.logging import get_logger
from zenvi.schemas.users import UpdateProfileRequest, UserOut, UserSummaryOut

logger = get_logger(__name__)

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# =============================================================================
# Helpers
# =============================================================================


def get_viewer_user_or_401(db: Session, viewer_id: UUID) -> User:
    """Resolve the acting user.

    Raises:
        UnauthorizedError(E_UNAUTHENTICATED): The token subject has no users row
            (e.g. a stale session for a removed account).
    """
    user = store.get_user(db, viewer_id)
    if user is None:
        raise UnauthorizedError(ApiErrorCode.E_UNAUTHENTICATED, "User could not be resolved")
    return user


def get_user_or_404(db: Session, user_id: UUID) -> User:
    user = store.get_user(db, user_id)
    if user is None:
        raise NotFoundError(ApiErrorCode.E_USER_NOT_FOUND, "User not found")
    return user


def _media_name(media: Media | None) -> str | None:
    return media.name if media is not None else None


def user_to_summary(user: User) -> UserSummaryOut:
    """Convert User ORM model to UserSummaryOut schema."""
    return UserSummaryOut(
        id=user.id,
        username=user.username,
        name=user.name,
        surname=user.surname,
        profile_picture=_media_name(user.profile_picture),
    )


def user_to_out(user: User) -> UserOut:
    """Convert User ORM model to UserOut schema."""
    return UserOut(
        id=user.id,
        username=user.username,
        name=user.name,
        surname=user.surname,
        bio=user.bio,
        date_of_birth=user.date_of_birth,
        banned=user.banned,
        profile_picture=_media_name(user.profile_picture),
        banner_picture=_media_name(user.banner_picture),
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def parse_date_of_birth(value: str) -> date:
    """Parse an ISO YYYY-MM-DD date that is not in the future.

    Raises:
        InvalidRequestError(E_INVALID_DATE): Malformed or future date.
    """
    if not ISO_DATE_PATTERN.match(value):
        raise InvalidRequestError(ApiErrorCode.E_INVALID_DATE, "Date must be YYYY-MM-DD")
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        raise InvalidRequestError(ApiErrorCode.E_INVALID_DATE, "Invalid date") from None
    if parsed > utcnow().date():
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_DATE, "Date of birth cannot be in the future"
        )
    return parsed


def _resolve_picture(db: Session, viewer_id: UUID, name: str) -> Media:
    media = store.get_media_by_name(db, name)
    if media is None:
        raise NotFoundError(ApiErrorCode.E_MEDIA_NOT_FOUND, f"Media not found: {name}")
    if not can_modify(viewer_id, media.uploader_user_id):
        raise ForbiddenError(ApiErrorCode.E_FORBIDDEN, "Media belongs to another user")
    return media


def _clean(value: str) -> str | None:
    value = value.strip()
    return value or None


# =============================================================================
# Service Functions
# =============================================================================


def get_user(db: Session, user_id: UUID) -> UserOut:
    """Get a user's public profile.

    Raises:
        NotFoundError(E_USER_NOT_FOUND): If the user doesn't exist.
    """
    return user_to_out(get_user_or_404(db, user_id))


def get_user_by_username(db: Session, username: str) -> UserOut:
    user = store.get_user_by_username(db, username)
    if user is None:
        raise NotFoundError(ApiErrorCode.E_USER_NOT_FOUND, "User not found")
    return user_to_out(user)


def get_profile(db: Session, viewer_id: UUID) -> UserOut:
    """Get the viewer's own profile."""
    return user_to_out(get_viewer_user_or_401(db, viewer_id))


def update_profile(db: Session, viewer_id: UUID, request: UpdateProfileRequest) -> UserOut:
    """Update the viewer's profile.

    Fields left as None are unchanged; an empty string clears the field.
    Picture names must refer to media the viewer uploaded.

    Raises:
        UnauthorizedError: Viewer has no users row.
        InvalidRequestError(E_INVALID_DATE): Bad date_of_birth.
        NotFoundError(E_MEDIA_NOT_FOUND): Unknown picture name.
        ForbiddenError: Picture uploaded by someone else.
    """
    user = get_viewer_user_or_401(db, viewer_id)

    with transaction(db):
        if request.name is not None:
            user.name = _clean(request.name)
        if request.surname is not None:
            user.surname = _clean(request.surname)
        if request.bio is not None:
            user.bio = _clean(request.bio)
        if request.date_of_birth is not None:
            raw = request.date_of_birth.strip()
            user.date_of_birth = parse_date_of_birth(raw) if raw else None
        if request.profile_picture_name is not None:
            name = request.profile_picture_name.strip()
            user.profile_picture = _resolve_picture(db, viewer_id, name) if name else None
        if request.banner_picture_name is not None:
            name = request.banner_picture_name.strip()
            user.banner_picture = _resolve_picture(db, viewer_id, name) if name else None
        user.updated_at = utcnow()
        db.flush()

    logger.info("profile_updated", user_id=str(viewer_id))
    return user_to_out(user)

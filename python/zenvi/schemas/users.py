"""User, profile and follow Pydantic schemas."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Response Schemas
# =============================================================================


class UserSummaryOut(BaseModel):
    """Compact user reference embedded in posts, follows and conversations."""

    id: UUID
    username: str
    name: str | None = None
    surname: str | None = None
    profile_picture: str | None = None  # media name

    model_config = ConfigDict(from_attributes=True)


class UserOut(BaseModel):
    """Full profile response schema."""

    id: UUID
    username: str
    name: str | None = None
    surname: str | None = None
    bio: str | None = None
    date_of_birth: date | None = None
    banned: bool = False
    profile_picture: str | None = None
    banner_picture: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class FollowOut(BaseModel):
    """One side of a follow edge: the other user and when the edge was created."""

    user: UserSummaryOut
    followed_at: datetime


class MutualFollowOut(BaseModel):
    """Whether the viewer and another user follow each other."""

    user_id: UUID
    mutual: bool


# =============================================================================
# Request Schemas
# =============================================================================


class UpdateProfileRequest(BaseModel):
    """Request body for updating the viewer's profile.

    Omitted fields are left unchanged. date_of_birth is an ISO date string
    (YYYY-MM-DD) validated by the service so the error code is E_INVALID_DATE.
    """

    name: str | None = Field(default=None, max_length=50)
    surname: str | None = Field(default=None, max_length=50)
    bio: str | None = Field(default=None, max_length=500)
    date_of_birth: str | None = None
    profile_picture_name: str | None = Field(default=None, max_length=50)
    banner_picture_name: str | None = Field(default=None, max_length=50)

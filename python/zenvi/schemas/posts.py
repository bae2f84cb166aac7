"""Post and like Pydantic schemas."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from zenvi.db.models import MAX_CONTENT_LENGTH, MAX_MEDIA_NAME_LENGTH
from zenvi.schemas.media import MediaOut
from zenvi.schemas.users import UserSummaryOut

MediaName = Annotated[str, StringConstraints(min_length=1, max_length=MAX_MEDIA_NAME_LENGTH)]


# =============================================================================
# Response Schemas
# =============================================================================


class PostOut(BaseModel):
    """Response schema for a post.

    like_count is the denormalized counter; it always equals the number of
    Like rows for the post once the mutating transaction has committed.
    """

    id: UUID
    owner: UserSummaryOut
    content: str | None = None
    media: list[MediaOut] = []
    like_count: int
    replied_to_id: UUID | None = None
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class LikeStateOut(BaseModel):
    """Like state of a post for the viewer after a like mutation."""

    post_id: UUID
    liked: bool
    like_count: int


class LikedPostsOut(BaseModel):
    """IDs of every post the viewer has liked."""

    post_ids: list[UUID]


# =============================================================================
# Request Schemas
# =============================================================================


class CreatePostRequest(BaseModel):
    """Request body for creating a post or a reply.

    At least one of content / media_names must be non-empty; that rule is
    enforced by the service (E_CONTENT_REQUIRED).
    """

    content: str | None = Field(default=None, max_length=MAX_CONTENT_LENGTH)
    media_names: list[MediaName] = Field(default_factory=list)


class UpdatePostRequest(BaseModel):
    """Request body for updating a post.

    Non-blank content overwrites; a non-empty media_names list replaces the
    media set wholesale.
    """

    content: str | None = Field(default=None, max_length=MAX_CONTENT_LENGTH)
    media_names: list[MediaName] = Field(default_factory=list)

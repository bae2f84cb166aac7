"""Media Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class MediaOut(BaseModel):
    """Response schema for an uploaded media file.

    Media is addressed by its generated name (e.g. "<uuid>.png"), which is
    what posts and messages reference via media_names.
    """

    id: UUID
    name: str
    mime_type: str
    size_bytes: int
    uploader_user_id: UUID | None = None
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)

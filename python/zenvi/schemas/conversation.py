"""Conversation and Message Pydantic schemas.

Conversations always have exactly two participants; both may read and
modify the conversation and every message in it.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from zenvi.db.models import MAX_CONTENT_LENGTH
from zenvi.schemas.media import MediaOut
from zenvi.schemas.posts import MediaName
from zenvi.schemas.users import UserSummaryOut

# =============================================================================
# Response Schemas
# =============================================================================


class ConversationOut(BaseModel):
    """Response schema for a conversation."""

    id: UUID
    user1: UserSummaryOut
    user2: UserSummaryOut
    description: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MessageOut(BaseModel):
    """Response schema for a message."""

    id: UUID
    conversation_id: UUID
    sender_user_id: UUID
    content: str | None = None
    media: list[MediaOut] = []
    replied_to_id: UUID | None = None
    sent_at: datetime
    read_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Request Schemas
# =============================================================================


class CreateConversationRequest(BaseModel):
    """Request body for starting a conversation with another user."""

    target_username: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)


class UpdateConversationRequest(BaseModel):
    """Request body for changing a conversation's description."""

    description: str | None = Field(default=None, max_length=500)


class SendMessageRequest(BaseModel):
    """Request body for sending (or replying with) a message."""

    content: str | None = Field(default=None, max_length=MAX_CONTENT_LENGTH)
    media_names: list[MediaName] = Field(default_factory=list)


class UpdateMessageRequest(BaseModel):
    """Request body for editing a message."""

    content: str | None = Field(default=None, max_length=MAX_CONTENT_LENGTH)
    media_names: list[MediaName] = Field(default_factory=list)

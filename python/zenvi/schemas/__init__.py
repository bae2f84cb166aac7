"""Pydantic schemas for request/response models.

All schemas are re-exported here for convenient imports.
"""

from zenvi.schemas.conversation import (
    ConversationOut,
    CreateConversationRequest,
    MessageOut,
    SendMessageRequest,
    UpdateConversationRequest,
    UpdateMessageRequest,
)
from zenvi.schemas.media import MediaOut
from zenvi.schemas.posts import (
    CreatePostRequest,
    LikedPostsOut,
    LikeStateOut,
    PostOut,
    UpdatePostRequest,
)
from zenvi.schemas.search import SearchOut
from zenvi.schemas.users import (
    FollowOut,
    MutualFollowOut,
    UpdateProfileRequest,
    UserOut,
    UserSummaryOut,
)

__all__ = [
    # Conversations
    "ConversationOut",
    "CreateConversationRequest",
    "MessageOut",
    "SendMessageRequest",
    "UpdateConversationRequest",
    "UpdateMessageRequest",
    # Media
    "MediaOut",
    # Posts
    "CreatePostRequest",
    "LikedPostsOut",
    "LikeStateOut",
    "PostOut",
    "UpdatePostRequest",
    # Search
    "SearchOut",
    # Users
    "FollowOut",
    "MutualFollowOut",
    "UpdateProfileRequest",
    "UserOut",
    "UserSummaryOut",
]

"""Conversation and Message service layer.

A conversation has exactly two participants. Both participants may read,
edit and delete the conversation and every message in it; anyone else gets
E_FORBIDDEN. Missing conversations and messages are E_*_NOT_FOUND.

Service functions correspond 1:1 with route handlers.
"""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from zenvi.auth.permissions import can_view_conversation
from zenvi.db import store
from zenvi.db.models import Conversation, Message, utcnow
from zenvi.db.session import transaction
from zenvi.errors import ApiErrorCode, ForbiddenError, InvalidRequestError, NotFoundError
from zenvi.logging import get_logger
from zenvi.schemas.conversation import ConversationOut, MessageOut
from zenvi.services.feed import clean_content, require_content_or_media
from zenvi.services.media import attach_media, media_to_out, resolve_media_by_names
from zenvi.services.users import get_viewer_user_or_401, user_to_summary

logger = get_logger(__name__)


# =============================================================================
# Helpers
# =============================================================================


def _clean_description(description: str | None) -> str | None:
    if description is None or not description.strip():
        return None
    return description.strip()


def get_conversation_for_participant(
    db: Session, viewer_id: UUID, conversation_id: UUID
) -> Conversation:
    """Load a conversation the viewer participates in.

    Raises:
        NotFoundError(E_CONVERSATION_NOT_FOUND): Conversation doesn't exist.
        ForbiddenError: Viewer is not a participant.
    """
    conversation = store.get_conversation(db, conversation_id)
    if conversation is None:
        raise NotFoundError(ApiErrorCode.E_CONVERSATION_NOT_FOUND, "Conversation not found")
    if not can_view_conversation(viewer_id, conversation):
        raise ForbiddenError(ApiErrorCode.E_FORBIDDEN, "Not a participant in this conversation")
    return conversation


def get_message_for_participant(db: Session, viewer_id: UUID, message_id: UUID) -> Message:
    """Load a message from a conversation the viewer participates in.

    Raises:
        NotFoundError(E_MESSAGE_NOT_FOUND): Message doesn't exist.
        ForbiddenError: Viewer is not a participant.
    """
    message = store.get_message(db, message_id)
    if message is None:
        raise NotFoundError(ApiErrorCode.E_MESSAGE_NOT_FOUND, "Message not found")
    if not can_view_conversation(viewer_id, message.conversation):
        raise ForbiddenError(ApiErrorCode.E_FORBIDDEN, "Not a participant in this conversation")
    return message


def conversation_to_out(conversation: Conversation) -> ConversationOut:
    """Convert Conversation ORM model to ConversationOut schema."""
    return ConversationOut(
        id=conversation.id,
        user1=user_to_summary(conversation.user1),
        user2=user_to_summary(conversation.user2),
        description=conversation.description,
        created_at=conversation.created_at,
    )


def message_to_out(message: Message) -> MessageOut:
    """Convert Message ORM model to MessageOut schema."""
    return MessageOut(
        id=message.id,
        conversation_id=message.conversation_id,
        sender_user_id=message.sender_user_id,
        content=message.content,
        media=[media_to_out(media) for media in message.media],
        replied_to_id=message.replied_to_id,
        sent_at=message.sent_at,
        read_at=message.read_at,
        updated_at=message.updated_at,
    )


# =============================================================================
# Conversations
# =============================================================================


def create_conversation(
    db: Session, viewer_id: UUID, target_username: str, description: str | None = None
) -> ConversationOut:
    """Start a conversation between the viewer and another user.

    Raises:
        UnauthorizedError: Viewer has no users row.
        NotFoundError(E_USER_NOT_FOUND): No user with target_username.
        InvalidRequestError(E_SELF_CONVERSATION): Target is the viewer.
    """
    viewer = get_viewer_user_or_401(db, viewer_id)
    target = store.get_user_by_username(db, target_username.strip())
    if target is None:
        raise NotFoundError(ApiErrorCode.E_USER_NOT_FOUND, "User not found")
    if target.id == viewer.id:
        raise InvalidRequestError(
            ApiErrorCode.E_SELF_CONVERSATION, "Cannot start a conversation with yourself"
        )

    with transaction(db):
        conversation = store.add_conversation(
            db,
            Conversation(user1=viewer, user2=target, description=_clean_description(description)),
        )

    logger.info("conversation_created", conversation_id=str(conversation.id))
    return conversation_to_out(conversation)


def get_conversation(db: Session, viewer_id: UUID, conversation_id: UUID) -> ConversationOut:
    return conversation_to_out(get_conversation_for_participant(db, viewer_id, conversation_id))


def list_conversations(db: Session, viewer_id: UUID) -> list[ConversationOut]:
    """Conversations the viewer participates in, newest first. May be empty."""
    return [
        conversation_to_out(conversation)
        for conversation in store.list_conversations_for_user(db, viewer_id)
    ]


def update_conversation_description(
    db: Session, viewer_id: UUID, conversation_id: UUID, description: str | None
) -> ConversationOut:
    """Overwrite the description; blank clears it."""
    conversation = get_conversation_for_participant(db, viewer_id, conversation_id)

    with transaction(db):
        conversation.description = _clean_description(description)
        db.flush()

    logger.info("conversation_updated", conversation_id=str(conversation_id))
    return conversation_to_out(conversation)


def delete_conversation(db: Session, viewer_id: UUID, conversation_id: UUID) -> None:
    """Delete a conversation with all its messages and their media."""
    conversation = get_conversation_for_participant(db, viewer_id, conversation_id)

    with transaction(db):
        store.delete_conversation(db, conversation)

    logger.info("conversation_deleted", conversation_id=str(conversation_id))


# =============================================================================
# Messages
# =============================================================================


def send_message(
    db: Session,
    viewer_id: UUID,
    conversation_id: UUID,
    content: str | None,
    media_names: Sequence[str] = (),
    replied_to_id: UUID | None = None,
) -> MessageOut:
    """Send a message into a conversation.

    Raises:
        NotFoundError(E_CONVERSATION_NOT_FOUND): Conversation doesn't exist.
        ForbiddenError: Viewer is not a participant.
        InvalidRequestError(E_CONTENT_REQUIRED): No content and no media.
        NotFoundError(E_MEDIA_NOT_FOUND): A media name is unknown.
        ForbiddenError: A media row was uploaded by someone else.
    """
    conversation = get_conversation_for_participant(db, viewer_id, conversation_id)
    content = clean_content(content)
    require_content_or_media(content, media_names)

    with transaction(db):
        message = Message(
            conversation_id=conversation.id,
            sender_user_id=viewer_id,
            content=content,
            replied_to_id=replied_to_id,
            sent_at=utcnow(),
        )
        attach_media(message, resolve_media_by_names(db, viewer_id, media_names))
        store.add_message(db, message)

    logger.info(
        "message_sent",
        conversation_id=str(conversation.id),
        message_id=str(message.id),
        media_count=len(message.media),
    )
    return message_to_out(message)


def list_messages(db: Session, viewer_id: UUID, conversation_id: UUID) -> list[MessageOut]:
    """Messages in a conversation, oldest first."""
    get_conversation_for_participant(db, viewer_id, conversation_id)
    return [message_to_out(message) for message in store.list_messages(db, conversation_id)]


def get_message(db: Session, viewer_id: UUID, message_id: UUID) -> MessageOut:
    return message_to_out(get_message_for_participant(db, viewer_id, message_id))


def update_message(
    db: Session,
    viewer_id: UUID,
    message_id: UUID,
    content: str | None,
    media_names: Sequence[str] = (),
) -> MessageOut:
    """Edit a message; same overwrite rules as posts."""
    message = get_message_for_participant(db, viewer_id, message_id)
    content = clean_content(content)
    require_content_or_media(content, media_names)

    with transaction(db):
        if content is not None:
            message.content = content
        if media_names:
            attach_media(message, resolve_media_by_names(db, viewer_id, media_names))
        message.updated_at = utcnow()
        db.flush()

    logger.info("message_updated", message_id=str(message_id))
    return message_to_out(message)


def delete_message(db: Session, viewer_id: UUID, message_id: UUID) -> None:
    """Delete a message and its media; replies survive unlinked."""
    message = get_message_for_participant(db, viewer_id, message_id)

    with transaction(db):
        store.delete_message(db, message)

    logger.info("message_deleted", message_id=str(message_id))


def reply_to_message(
    db: Session,
    viewer_id: UUID,
    replied_to_id: UUID,
    content: str | None,
    media_names: Sequence[str] = (),
) -> MessageOut:
    """Reply to a message; the reply goes into the parent's conversation."""
    parent = get_message_for_participant(db, viewer_id, replied_to_id)
    return send_message(
        db,
        viewer_id,
        parent.conversation_id,
        content,
        media_names,
        replied_to_id=parent.id,
    )

"""Test data factories.

Centralizes helper functions that create database rows for tests.
Each factory knows the full schema requirements for its table,
so individual tests don't need to track NOT NULL constraints.

Every factory commits and returns the new row's primary key.
count_test_likes reads the Like rows that like_count is checked against.
"""

from uuid import UUID, uuid4

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from zenvi.db.models import Conversation, Follow, Like, Media, Message, Post, User

# =============================================================================
# Users
# =============================================================================


def create_test_user(
    session: Session,
    username: str | None = None,
    user_id: UUID | None = None,
    **fields,
) -> UUID:
    """Create a user; username defaults to a unique generated value."""
    user_id = user_id or uuid4()
    session.add(User(id=user_id, username=username or f"user_{user_id.hex[:10]}", **fields))
    session.commit()
    return user_id


# =============================================================================
# Media
# =============================================================================


def create_test_media(
    session: Session,
    uploader_user_id: UUID | None,
    name: str | None = None,
    mime_type: str = "image/png",
    size_bytes: int = 128,
) -> str:
    """Create an unattached media row. Returns its name."""
    name = name or f"{uuid4().hex}.png"
    session.add(
        Media(
            name=name,
            mime_type=mime_type,
            size_bytes=size_bytes,
            uploader_user_id=uploader_user_id,
        )
    )
    session.commit()
    return name


# =============================================================================
# Posts & Likes
# =============================================================================


def create_test_post(
    session: Session,
    owner_user_id: UUID,
    content: str | None = "hello",
    replied_to_id: UUID | None = None,
    like_count: int = 0,
) -> UUID:
    post_id = uuid4()
    session.add(
        Post(
            id=post_id,
            owner_user_id=owner_user_id,
            content=content,
            replied_to_id=replied_to_id,
            like_count=like_count,
        )
    )
    session.commit()
    return post_id


def create_test_like(
    session: Session, post_id: UUID, user_id: UUID, bump_count: bool = True
) -> None:
    """Insert a Like row; bump_count=False leaves the counter drifted."""
    session.add(Like(post_id=post_id, user_id=user_id))
    if bump_count:
        session.execute(
            update(Post).where(Post.id == post_id).values(like_count=Post.like_count + 1)
        )
    session.commit()


def count_test_likes(session: Session, post_id: UUID) -> int:
    """Number of Like rows for a post (the ground truth for like_count)."""
    return session.scalar(select(func.count()).select_from(Like).where(Like.post_id == post_id))


# =============================================================================
# Follows
# =============================================================================


def create_test_follow(session: Session, source_user_id: UUID, target_user_id: UUID) -> None:
    session.add(Follow(source_user_id=source_user_id, target_user_id=target_user_id))
    session.commit()


# =============================================================================
# Conversations & Messages
# =============================================================================


def create_test_conversation(
    session: Session,
    user1_id: UUID,
    user2_id: UUID,
    description: str | None = None,
) -> UUID:
    conversation_id = uuid4()
    session.add(
        Conversation(
            id=conversation_id,
            user1_id=user1_id,
            user2_id=user2_id,
            description=description,
        )
    )
    session.commit()
    return conversation_id


def create_test_message(
    session: Session,
    conversation_id: UUID,
    sender_user_id: UUID,
    content: str | None = "hi",
    replied_to_id: UUID | None = None,
) -> UUID:
    message_id = uuid4()
    session.add(
        Message(
            id=message_id,
            conversation_id=conversation_id,
            sender_user_id=sender_user_id,
            content=content,
            replied_to_id=replied_to_id,
        )
    )
    session.commit()
    return message_id

"""SQLAlchemy ORM models for Zenvi.

Defines all database tables using SQLAlchemy 2.x declarative patterns.
Column types are backend-neutral (Uuid, DateTime(timezone=True)) so the same
models run on PostgreSQL in production and SQLite in tests.

Cascade contract (relied on by the service layer and covered by tests):
- Post -> Media, Like: deleted with the post
- Post -> replies: survive, replied_to_id set to NULL
- Conversation -> Message -> Media: deleted with the conversation
- Message -> replies: survive, replied_to_id set to NULL
- Media deleted -> user profile/banner picture reference set to NULL
"""

from datetime import UTC, date, datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# Maximum post/message body length; mirrored by request schemas
MAX_CONTENT_LENGTH = 5000
MAX_MEDIA_NAME_LENGTH = 50


def utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def _created_at() -> Mapped[datetime]:
    return mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )


# =============================================================================
# Models
# =============================================================================


class User(Base):
    """User account model.

    The user ID matches the identity provider's subject claim (sub).
    Rows are created on first authenticated request and never hard-deleted.
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(50))
    surname: Mapped[str | None] = mapped_column(String(50))
    bio: Mapped[str | None] = mapped_column(String(500))
    date_of_birth: Mapped[date | None] = mapped_column(Date)
    banned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    profile_picture_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey(
            "media.id", ondelete="SET NULL", use_alter=True, name="fk_users_profile_picture"
        ),
    )
    banner_picture_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("media.id", ondelete="SET NULL", use_alter=True, name="fk_users_banner_picture"),
    )
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Relationships
    profile_picture: Mapped["Media | None"] = relationship(
        "Media", foreign_keys=[profile_picture_id], post_update=True
    )
    banner_picture: Mapped["Media | None"] = relationship(
        "Media", foreign_keys=[banner_picture_id], post_update=True
    )
    posts: Mapped[list["Post"]] = relationship("Post", back_populates="owner")


class Media(Base):
    """Uploaded media file reference.

    A media row is created by the upload path and later linked to at most
    one post or message. Linking never creates media rows.
    """

    __tablename__ = "media"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(MAX_MEDIA_NAME_LENGTH), unique=True, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    uploader_user_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL")
    )
    post_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("posts.id", ondelete="CASCADE"), index=True
    )
    message_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("messages.id", ondelete="CASCADE"), index=True
    )
    position: Mapped[int | None] = mapped_column(Integer)
    uploaded_at: Mapped[datetime] = _created_at()

    __table_args__ = (
        CheckConstraint(
            "post_id IS NULL OR message_id IS NULL",
            name="ck_media_single_owner",
        ),
    )

    # Relationships
    post: Mapped["Post | None"] = relationship("Post", back_populates="media")
    message: Mapped["Message | None"] = relationship("Message", back_populates="media")


class Post(Base):
    """Post model - user content with optional media and reply threading."""

    __tablename__ = "posts"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    owner_user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str | None] = mapped_column(Text)
    like_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    replied_to_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("posts.id", ondelete="SET NULL"), index=True
    )
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        CheckConstraint("like_count >= 0", name="ck_posts_like_count_non_negative"),
        CheckConstraint(
            f"content IS NULL OR length(content) <= {MAX_CONTENT_LENGTH}",
            name="ck_posts_content_length",
        ),
        Index("ix_posts_owner_created", "owner_user_id", "created_at"),
    )

    # Relationships
    owner: Mapped["User"] = relationship("User", back_populates="posts", lazy="joined")
    media: Mapped[list["Media"]] = relationship(
        "Media",
        back_populates="post",
        cascade="all",
        order_by="Media.position",
        collection_class=ordering_list("position"),
        lazy="selectin",
    )
    likes: Mapped[list["Like"]] = relationship(
        "Like", back_populates="post", cascade="all, delete-orphan"
    )
    replied_to: Mapped["Post | None"] = relationship(
        "Post", remote_side=[id], back_populates="replies"
    )
    replies: Mapped[list["Post"]] = relationship("Post", back_populates="replied_to")


class Like(Base):
    """Like model - at most one per (post, user)."""

    __tablename__ = "likes"

    post_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = _created_at()

    __table_args__ = (Index("ix_likes_user", "user_id"),)

    # Relationships
    post: Mapped["Post"] = relationship("Post", back_populates="likes")


class Follow(Base):
    """Follow model - directed edge source -> target."""

    __tablename__ = "follows"

    source_user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    target_user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    followed_at: Mapped[datetime] = _created_at()

    __table_args__ = (
        CheckConstraint("source_user_id <> target_user_id", name="ck_follows_no_self_follow"),
        Index("ix_follows_target", "target_user_id"),
    )

    # Relationships
    source: Mapped["User"] = relationship("User", foreign_keys=[source_user_id], lazy="joined")
    target: Mapped["User"] = relationship("User", foreign_keys=[target_user_id], lazy="joined")


class Conversation(Base):
    """Two-party conversation model."""

    __tablename__ = "conversations"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user1_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user2_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description: Mapped[str | None] = mapped_column(String(500))
    created_at: Mapped[datetime] = _created_at()

    __table_args__ = (
        CheckConstraint("user1_id <> user2_id", name="ck_conversations_distinct_participants"),
    )

    # Relationships
    user1: Mapped["User"] = relationship("User", foreign_keys=[user1_id], lazy="joined")
    user2: Mapped["User"] = relationship("User", foreign_keys=[user2_id], lazy="joined")
    messages: Mapped[list["Message"]] = relationship(
        "Message",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="Message.sent_at",
    )


class Message(Base):
    """Direct message within a conversation."""

    __tablename__ = "messages"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    conversation_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False
    )
    sender_user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str | None] = mapped_column(Text)
    replied_to_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("messages.id", ondelete="SET NULL")
    )
    sent_at: Mapped[datetime] = _created_at()
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        CheckConstraint(
            f"content IS NULL OR length(content) <= {MAX_CONTENT_LENGTH}",
            name="ck_messages_content_length",
        ),
        Index("ix_messages_conversation_sent", "conversation_id", "sent_at"),
    )

    # Relationships
    conversation: Mapped["Conversation"] = relationship("Conversation", back_populates="messages")
    media: Mapped[list["Media"]] = relationship(
        "Media",
        back_populates="message",
        cascade="all",
        order_by="Media.position",
        collection_class=ordering_list("position"),
        lazy="selectin",
    )
    replied_to: Mapped["Message | None"] = relationship(
        "Message", remote_side=[id], back_populates="replies"
    )
    replies: Mapped[list["Message"]] = relationship("Message", back_populates="replied_to")

"""Initial schema - users, media, posts, likes, follows, conversations, messages

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Cascade contract:
- posts -> media, likes: ON DELETE CASCADE
- posts.replied_to_id / messages.replied_to_id: ON DELETE SET NULL
- conversations -> messages -> media: ON DELETE CASCADE
- users.profile_picture_id / banner_picture_id: ON DELETE SET NULL
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at(name: str = "created_at") -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def upgrade() -> None:
    # ==========================================================================
    # users table (picture FKs added after media exists)
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("name", sa.String(50), nullable=True),
        sa.Column("surname", sa.String(50), nullable=True),
        sa.Column("bio", sa.String(500), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("banned", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("profile_picture_id", sa.UUID(), nullable=True),
        sa.Column("banner_picture_id", sa.UUID(), nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    # ==========================================================================
    # posts table
    # ==========================================================================
    op.create_table(
        "posts",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("owner_user_id", sa.UUID(), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("like_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("replied_to_id", sa.UUID(), nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["owner_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["replied_to_id"], ["posts.id"], ondelete="SET NULL"),
        sa.CheckConstraint("like_count >= 0", name="ck_posts_like_count_non_negative"),
        sa.CheckConstraint(
            "content IS NULL OR length(content) <= 5000",
            name="ck_posts_content_length",
        ),
    )
    op.create_index("ix_posts_owner_created", "posts", ["owner_user_id", "created_at"])
    op.create_index("ix_posts_replied_to_id", "posts", ["replied_to_id"])

    # ==========================================================================
    # likes table
    # ==========================================================================
    op.create_table(
        "likes",
        sa.Column("post_id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("post_id", "user_id"),
        sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_likes_user", "likes", ["user_id"])

    # ==========================================================================
    # follows table
    # ==========================================================================
    op.create_table(
        "follows",
        sa.Column("source_user_id", sa.UUID(), nullable=False),
        sa.Column("target_user_id", sa.UUID(), nullable=False),
        _created_at("followed_at"),
        sa.PrimaryKeyConstraint("source_user_id", "target_user_id"),
        sa.ForeignKeyConstraint(["source_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["target_user_id"], ["users.id"], ondelete="CASCADE"),
        # Self-follow is rejected by the service layer and here
        sa.CheckConstraint("source_user_id <> target_user_id", name="ck_follows_no_self_follow"),
    )
    op.create_index("ix_follows_target", "follows", ["target_user_id"])

    # ==========================================================================
    # conversations table
    # ==========================================================================
    op.create_table(
        "conversations",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user1_id", sa.UUID(), nullable=False),
        sa.Column("user2_id", sa.UUID(), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user1_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user2_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("user1_id <> user2_id", name="ck_conversations_distinct_participants"),
    )
    op.create_index("ix_conversations_user1_id", "conversations", ["user1_id"])
    op.create_index("ix_conversations_user2_id", "conversations", ["user2_id"])

    # ==========================================================================
    # messages table
    # ==========================================================================
    op.create_table(
        "messages",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("conversation_id", sa.UUID(), nullable=False),
        sa.Column("sender_user_id", sa.UUID(), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("replied_to_id", sa.UUID(), nullable=True),
        _created_at("sent_at"),
        sa.Column("read_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sender_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["replied_to_id"], ["messages.id"], ondelete="SET NULL"),
        sa.CheckConstraint(
            "content IS NULL OR length(content) <= 5000",
            name="ck_messages_content_length",
        ),
    )
    op.create_index(
        "ix_messages_conversation_sent", "messages", ["conversation_id", "sent_at"]
    )

    # ==========================================================================
    # media table
    # ==========================================================================
    op.create_table(
        "media",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("size_bytes", sa.Integer(), server_default="0", nullable=False),
        sa.Column("uploader_user_id", sa.UUID(), nullable=True),
        sa.Column("post_id", sa.UUID(), nullable=True),
        sa.Column("message_id", sa.UUID(), nullable=True),
        sa.Column("position", sa.Integer(), nullable=True),
        _created_at("uploaded_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_media_name"),
        sa.ForeignKeyConstraint(["uploader_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["message_id"], ["messages.id"], ondelete="CASCADE"),
        # A media row belongs to at most one post or message
        sa.CheckConstraint(
            "post_id IS NULL OR message_id IS NULL",
            name="ck_media_single_owner",
        ),
    )
    op.create_index("ix_media_post_id", "media", ["post_id"])
    op.create_index("ix_media_message_id", "media", ["message_id"])

    # ==========================================================================
    # users -> media picture references
    # ==========================================================================
    op.create_foreign_key(
        "fk_users_profile_picture",
        "users",
        "media",
        ["profile_picture_id"],
        ["id"],
        ondelete="SET NULL",
    )
    op.create_foreign_key(
        "fk_users_banner_picture",
        "users",
        "media",
        ["banner_picture_id"],
        ["id"],
        ondelete="SET NULL",
    )


def downgrade() -> None:
    # Drop in reverse order (respecting foreign key dependencies)
    op.drop_constraint("fk_users_banner_picture", "users", type_="foreignkey")
    op.drop_constraint("fk_users_profile_picture", "users", type_="foreignkey")
    op.drop_table("media")
    op.drop_table("messages")
    op.drop_table("conversations")
    op.drop_table("follows")
    op.drop_table("likes")
    op.drop_table("posts")
    op.drop_table("users")

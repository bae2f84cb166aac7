"""Content store: typed persistence functions per entity.

This module is the persistence boundary used by the service layer. Each
entity gets explicit, typed read/write helpers instead of a generic
repository, so every query is visible and reviewable.

All functions:
- Accept an explicit SQLAlchemy Session
- Never commit (callers own the unit of work via zenvi.db.session.transaction)
- Return ORM objects, ids, or None ("no row" is not an error here)

Cascade contract (see zenvi.db.models):
- delete_post removes the post's Media and Like rows; replies are unlinked
- delete_conversation removes its Messages and their Media rows
- delete_message removes its Media rows; replies are unlinked
"""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import exists, func, or_, select, update
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from zenvi.db.models import Conversation, Follow, Like, Media, Message, Post, User

# =============================================================================
# Users
# =============================================================================


def get_user(db: Session, user_id: UUID) -> User | None:
    return db.get(User, user_id)


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.scalar(select(User).where(User.username == username))


def username_taken(db: Session, username: str) -> bool:
    return bool(db.scalar(select(exists().where(User.username == username))))


# =============================================================================
# Posts
# =============================================================================


def get_post(db: Session, post_id: UUID) -> Post | None:
    return db.get(Post, post_id)


def lock_post(db: Session, post_id: UUID) -> Post | None:
    """Load a post with a row lock (SELECT ... FOR UPDATE).

    Must be called inside a transaction. Backends without row locks
    (SQLite) ignore the lock clause and serialize writers instead.
    """
    locked_id = db.scalar(select(Post.id).where(Post.id == post_id).with_for_update())
    if locked_id is None:
        return None
    return db.get(Post, locked_id, populate_existing=True)


def add_post(db: Session, post: Post) -> Post:
    db.add(post)
    db.flush()
    return post


def delete_post(db: Session, post: Post) -> None:
    """Delete a post; its media and likes go with it, replies are unlinked."""
    db.delete(post)
    db.flush()


def list_posts(db: Session) -> Sequence[Post]:
    return db.scalars(select(Post).order_by(Post.created_at.desc(), Post.id.desc())).unique().all()


def list_posts_by_owners(db: Session, owner_ids: Sequence[UUID]) -> Sequence[Post]:
    if not owner_ids:
        return []
    return (
        db.scalars(
            select(Post)
            .where(Post.owner_user_id.in_(owner_ids))
            .order_by(Post.created_at.desc(), Post.id.desc())
        )
        .unique()
        .all()
    )


def list_replies(db: Session, post_id: UUID) -> Sequence[Post]:
    return (
        db.scalars(
            select(Post).where(Post.replied_to_id == post_id).order_by(Post.created_at.asc())
        )
        .unique()
        .all()
    )


def search_posts(db: Session, pattern: str, offset: int, limit: int) -> Sequence[Post]:
    return (
        db.scalars(
            select(Post)
            .where(Post.content.ilike(pattern, escape="\\"))
            .order_by(Post.created_at.desc(), Post.id.desc())
            .offset(offset)
            .limit(limit)
        )
        .unique()
        .all()
    )


def search_users(db: Session, pattern: str, offset: int, limit: int) -> Sequence[User]:
    return db.scalars(
        select(User)
        .where(
            or_(
                User.username.ilike(pattern, escape="\\"),
                User.name.ilike(pattern, escape="\\"),
                User.surname.ilike(pattern, escape="\\"),
            )
        )
        .order_by(User.username.asc())
        .offset(offset)
        .limit(limit)
    ).all()


# =============================================================================
# Likes
# =============================================================================


def find_like(db: Session, post_id: UUID, user_id: UUID) -> Like | None:
    return db.get(Like, (post_id, user_id))


def like_exists(db: Session, post_id: UUID, user_id: UUID) -> bool:
    return bool(
        db.scalar(select(exists().where(Like.post_id == post_id, Like.user_id == user_id)))
    )


def add_like(db: Session, post_id: UUID, user_id: UUID) -> Like:
    like = Like(post_id=post_id, user_id=user_id)
    db.add(like)
    db.flush()
    return like


def remove_like(db: Session, like: Like) -> None:
    db.delete(like)
    db.flush()


def adjust_like_count(db: Session, post: Post, delta: int) -> int:
    """Apply like_count = like_count + delta in the database and return the new value.

    The arithmetic runs in SQL so concurrent writers cannot lose an update.
    """
    new_count = db.execute(
        update(Post)
        .where(Post.id == post.id)
        .values(like_count=Post.like_count + delta)
        .returning(Post.like_count)
        .execution_options(synchronize_session=False)
    ).scalar_one()
    set_committed_value(post, "like_count", new_count)
    return new_count


def liked_post_ids(db: Session, user_id: UUID) -> set[UUID]:
    return set(db.scalars(select(Like.post_id).where(Like.user_id == user_id)).all())


def drifted_like_counts(db: Session) -> list[tuple[UUID, int, int]]:
    """Return (post_id, stored_count, actual_count) for every post whose counter drifted."""
    actual = (
        select(Like.post_id, func.count().label("n")).group_by(Like.post_id).subquery()
    )
    actual_count = func.coalesce(actual.c.n, 0)
    rows = db.execute(
        select(Post.id, Post.like_count, actual_count)
        .outerjoin(actual, actual.c.post_id == Post.id)
        .where(Post.like_count != actual_count)
    ).all()
    return [(row[0], row[1], row[2]) for row in rows]


def set_like_count(db: Session, post_id: UUID, value: int) -> None:
    db.execute(
        update(Post)
        .where(Post.id == post_id)
        .values(like_count=value)
        .execution_options(synchronize_session=False)
    )


# =============================================================================
# Follows
# =============================================================================


def find_follow(db: Session, source_id: UUID, target_id: UUID) -> Follow | None:
    return db.get(Follow, (source_id, target_id))


def follow_exists(db: Session, source_id: UUID, target_id: UUID) -> bool:
    return bool(
        db.scalar(
            select(
                exists().where(
                    Follow.source_user_id == source_id,
                    Follow.target_user_id == target_id,
                )
            )
        )
    )


def add_follow(db: Session, source_id: UUID, target_id: UUID) -> Follow:
    follow = Follow(source_user_id=source_id, target_user_id=target_id)
    db.add(follow)
    db.flush()
    return follow


def remove_follow(db: Session, follow: Follow) -> None:
    db.delete(follow)
    db.flush()


def list_followers(db: Session, user_id: UUID) -> Sequence[Follow]:
    return (
        db.scalars(
            select(Follow)
            .where(Follow.target_user_id == user_id)
            .order_by(Follow.followed_at.asc())
        )
        .unique()
        .all()
    )


def list_following(db: Session, user_id: UUID) -> Sequence[Follow]:
    return (
        db.scalars(
            select(Follow)
            .where(Follow.source_user_id == user_id)
            .order_by(Follow.followed_at.asc())
        )
        .unique()
        .all()
    )


def followed_user_ids(db: Session, user_id: UUID) -> list[UUID]:
    return list(
        db.scalars(select(Follow.target_user_id).where(Follow.source_user_id == user_id)).all()
    )


# =============================================================================
# Conversations & Messages
# =============================================================================


def get_conversation(db: Session, conversation_id: UUID) -> Conversation | None:
    return db.get(Conversation, conversation_id)


def add_conversation(db: Session, conversation: Conversation) -> Conversation:
    db.add(conversation)
    db.flush()
    return conversation


def delete_conversation(db: Session, conversation: Conversation) -> None:
    """Delete a conversation together with its messages and their media."""
    db.delete(conversation)
    db.flush()


def list_conversations_for_user(db: Session, user_id: UUID) -> Sequence[Conversation]:
    return (
        db.scalars(
            select(Conversation)
            .where(or_(Conversation.user1_id == user_id, Conversation.user2_id == user_id))
            .order_by(Conversation.created_at.desc(), Conversation.id.desc())
        )
        .unique()
        .all()
    )


def get_message(db: Session, message_id: UUID) -> Message | None:
    return db.get(Message, message_id)


def add_message(db: Session, message: Message) -> Message:
    db.add(message)
    db.flush()
    return message


def delete_message(db: Session, message: Message) -> None:
    """Delete a message and its media; replies are unlinked."""
    db.delete(message)
    db.flush()


def list_messages(db: Session, conversation_id: UUID) -> Sequence[Message]:
    return db.scalars(
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.sent_at.asc(), Message.id.asc())
    ).all()


# =============================================================================
# Media
# =============================================================================


def get_media_by_name(db: Session, name: str) -> Media | None:
    return db.scalar(select(Media).where(Media.name == name))


def get_media_by_names(db: Session, names: Sequence[str]) -> list[Media]:
    """Return media rows matching names, in the order the names were given."""
    if not names:
        return []
    rows = db.scalars(select(Media).where(Media.name.in_(list(names)))).all()
    by_name = {media.name: media for media in rows}
    return [by_name[name] for name in names if name in by_name]


def add_media(db: Session, media: Media) -> Media:
    db.add(media)
    db.flush()
    return media


def delete_media(db: Session, media: Media) -> None:
    db.delete(media)
    db.flush()

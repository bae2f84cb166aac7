"""Post and feed service layer.

Posts carry optional text and an ordered set of pre-uploaded media; at least
one of the two must be present. Replies are posts with replied_to_id set.

Service functions correspond 1:1 with route handlers.
"""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from zenvi.auth.permissions import can_modify
from zenvi.db import store
from zenvi.db.models import Post, utcnow
from zenvi.db.session import transaction
from zenvi.errors import ApiErrorCode, ForbiddenError, InvalidRequestError, NotFoundError
from zenvi.logging import get_logger
from zenvi.schemas.posts import PostOut
from zenvi.services.graph import get_followed_user_ids
from zenvi.services.media import attach_media, media_to_out, resolve_media_by_names
from zenvi.services.users import get_user_or_404, get_viewer_user_or_401, user_to_summary

logger = get_logger(__name__)


# =============================================================================
# Helpers
# =============================================================================


def clean_content(content: str | None) -> str | None:
    """Blank content is treated as absent."""
    if content is None or not content.strip():
        return None
    return content


def require_content_or_media(content: str | None, media_names: Sequence[str]) -> None:
    if content is None and not media_names:
        raise InvalidRequestError(
            ApiErrorCode.E_CONTENT_REQUIRED, "Content or media is required"
        )


def get_post_or_404(db: Session, post_id: UUID) -> Post:
    post = store.get_post(db, post_id)
    if post is None:
        raise NotFoundError(ApiErrorCode.E_POST_NOT_FOUND, "Post not found")
    return post


def post_to_out(post: Post) -> PostOut:
    """Convert Post ORM model to PostOut schema."""
    return PostOut(
        id=post.id,
        owner=user_to_summary(post.owner),
        content=post.content,
        media=[media_to_out(media) for media in post.media],
        like_count=post.like_count,
        replied_to_id=post.replied_to_id,
        created_at=post.created_at,
        updated_at=post.updated_at,
    )


# =============================================================================
# Service Functions
# =============================================================================


def create_post(
    db: Session,
    viewer_id: UUID,
    content: str | None,
    media_names: Sequence[str] = (),
    replied_to_id: UUID | None = None,
) -> PostOut:
    """Create a post owned by the viewer.

    Raises:
        InvalidRequestError(E_CONTENT_REQUIRED): No content and no media.
        UnauthorizedError: Viewer has no users row.
        NotFoundError(E_MEDIA_NOT_FOUND): A media name is unknown.
        ForbiddenError: A media row was uploaded by someone else.
        InvalidRequestError(E_MEDIA_IN_USE): A media row is attached elsewhere.
    """
    content = clean_content(content)
    require_content_or_media(content, media_names)
    owner = get_viewer_user_or_401(db, viewer_id)

    with transaction(db):
        post = Post(owner=owner, content=content, like_count=0, replied_to_id=replied_to_id)
        attach_media(post, resolve_media_by_names(db, viewer_id, media_names))
        store.add_post(db, post)

    logger.info(
        "post_created",
        post_id=str(post.id),
        media_count=len(post.media),
        is_reply=replied_to_id is not None,
    )
    return post_to_out(post)


def get_post(db: Session, post_id: UUID) -> PostOut:
    return post_to_out(get_post_or_404(db, post_id))


def list_posts(db: Session) -> list[PostOut]:
    """All posts, newest first."""
    return [post_to_out(post) for post in store.list_posts(db)]


def list_user_posts(db: Session, user_id: UUID) -> list[PostOut]:
    get_user_or_404(db, user_id)
    return [post_to_out(post) for post in store.list_posts_by_owners(db, [user_id])]


def list_replies(db: Session, post_id: UUID) -> list[PostOut]:
    """Direct replies to a post, oldest first."""
    get_post_or_404(db, post_id)
    return [post_to_out(post) for post in store.list_replies(db, post_id)]


def update_post(
    db: Session,
    viewer_id: UUID,
    post_id: UUID,
    content: str | None,
    media_names: Sequence[str] = (),
) -> PostOut:
    """Edit a post.

    Non-blank content overwrites the text. A non-empty media_names list
    replaces the media set wholesale; an empty list leaves it unchanged.

    Raises:
        NotFoundError(E_POST_NOT_FOUND): Post doesn't exist.
        ForbiddenError: Viewer is not the owner.
        InvalidRequestError(E_CONTENT_REQUIRED): No content and no media.
    """
    post = get_post_or_404(db, post_id)
    if not can_modify(viewer_id, post.owner_user_id):
        raise ForbiddenError(ApiErrorCode.E_FORBIDDEN, "Only the owner can edit this post")

    content = clean_content(content)
    require_content_or_media(content, media_names)

    with transaction(db):
        if content is not None:
            post.content = content
        if media_names:
            attach_media(post, resolve_media_by_names(db, viewer_id, media_names))
        post.updated_at = utcnow()
        db.flush()

    logger.info("post_updated", post_id=str(post.id))
    return post_to_out(post)


def delete_post(db: Session, viewer_id: UUID, post_id: UUID) -> None:
    """Delete a post with its media and likes; replies survive unlinked.

    Raises:
        NotFoundError(E_POST_NOT_FOUND): Post doesn't exist.
        ForbiddenError: Viewer is not the owner.
    """
    post = get_post_or_404(db, post_id)
    if not can_modify(viewer_id, post.owner_user_id):
        raise ForbiddenError(ApiErrorCode.E_FORBIDDEN, "Only the owner can delete this post")

    with transaction(db):
        store.delete_post(db, post)

    logger.info("post_deleted", post_id=str(post_id))


def reply_to_post(
    db: Session,
    viewer_id: UUID,
    replied_to_id: UUID,
    content: str | None,
    media_names: Sequence[str] = (),
) -> PostOut:
    """Create a reply to an existing post.

    Raises:
        NotFoundError(E_POST_NOT_FOUND): Parent doesn't exist.
        (plus everything create_post raises)
    """
    parent = get_post_or_404(db, replied_to_id)
    return create_post(db, viewer_id, content, media_names, replied_to_id=parent.id)


def get_feed(db: Session, viewer_id: UUID) -> list[PostOut]:
    """Posts by users the viewer follows, newest first. No follows, no posts."""
    followed_ids = get_followed_user_ids(db, viewer_id)
    return [post_to_out(post) for post in store.list_posts_by_owners(db, followed_ids)]

"""Like service layer.

Post.like_count is a denormalized counter over the Like rows. Every like
mutation runs in one transaction that:
1. Locks the post row (SELECT ... FOR UPDATE)
2. Inserts or deletes the Like row
3. Applies like_count = like_count +/- 1 as a single SQL expression

The Like rows are ground truth; reconcile_like_counts repairs any counter
that has drifted from them.
"""

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from zenvi.auth.permissions import can_like
from zenvi.db import store
from zenvi.db.models import Post
from zenvi.db.session import transaction
from zenvi.errors import ApiErrorCode, ConflictError, NotFoundError
from zenvi.logging import get_logger
from zenvi.schemas.posts import LikeStateOut
from zenvi.services.users import get_viewer_user_or_401

logger = get_logger(__name__)


def _lock_post_or_404(db: Session, post_id: UUID) -> Post:
    post = store.lock_post(db, post_id)
    if post is None:
        raise NotFoundError(ApiErrorCode.E_POST_NOT_FOUND, "Post not found")
    return post


def toggle_like(db: Session, viewer_id: UUID, post_id: UUID) -> LikeStateOut:
    """Like the post if the viewer hasn't, otherwise remove the like.

    Raises:
        UnauthorizedError: Viewer has no users row.
        NotFoundError(E_POST_NOT_FOUND): Post doesn't exist.
    """
    get_viewer_user_or_401(db, viewer_id)

    with transaction(db):
        post = _lock_post_or_404(db, post_id)
        like = store.find_like(db, post.id, viewer_id)
        if like is None:
            store.add_like(db, post.id, viewer_id)
            liked = True
        else:
            store.remove_like(db, like)
            liked = False
        like_count = store.adjust_like_count(db, post, 1 if liked else -1)

    logger.info("like_toggled", post_id=str(post_id), liked=liked, like_count=like_count)
    return LikeStateOut(post_id=post_id, liked=liked, like_count=like_count)


def like_post(db: Session, viewer_id: UUID, post_id: UUID) -> LikeStateOut:
    """Like a post.

    Raises:
        UnauthorizedError: Viewer has no users row.
        NotFoundError(E_POST_NOT_FOUND): Post doesn't exist.
        ConflictError(E_ALREADY_LIKED): Viewer already likes the post.
    """
    get_viewer_user_or_401(db, viewer_id)

    try:
        with transaction(db):
            post = _lock_post_or_404(db, post_id)
            decision = can_like(db, viewer_id, post.id)
            if not decision.allowed:
                raise decision.to_error()
            store.add_like(db, post.id, viewer_id)
            like_count = store.adjust_like_count(db, post, 1)
    except IntegrityError as e:
        logger.info("like_conflict", post_id=str(post_id))
        raise ConflictError(ApiErrorCode.E_ALREADY_LIKED, "Post already liked") from e

    logger.info("post_liked", post_id=str(post_id), like_count=like_count)
    return LikeStateOut(post_id=post_id, liked=True, like_count=like_count)


def unlike_post(db: Session, viewer_id: UUID, post_id: UUID) -> LikeStateOut:
    """Remove the viewer's like.

    Raises:
        NotFoundError(E_POST_NOT_FOUND): Post doesn't exist.
        NotFoundError(E_LIKE_NOT_FOUND): Viewer doesn't like the post.
    """
    with transaction(db):
        post = _lock_post_or_404(db, post_id)
        like = store.find_like(db, post.id, viewer_id)
        if like is None:
            raise NotFoundError(ApiErrorCode.E_LIKE_NOT_FOUND, "Post not liked")
        store.remove_like(db, like)
        like_count = store.adjust_like_count(db, post, -1)

    logger.info("post_unliked", post_id=str(post_id), like_count=like_count)
    return LikeStateOut(post_id=post_id, liked=False, like_count=like_count)


def get_liked_post_ids(db: Session, viewer_id: UUID) -> set[UUID]:
    return store.liked_post_ids(db, viewer_id)


def reconcile_like_counts(db: Session) -> int:
    """Recount every post's likes from the Like rows.

    Returns:
        Number of posts whose counter was corrected.
    """
    with transaction(db):
        drifted = store.drifted_like_counts(db)
        for post_id, stored, actual in drifted:
            logger.warning(
                "like_count_drift", post_id=str(post_id), stored=stored, actual=actual
            )
            store.set_like_count(db, post_id, actual)

    logger.info("like_counts_reconciled", corrected=len(drifted))
    return len(drifted)

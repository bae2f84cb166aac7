"""Social graph service layer.

Follow edges are directed (source -> target). Following is not idempotent:
a second follow of the same user is a conflict, and unfollowing a user that
isn't followed is a not-found.
"""

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from zenvi.auth.permissions import can_follow
from zenvi.db import store
from zenvi.db.session import transaction
from zenvi.errors import ApiErrorCode, ConflictError, NotFoundError
from zenvi.logging import get_logger
from zenvi.schemas.users import FollowOut
from zenvi.services.users import get_user_or_404, get_viewer_user_or_401, user_to_summary

logger = get_logger(__name__)


def follow_user(db: Session, viewer_id: UUID, target_id: UUID) -> FollowOut:
    """Start following target.

    Raises:
        UnauthorizedError: Viewer has no users row.
        NotFoundError(E_USER_NOT_FOUND): Target doesn't exist.
        InvalidRequestError(E_SELF_FOLLOW): Viewer is the target.
        ConflictError(E_ALREADY_FOLLOWING): The edge already exists.
    """
    get_viewer_user_or_401(db, viewer_id)
    target = get_user_or_404(db, target_id)

    decision = can_follow(db, viewer_id, target_id)
    if not decision.allowed:
        logger.info("follow_denied", target_id=str(target_id), code=decision.code.value)
        raise decision.to_error()

    try:
        with transaction(db):
            follow = store.add_follow(db, viewer_id, target_id)
    except IntegrityError as e:
        # A concurrent follow won the race past the policy check
        logger.info("follow_conflict", target_id=str(target_id))
        raise ConflictError(
            ApiErrorCode.E_ALREADY_FOLLOWING, "Already following this user"
        ) from e

    logger.info("user_followed", target_id=str(target_id))
    return FollowOut(user=user_to_summary(target), followed_at=follow.followed_at)


def unfollow_user(db: Session, viewer_id: UUID, target_id: UUID) -> None:
    """Stop following target.

    Raises:
        NotFoundError(E_FOLLOW_NOT_FOUND): Viewer doesn't follow target.
    """
    follow = store.find_follow(db, viewer_id, target_id)
    if follow is None:
        raise NotFoundError(ApiErrorCode.E_FOLLOW_NOT_FOUND, "Not following this user")

    with transaction(db):
        store.remove_follow(db, follow)

    logger.info("user_unfollowed", target_id=str(target_id))


def list_followers(db: Session, user_id: UUID) -> list[FollowOut]:
    """Users following user_id, oldest follow first."""
    get_user_or_404(db, user_id)
    return [
        FollowOut(user=user_to_summary(follow.source), followed_at=follow.followed_at)
        for follow in store.list_followers(db, user_id)
    ]


def list_following(db: Session, user_id: UUID) -> list[FollowOut]:
    """Users that user_id follows, oldest follow first."""
    get_user_or_404(db, user_id)
    return [
        FollowOut(user=user_to_summary(follow.target), followed_at=follow.followed_at)
        for follow in store.list_following(db, user_id)
    ]


def are_mutual_followers(db: Session, user_a: UUID, user_b: UUID) -> bool:
    return store.follow_exists(db, user_a, user_b) and store.follow_exists(db, user_b, user_a)


def get_followed_user_ids(db: Session, user_id: UUID) -> list[UUID]:
    return store.followed_user_ids(db, user_id)

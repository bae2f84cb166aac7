"""Authorization predicates for ownership, visibility and relationship rules.

These predicates are the single source of truth for "may actor X do Y to Z".
Routes never check ownership themselves; services call these and act on the
outcome.

All functions:
- Never write and never raise
- Return booleans (ownership/visibility) or a Decision (relationship rules)
- Accept an explicit SQLAlchemy Session when the rule needs a lookup

Rules:
- can_modify: actor owns the resource (post update/delete, media delete)
- can_view_conversation: actor is one of the two participants; this also
  gates message read/update/delete/reply
- can_follow: no self-follow, no duplicate follow
- can_like: no duplicate like
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol
from uuid import UUID

from sqlalchemy.orm import Session

from zenvi.db import store
from zenvi.errors import (
    ApiError,
    ApiErrorCode,
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
    UnauthorizedError,
)


class Denial(str, Enum):
    """Kinds of denial a policy decision can carry."""

    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_ARGUMENT = "invalid_argument"


_DENIAL_TO_ERROR: dict[Denial, type[ApiError]] = {
    Denial.UNAUTHORIZED: UnauthorizedError,
    Denial.FORBIDDEN: ForbiddenError,
    Denial.NOT_FOUND: NotFoundError,
    Denial.CONFLICT: ConflictError,
    Denial.INVALID_ARGUMENT: InvalidRequestError,
}


@dataclass(frozen=True)
class Decision:
    """Outcome of a policy check.

    Attributes:
        allowed: True when the action may proceed.
        denial: Kind of denial (None when allowed).
        code: Error code to surface for a denial.
        message: Safe, user-visible message for a denial.
    """

    allowed: bool
    denial: Denial | None = None
    code: ApiErrorCode | None = None
    message: str = ""

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, denial: Denial, code: ApiErrorCode, message: str) -> "Decision":
        return cls(allowed=False, denial=denial, code=code, message=message)

    def to_error(self) -> ApiError:
        """Build the ApiError matching this denial."""
        if self.allowed or self.denial is None or self.code is None:
            raise ValueError("Cannot build an error from an allowing decision")
        return _DENIAL_TO_ERROR[self.denial](self.code, self.message)


ALLOW = Decision.allow()


class HasParticipants(Protocol):
    user1_id: UUID
    user2_id: UUID


def can_modify(actor_id: UUID | None, resource_owner_id: UUID | None) -> bool:
    """True iff the actor owns the resource."""
    if actor_id is None or resource_owner_id is None:
        return False
    return actor_id == resource_owner_id


def can_view_conversation(actor_id: UUID | None, conversation: HasParticipants) -> bool:
    """True iff the actor is one of the conversation's two participants."""
    if actor_id is None:
        return False
    return actor_id in (conversation.user1_id, conversation.user2_id)


def can_follow(db: Session, actor_id: UUID, target_id: UUID) -> Decision:
    """Decide whether actor may start following target.

    Denied when actor == target (no self-follow) or when the follow already exists.
    Target existence is the caller's concern (NotFound is checked before policy).
    """
    if actor_id == target_id:
        return Decision.deny(
            Denial.INVALID_ARGUMENT, ApiErrorCode.E_SELF_FOLLOW, "Users cannot follow themselves"
        )
    if store.follow_exists(db, actor_id, target_id):
        return Decision.deny(
            Denial.CONFLICT, ApiErrorCode.E_ALREADY_FOLLOWING, "Already following this user"
        )
    return ALLOW


def can_like(db: Session, actor_id: UUID, post_id: UUID) -> Decision:
    """Decide whether actor may like the post (denied if a like already exists)."""
    if store.like_exists(db, post_id, actor_id):
        return Decision.deny(Denial.CONFLICT, ApiErrorCode.E_ALREADY_LIKED, "Post already liked")
    return ALLOW

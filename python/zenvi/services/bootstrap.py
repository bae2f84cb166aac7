"""User bootstrap service.

Provides race-safe user creation on first authenticated request.
"""

import re
import secrets
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from zenvi.db import store
from zenvi.db.models import User
from zenvi.db.session import transaction
from zenvi.logging import get_logger

logger = get_logger(__name__)

MAX_USERNAME_LENGTH = 30
MAX_BOOTSTRAP_ATTEMPTS = 5

_DISALLOWED_USERNAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def normalize_username(seed: str | None, user_id: UUID) -> str:
    """Turn a token claim into a username base ("user_<hex>" when unusable)."""
    base = _DISALLOWED_USERNAME_CHARS.sub("", seed or "")[:MAX_USERNAME_LENGTH]
    return base or f"user_{user_id.hex[:8]}"


def _candidates(base: str, user_id: UUID):
    yield base
    yield f"{base}_{user_id.hex[:6]}"
    while True:
        yield f"{base}_{secrets.token_hex(3)}"


def ensure_user(db: Session, user_id: UUID, username: str | None = None) -> User:
    """Ensure a users row exists for the token subject.

    This function is race-safe and idempotent:
    - An existing row is returned untouched (usernames are only seeded once)
    - A taken username gets a short suffix
    - Losing an insert race to a concurrent request for the same user returns
      the row that request created

    Args:
        db: Database session.
        user_id: The user's ID (from JWT sub claim).
        username: Username seed from token claims, if any.

    Returns:
        The User row.

    Raises:
        RuntimeError: If no username could be claimed after all attempts.
    """
    user = store.get_user(db, user_id)
    if user is not None:
        return user

    base = normalize_username(username, user_id)
    candidates = _candidates(base, user_id)
    for _ in range(MAX_BOOTSTRAP_ATTEMPTS):
        candidate = next(candidates)
        if store.username_taken(db, candidate):
            continue
        try:
            with transaction(db):
                user = User(id=user_id, username=candidate)
                db.add(user)
                db.flush()
        except IntegrityError:
            # Lost race: either this user or this username was just created
            existing = store.get_user(db, user_id)
            if existing is not None:
                logger.info("user_bootstrap_race", user_id=str(user_id))
                return existing
            continue

        logger.info("user_created", user_id=str(user_id), username=candidate)
        return user

    logger.error("user_bootstrap_failed", user_id=str(user_id), username_seed=base)
    raise RuntimeError(f"Failed to bootstrap user {user_id}")

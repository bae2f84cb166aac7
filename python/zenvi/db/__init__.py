"""Database module for Zenvi.

Provides engine creation, session management, transaction helpers, ORM models,
and the typed content-store functions in zenvi.db.store.
"""

from zenvi.db.engine import create_db_engine, get_engine
from zenvi.db.models import (
    Base,
    Conversation,
    Follow,
    Like,
    Media,
    Message,
    Post,
    User,
)
from zenvi.db.session import get_db, transaction

__all__ = [
    # Engine and session
    "create_db_engine",
    "get_engine",
    "get_db",
    "transaction",
    # Base
    "Base",
    # Models
    "User",
    "Post",
    "Like",
    "Follow",
    "Conversation",
    "Message",
    "Media",
]

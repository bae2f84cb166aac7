"""Search service layer.

Case-insensitive substring search over usernames, names and surnames, and
over post content. Paging is 1-based; out-of-range page sizes are clamped
rather than rejected.
"""

from sqlalchemy.orm import Session

from zenvi.db import store
from zenvi.logging import get_logger
from zenvi.schemas.search import SearchOut
from zenvi.services.feed import post_to_out
from zenvi.services.users import user_to_summary

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 20
MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = 50


def clamp_page_size(page_size: int) -> int:
    """Clamp page_size to valid range [MIN_PAGE_SIZE, MAX_PAGE_SIZE]."""
    return min(max(page_size, MIN_PAGE_SIZE), MAX_PAGE_SIZE)


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search(
    db: Session, query: str | None, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE
) -> SearchOut:
    """Return one page of matching users and posts. A blank query matches nothing."""
    query = (query or "").strip()
    page = max(page, 1)
    page_size = clamp_page_size(page_size)

    if not query:
        return SearchOut(query=query, page=page, page_size=page_size, users=[], posts=[])

    pattern = f"%{escape_like(query)}%"
    offset = (page - 1) * page_size
    users = store.search_users(db, pattern, offset, page_size)
    posts = store.search_posts(db, pattern, offset, page_size)

    logger.info("search_executed", page=page, user_hits=len(users), post_hits=len(posts))
    return SearchOut(
        query=query,
        page=page,
        page_size=page_size,
        users=[user_to_summary(user) for user in users],
        posts=[post_to_out(post) for post in posts],
    )

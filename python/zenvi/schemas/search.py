"""Search Pydantic schemas."""

from pydantic import BaseModel

from zenvi.schemas.posts import PostOut
from zenvi.schemas.users import UserSummaryOut


class SearchOut(BaseModel):
    """Matching users and posts for one page of a query."""

    query: str
    page: int
    page_size: int
    users: list[UserSummaryOut]
    posts: list[PostOut]

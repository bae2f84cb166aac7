"""Search routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from zenvi.api.deps import get_db
from zenvi.auth.middleware import Viewer, get_viewer
from zenvi.responses import success_response
from zenvi.services import search as search_service

router = APIRouter()


@router.get("/search")
def search(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    q: str = Query(default="", max_length=200, description="Search text"),
    page: int = Query(default=1, description="1-based page number"),
    page_size: int = Query(
        default=search_service.DEFAULT_PAGE_SIZE, description="Results per page (clamped 1-50)"
    ),
) -> dict:
    """Search users (username, name, surname) and posts (content).

    A blank query returns empty results.
    """
    result = search_service.search(db=db, query=q, page=page, page_size=page_size)
    return success_response(result.model_dump(mode="json"))

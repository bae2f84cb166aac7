"""User profile and social graph routes.

Routes are transport-only: each calls exactly one service function.
All routes require authentication.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from zenvi.api.deps import get_db
from zenvi.auth.middleware import Viewer, get_viewer
from zenvi.responses import success_response
from zenvi.schemas.users import MutualFollowOut
from zenvi.services import feed as feed_service
from zenvi.services import graph as graph_service
from zenvi.services import users as users_service

router = APIRouter()


@router.get("/users/{user_id}")
def get_user(
    user_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get a user's profile.

    Errors:
        E_USER_NOT_FOUND (404): User doesn't exist.
    """
    result = users_service.get_user(db=db, user_id=user_id)
    return success_response(result.model_dump(mode="json"))


@router.get("/users/{user_id}/posts")
def list_user_posts(
    user_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """List a user's posts, newest first."""
    posts = feed_service.list_user_posts(db=db, user_id=user_id)
    return success_response([p.model_dump(mode="json") for p in posts])


@router.get("/users/{user_id}/followers")
def list_followers(
    user_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """List users following user_id. An empty list is a normal result."""
    follows = graph_service.list_followers(db=db, user_id=user_id)
    return success_response([f.model_dump(mode="json") for f in follows])


@router.get("/users/{user_id}/following")
def list_following(
    user_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """List users user_id follows. An empty list is a normal result."""
    follows = graph_service.list_following(db=db, user_id=user_id)
    return success_response([f.model_dump(mode="json") for f in follows])


@router.post("/users/{user_id}/follow", status_code=201)
def follow_user(
    user_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Follow a user.

    Errors:
        E_USER_NOT_FOUND (404): Target doesn't exist.
        E_SELF_FOLLOW (400): Target is the viewer.
        E_ALREADY_FOLLOWING (400): Already following.
    """
    result = graph_service.follow_user(db=db, viewer_id=viewer.user_id, target_id=user_id)
    return success_response(result.model_dump(mode="json"))


@router.delete("/users/{user_id}/follow", status_code=204)
def unfollow_user(
    user_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Unfollow a user.

    Errors:
        E_FOLLOW_NOT_FOUND (404): Not following.
    """
    graph_service.unfollow_user(db=db, viewer_id=viewer.user_id, target_id=user_id)
    return Response(status_code=204)


@router.get("/users/{user_id}/mutual")
def get_mutual(
    user_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Whether the viewer and user_id follow each other."""
    mutual = graph_service.are_mutual_followers(db=db, user_a=viewer.user_id, user_b=user_id)
    return success_response(MutualFollowOut(user_id=user_id, mutual=mutual).model_dump(mode="json"))

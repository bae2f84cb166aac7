"""Post, reply, feed and like routes.

Routes are transport-only: each calls exactly one service function.
All routes require authentication.

Static paths (/posts/feed, /posts/liked) are declared before /posts/{post_id}.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from zenvi.api.deps import get_db
from zenvi.auth.middleware import Viewer, get_viewer
from zenvi.responses import success_response
from zenvi.schemas.posts import CreatePostRequest, LikedPostsOut, UpdatePostRequest
from zenvi.services import feed as feed_service
from zenvi.services import likes as likes_service

router = APIRouter()


# =============================================================================
# Collection Endpoints
# =============================================================================


@router.get("/posts")
def list_posts(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """List all posts, newest first."""
    posts = feed_service.list_posts(db=db)
    return success_response([p.model_dump(mode="json") for p in posts])


@router.post("/posts", status_code=201)
def create_post(
    body: CreatePostRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Create a post.

    Errors:
        E_CONTENT_REQUIRED (400): Neither content nor media_names given.
        E_MEDIA_NOT_FOUND (404): A media name is unknown.
        E_MEDIA_IN_USE (400): A media file is attached elsewhere.
        E_FORBIDDEN (403): A media file was uploaded by someone else.
    """
    result = feed_service.create_post(
        db=db,
        viewer_id=viewer.user_id,
        content=body.content,
        media_names=body.media_names,
    )
    return success_response(result.model_dump(mode="json"))


@router.get("/posts/feed")
def get_feed(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Posts by users the viewer follows, newest first."""
    posts = feed_service.get_feed(db=db, viewer_id=viewer.user_id)
    return success_response([p.model_dump(mode="json") for p in posts])


@router.get("/posts/liked")
def get_liked_posts(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """IDs of posts the viewer has liked."""
    post_ids = likes_service.get_liked_post_ids(db=db, viewer_id=viewer.user_id)
    result = LikedPostsOut(post_ids=sorted(post_ids, key=str))
    return success_response(result.model_dump(mode="json"))


# =============================================================================
# Single Post Endpoints
# =============================================================================


@router.get("/posts/{post_id}")
def get_post(
    post_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get a post by ID.

    Errors:
        E_POST_NOT_FOUND (404): Post doesn't exist.
    """
    result = feed_service.get_post(db=db, post_id=post_id)
    return success_response(result.model_dump(mode="json"))


@router.patch("/posts/{post_id}")
def update_post(
    post_id: UUID,
    body: UpdatePostRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Edit a post.

    Errors:
        E_POST_NOT_FOUND (404): Post doesn't exist.
        E_FORBIDDEN (403): Viewer is not the owner.
        E_CONTENT_REQUIRED (400): Neither content nor media_names given.
    """
    result = feed_service.update_post(
        db=db,
        viewer_id=viewer.user_id,
        post_id=post_id,
        content=body.content,
        media_names=body.media_names,
    )
    return success_response(result.model_dump(mode="json"))


@router.delete("/posts/{post_id}", status_code=204)
def delete_post(
    post_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Delete a post together with its media and likes.

    Errors:
        E_POST_NOT_FOUND (404): Post doesn't exist.
        E_FORBIDDEN (403): Viewer is not the owner.
    """
    feed_service.delete_post(db=db, viewer_id=viewer.user_id, post_id=post_id)
    return Response(status_code=204)


# =============================================================================
# Reply Endpoints
# =============================================================================


@router.get("/posts/{post_id}/replies")
def list_replies(
    post_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """List direct replies, oldest first."""
    posts = feed_service.list_replies(db=db, post_id=post_id)
    return success_response([p.model_dump(mode="json") for p in posts])


@router.post("/posts/{post_id}/replies", status_code=201)
def reply_to_post(
    post_id: UUID,
    body: CreatePostRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Reply to a post.

    Errors:
        E_POST_NOT_FOUND (404): Parent post doesn't exist.
    """
    result = feed_service.reply_to_post(
        db=db,
        viewer_id=viewer.user_id,
        replied_to_id=post_id,
        content=body.content,
        media_names=body.media_names,
    )
    return success_response(result.model_dump(mode="json"))


# =============================================================================
# Like Endpoints
# =============================================================================


@router.post("/posts/{post_id}/like/toggle")
def toggle_like(
    post_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Like the post, or remove the viewer's like if present."""
    result = likes_service.toggle_like(db=db, viewer_id=viewer.user_id, post_id=post_id)
    return success_response(result.model_dump(mode="json"))


@router.put("/posts/{post_id}/like", status_code=201)
def like_post(
    post_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Like a post.

    Errors:
        E_POST_NOT_FOUND (404): Post doesn't exist.
        E_ALREADY_LIKED (400): Viewer already likes it.
    """
    result = likes_service.like_post(db=db, viewer_id=viewer.user_id, post_id=post_id)
    return success_response(result.model_dump(mode="json"))


@router.delete("/posts/{post_id}/like", status_code=204)
def unlike_post(
    post_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Remove the viewer's like.

    Errors:
        E_LIKE_NOT_FOUND (404): Viewer doesn't like the post.
    """
    likes_service.unlike_post(db=db, viewer_id=viewer.user_id, post_id=post_id)
    return Response(status_code=204)

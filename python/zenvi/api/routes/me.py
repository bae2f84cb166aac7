"""Current user endpoints.

Read and update the authenticated viewer's profile.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from zenvi.api.deps import get_db
from zenvi.auth.middleware import Viewer, get_viewer
from zenvi.responses import success_response
from zenvi.schemas.users import UpdateProfileRequest
from zenvi.services import users as users_service

router = APIRouter()


@router.get("/me")
def get_me(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get the viewer's profile."""
    result = users_service.get_profile(db=db, viewer_id=viewer.user_id)
    return success_response(result.model_dump(mode="json"))


@router.patch("/me")
def update_me(
    body: UpdateProfileRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Update the viewer's profile.

    Errors:
        E_INVALID_DATE (400): date_of_birth malformed or in the future.
        E_MEDIA_NOT_FOUND (404): Picture name unknown.
        E_FORBIDDEN (403): Picture uploaded by another user.
    """
    result = users_service.update_profile(db=db, viewer_id=viewer.user_id, request=body)
    return success_response(result.model_dump(mode="json"))

"""Media upload and retrieval routes.

Routes are transport-only: each calls exactly one service function.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Response, UploadFile
from sqlalchemy.orm import Session

from zenvi.api.deps import get_db, get_storage
from zenvi.auth.middleware import Viewer, get_viewer
from zenvi.responses import success_response
from zenvi.services import media as media_service
from zenvi.storage.client import StorageClientBase

router = APIRouter()


@router.post("/media", status_code=201)
async def upload_media(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[StorageClientBase, Depends(get_storage)],
    file: UploadFile = File(...),
) -> dict:
    """Upload an image or video (multipart/form-data, field "file").

    Errors:
        E_FILE_TOO_LARGE (400): Larger than MAX_MEDIA_BYTES.
        E_INVALID_FILE_TYPE (400): Not jpg/jpeg/png/gif/mp4/webm.
    """
    data = await file.read()
    result = media_service.upload_media(
        db=db,
        storage=storage,
        viewer_id=viewer.user_id,
        filename=file.filename,
        content_type=file.content_type,
        data=data,
    )
    return success_response(result.model_dump(mode="json"))


@router.get("/media/{name}")
def get_media_file(
    name: str,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[StorageClientBase, Depends(get_storage)],
) -> Response:
    """Return the raw file bytes with their content type.

    Errors:
        E_MEDIA_NOT_FOUND (404): Unknown name.
    """
    data, content_type = media_service.get_media_file(db=db, storage=storage, name=name)
    return Response(content=data, media_type=content_type)


@router.delete("/media/{name}", status_code=204)
def delete_media(
    name: str,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[StorageClientBase, Depends(get_storage)],
) -> Response:
    """Delete a media file.

    Errors:
        E_MEDIA_NOT_FOUND (404): Unknown name.
        E_FORBIDDEN (403): Viewer is not the uploader.
        E_MEDIA_IN_USE (400): Attached to a post or message.
    """
    media_service.delete_media(db=db, storage=storage, viewer_id=viewer.user_id, name=name)
    return Response(status_code=204)

from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Form, Query
from fastapi.responses import Response, RedirectResponse
from sqlalchemy.orm import Session
import logging
import mimetypes
from storefront.db.database import get_db
from storefront.schemas.photo import PhotoUploadResponse, PhotoUrlResponse
from storefront.auth.dependencies import get_current_user
from storefront.services.photo_service import PhotoService, is_absolute_url

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/photos",
    tags=["Photos"]
)


def get_photo_service(db: Session = Depends(get_db)) -> PhotoService:
    """Dependency to get photo service"""
    return PhotoService(db)


def photo_file_response(photo_service: PhotoService, path: str) -> Response:
    """Stream a stored photo, or redirect when the path is already a URL"""
    if is_absolute_url(path):
        return RedirectResponse(path)
    try:
        content = photo_service.download(path)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    media_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
    file_name = path.rsplit("/", 1)[-1]
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'}
    )


@router.post(
    "",
    response_model=PhotoUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a photo",
    description="""
    Upload a customer photo for printing.

    **Requirements:**
    - Authentication: Required (JWT token)
    - The file must be an image and at most 50MB (configurable)

    **Storage path:**
    `order-photos/{user_id}[/{folder}]/{epoch_ms}-{random}.{ext}`

    Send the returned `file_path` (with the other fields) back in `photo_uploads` at checkout.
    """,
    responses={
        201: {"description": "Photo stored"},
        400: {"description": "Not an image, too large, or an invalid folder"},
        401: {"description": "Authentication required"},
        502: {"description": "Storage provider rejected the upload"}
    }
)
async def upload_photo(
    file: UploadFile = File(..., description="Image file"),
    folder: str = Form("", description="Optional sub-folder under the user's prefix"),
    current_user: dict = Depends(get_current_user),
    photo_service: PhotoService = Depends(get_photo_service)
):
    content = await file.read()
    try:
        return photo_service.upload_photo(
            user_id=current_user["user_id"],
            file_name=file.filename or "photo",
            content=content,
            content_type=file.content_type,
            folder=folder
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except RuntimeError as e:
        logger.error(f"Error uploading photo for {current_user.get('email')}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e)
        )


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a photo",
    description="Delete one of the caller's own uploads by storage path.",
    responses={
        204: {"description": "Photo deleted"},
        401: {"description": "Authentication required"},
        403: {"description": "Path is outside the caller's folder"},
        404: {"description": "Photo not found"}
    }
)
async def delete_photo(
    path: str = Query(..., min_length=1, description="Storage path returned by the upload"),
    current_user: dict = Depends(get_current_user),
    photo_service: PhotoService = Depends(get_photo_service)
):
    try:
        photo_service.delete_photo(current_user["user_id"], path)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return None


@router.get(
    "/url",
    response_model=PhotoUrlResponse,
    summary="Public URL for a stored photo",
    description="Absolute URLs are returned unchanged; an empty path yields `null`.",
    responses={
        200: {"description": "Public URL"},
        401: {"description": "Authentication required"}
    }
)
async def get_photo_url(
    path: str = Query("", description="Storage path"),
    current_user: dict = Depends(get_current_user),
    photo_service: PhotoService = Depends(get_photo_service)
):
    return PhotoUrlResponse(url=photo_service.get_url(path))

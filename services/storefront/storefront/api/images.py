from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File
from pydantic import BaseModel, Field, HttpUrl
from sqlalchemy.orm import Session
import httpx
import logging
from storefront.db.database import get_db
from storefront.auth.dependencies import require_admin
from storefront.services.photo_service import PhotoService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/images",
    tags=["Admin"]
)


class ImageUploadUrlRequest(BaseModel):
    url: HttpUrl = Field(..., description="Image URL to copy into storage")


class ImageUploadResponse(BaseModel):
    public_id: str = Field(..., description="Storage key; store this in product.images")
    url: str = Field(..., description="Public URL for immediate display")


def get_photo_service(db: Session = Depends(get_db)) -> PhotoService:
    return PhotoService(db)


@router.post(
    "",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a product image",
    description="""
    Upload a catalog image. It is stored under `products/`.

    **Requirements:**
    - Authentication: Required (JWT token)
    - Role: admin
    - File must be an image
    """,
    responses={
        201: {"description": "Image uploaded successfully"},
        400: {"description": "Invalid file or file format"},
        401: {"description": "Authentication required"},
        403: {"description": "Requires admin role"}
    }
)
async def upload_image_file(
    file: UploadFile = File(..., description="Image file to upload"),
    current_user: dict = Depends(require_admin),
    photo_service: PhotoService = Depends(get_photo_service)
):
    content = await file.read()
    try:
        return photo_service.upload_product_image(file.filename or "image", content, file.content_type)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RuntimeError as e:
        logger.error(f"Error uploading product image: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.post(
    "/from-url",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a product image from a URL",
    description="""
    Fetch an image from a URL and store it under `products/`. Used by the catalog seeder.
    """,
    responses={
        201: {"description": "Image uploaded successfully"},
        400: {"description": "Invalid URL or failed to fetch image"},
        401: {"description": "Authentication required"},
        403: {"description": "Requires admin role"}
    }
)
async def upload_image_url(
    request: ImageUploadUrlRequest,
    current_user: dict = Depends(require_admin),
    photo_service: PhotoService = Depends(get_photo_service)
):
    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(str(request.url), timeout=30.0, follow_redirects=True)
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"Error fetching image from URL: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Failed to fetch image from URL: {str(e)}"
        )

    content_type = response.headers.get("content-type", "").split(";")[0]
    file_name = request.url.path.rsplit("/", 1)[-1] if request.url.path else "image"
    try:
        return photo_service.upload_product_image(file_name or "image", response.content, content_type)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RuntimeError as e:
        logger.error(f"Error uploading image from URL: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

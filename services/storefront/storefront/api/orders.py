from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
from storefront.db.database import get_db
from storefront.schemas.order import OrderResponse, UserOrderStats
from storefront.schemas.photo import OrderPhotoResponse
from storefront.auth.dependencies import get_current_user
from storefront.services.order_service import OrderService
from storefront.services.photo_service import PhotoService

router = APIRouter(
    prefix="/orders",
    tags=["Orders"]
)


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    """Dependency to get order service"""
    return OrderService(db)


def get_photo_service(db: Session = Depends(get_db)) -> PhotoService:
    return PhotoService(db)


@router.get(
    "",
    response_model=List[OrderResponse],
    summary="List my orders",
    description="The caller's orders, newest first, with items and photos.",
    responses={
        200: {"description": "Orders"},
        401: {"description": "Authentication required"}
    }
)
async def list_orders(
    current_user: dict = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service)
):
    return order_service.get_user_orders(current_user["user_id"])


@router.get(
    "/stats",
    response_model=UserOrderStats,
    summary="My order statistics",
    description="""
    Counts by status and total spent across the caller's orders.
    `completed_orders` counts delivered orders.
    """,
    responses={
        200: {"description": "Statistics"},
        401: {"description": "Authentication required"}
    }
)
async def order_stats(
    current_user: dict = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service)
):
    return order_service.get_user_order_stats(current_user["user_id"])


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get one of my orders",
    responses={
        200: {"description": "Order found"},
        401: {"description": "Authentication required"},
        404: {"description": "Order not found (or not yours)"}
    }
)
async def get_order(
    order_id: UUID,
    current_user: dict = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service)
):
    try:
        return order_service.get_order_by_id(order_id, current_user["user_id"])
    except LookupError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )


@router.post(
    "/{order_id}/cancel",
    response_model=OrderResponse,
    summary="Cancel an order",
    description="Only orders still in `pending` status can be cancelled.",
    responses={
        200: {"description": "Order cancelled"},
        401: {"description": "Authentication required"},
        404: {"description": "Order not found (or not yours)"},
        409: {"description": "Order is already being processed"}
    }
)
async def cancel_order(
    order_id: UUID,
    current_user: dict = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service)
):
    try:
        return order_service.cancel_order(order_id, current_user["user_id"])
    except LookupError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )


@router.post(
    "/{order_id}/items/{item_id}/photos",
    response_model=List[OrderPhotoResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Add photos to an order item",
    description="""
    Upload photos and attach them directly to an item of one of the caller's orders.
    New photos continue the item's existing `sort_order`.
    """,
    responses={
        201: {"description": "Photos attached"},
        400: {"description": "Not an image, or too large"},
        401: {"description": "Authentication required"},
        404: {"description": "Order item not found (or not yours)"}
    }
)
async def upload_order_item_photos(
    order_id: UUID,
    item_id: UUID,
    files: List[UploadFile] = File(..., description="Image files"),
    current_user: dict = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service),
    photo_service: PhotoService = Depends(get_photo_service)
):
    try:
        order = order_service.get_order_by_id(order_id, current_user["user_id"])
        if item_id not in {item.id for item in order.items}:
            raise LookupError("Order item not found")
        uploads = [(f.filename or "photo", await f.read(), f.content_type) for f in files]
        return photo_service.upload_order_item_photos(current_user["user_id"], item_id, uploads)
    except LookupError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except RuntimeError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e)
        )

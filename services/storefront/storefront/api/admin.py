from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from storefront.db.database import get_db
from storefront.schemas.product import (
    ProductCreate, ProductUpdate, AdminProductResponse,
    VariantCreate, VariantUpdate, VariantResponse
)
from storefront.schemas.category import CategoryCreate, CategoryResponse
from storefront.schemas.order import (
    OrderResponse, AdminOrderResponse, OrderStatusUpdate, PaymentStatusUpdate, DashboardStats
)
from storefront.schemas.photo import OrderPhotoResponse, PhotoUrlResponse
from storefront.auth.dependencies import require_admin
from storefront.services.product_service import ProductService
from storefront.services.category_service import CategoryService
from storefront.services.admin_service import AdminOrderService
from storefront.services.photo_service import PhotoService
from storefront.api.photos import photo_file_response

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)]
)


def get_product_service(db: Session = Depends(get_db)) -> ProductService:
    return ProductService(db)


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    return CategoryService(db)


def get_admin_order_service(db: Session = Depends(get_db)) -> AdminOrderService:
    return AdminOrderService(db)


def get_photo_service(db: Session = Depends(get_db)) -> PhotoService:
    return PhotoService(db)


def not_found(e: LookupError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# ---- products ----

@router.get(
    "/products",
    response_model=List[AdminProductResponse],
    summary="List all products",
    description="""
    All non-deleted products, active or not, newest first.
    `category_name` is "Uncategorized" for products without a category.
    """,
    responses={
        200: {"description": "Products"},
        401: {"description": "Authentication required"},
        403: {"description": "Requires admin role"}
    }
)
async def list_products(product_service: ProductService = Depends(get_product_service)):
    return [product_service._product_to_response_dict(p, admin=True) for p in product_service.list_all_products()]


@router.get(
    "/products/{product_id}",
    response_model=AdminProductResponse,
    summary="Get product by ID",
    responses={404: {"description": "Product not found"}}
)
async def get_product(product_id: UUID, product_service: ProductService = Depends(get_product_service)):
    try:
        product = product_service.get_product_by_id(product_id)
    except LookupError as e:
        raise not_found(e)
    return product_service._product_to_response_dict(product, admin=True)


@router.post(
    "/products",
    response_model=AdminProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product",
    description="""
    Create a catalog product. When `slug` is omitted it is generated from the name
    (lower-case, runs of other characters replaced by `-`).

    Images should be uploaded through `/admin/images` first; put the returned
    `public_id` values in `images`.
    """,
    responses={
        201: {"description": "Product created"},
        404: {"description": "Category not found"},
        409: {"description": "Slug already in use"}
    }
)
async def create_product(product_data: ProductCreate, product_service: ProductService = Depends(get_product_service)):
    try:
        product = product_service.create_product(product_data)
    except LookupError as e:
        raise not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return product_service._product_to_response_dict(product, admin=True)


@router.put(
    "/products/{product_id}",
    response_model=AdminProductResponse,
    summary="Update a product",
    description="Partial update: only provided fields change.",
    responses={
        200: {"description": "Product updated"},
        404: {"description": "Product or category not found"},
        409: {"description": "Slug already in use"}
    }
)
async def update_product(
    product_id: UUID,
    product_data: ProductUpdate,
    product_service: ProductService = Depends(get_product_service)
):
    try:
        product = product_service.update_product(product_id, product_data)
    except LookupError as e:
        raise not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return product_service._product_to_response_dict(product, admin=True)


@router.delete(
    "/products/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a product",
    description="""
    Soft delete: the product is deactivated and hidden everywhere, but the row is
    kept so existing orders still reference it.
    """,
    responses={
        204: {"description": "Product deleted"},
        404: {"description": "Product not found"}
    }
)
async def delete_product(product_id: UUID, product_service: ProductService = Depends(get_product_service)):
    try:
        product_service.delete_product(product_id)
    except LookupError as e:
        raise not_found(e)
    return None


@router.post(
    "/products/{product_id}/variants",
    response_model=VariantResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a variant",
    responses={404: {"description": "Product not found"}}
)
async def create_variant(
    product_id: UUID,
    variant_data: VariantCreate,
    product_service: ProductService = Depends(get_product_service)
):
    try:
        return product_service.create_variant(product_id, variant_data)
    except LookupError as e:
        raise not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.put(
    "/variants/{variant_id}",
    response_model=VariantResponse,
    summary="Update a variant",
    responses={404: {"description": "Variant not found"}}
)
async def update_variant(
    variant_id: UUID,
    variant_data: VariantUpdate,
    product_service: ProductService = Depends(get_product_service)
):
    try:
        return product_service.update_variant(variant_id, variant_data)
    except LookupError as e:
        raise not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.delete(
    "/variants/{variant_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a variant",
    description="Removes the variant and any cart lines that point at it. Order history keeps its snapshot.",
    responses={404: {"description": "Variant not found"}}
)
async def delete_variant(variant_id: UUID, product_service: ProductService = Depends(get_product_service)):
    try:
        product_service.delete_variant(variant_id)
    except LookupError as e:
        raise not_found(e)
    return None


# ---- categories ----

@router.get(
    "/categories",
    response_model=List[CategoryResponse],
    summary="List categories"
)
async def list_categories(category_service: CategoryService = Depends(get_category_service)):
    return category_service.list_categories()


@router.post(
    "/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a category",
    description="New categories are active. The slug is generated from the name when omitted.",
    responses={409: {"description": "Slug already in use"}}
)
async def create_category(
    category_data: CategoryCreate,
    category_service: CategoryService = Depends(get_category_service)
):
    try:
        return category_service.create_category(category_data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


# ---- orders ----

@router.get(
    "/orders",
    response_model=List[AdminOrderResponse],
    summary="List orders",
    description="All orders, newest first, each with `item_count` and `photo_count`.",
    responses={400: {"description": "Unknown status filter"}}
)
async def list_orders(
    status_filter: Optional[str] = Query(None, alias="status", description="Only orders in this status"),
    order_service: AdminOrderService = Depends(get_admin_order_service)
):
    try:
        return order_service.get_all_orders(status=status_filter)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get(
    "/orders/{order_id}",
    response_model=OrderResponse,
    summary="Get order with items and photos",
    responses={404: {"description": "Order not found"}}
)
async def get_order(order_id: UUID, order_service: AdminOrderService = Depends(get_admin_order_service)):
    try:
        return order_service.get_order_by_id(order_id)
    except LookupError as e:
        raise not_found(e)


@router.patch(
    "/orders/{order_id}/status",
    response_model=OrderResponse,
    summary="Update order status",
    description="Set the fulfilment status. Publishes `ORDER_STATUS_CHANGED` when it changes.",
    responses={404: {"description": "Order not found"}, 422: {"description": "Unknown status"}}
)
async def update_order_status(
    order_id: UUID,
    update: OrderStatusUpdate,
    order_service: AdminOrderService = Depends(get_admin_order_service)
):
    try:
        return order_service.update_status(order_id, update.status)
    except LookupError as e:
        raise not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.patch(
    "/orders/{order_id}/payment-status",
    response_model=OrderResponse,
    summary="Update payment status",
    responses={404: {"description": "Order not found"}, 422: {"description": "Unknown payment status"}}
)
async def update_payment_status(
    order_id: UUID,
    update: PaymentStatusUpdate,
    order_service: AdminOrderService = Depends(get_admin_order_service)
):
    try:
        return order_service.update_payment_status(order_id, update.payment_status)
    except LookupError as e:
        raise not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get(
    "/order-items/{item_id}/photos",
    response_model=List[OrderPhotoResponse],
    summary="Photos of an order item",
    description="Ordered by `sort_order`, then upload time.",
    responses={404: {"description": "Order item not found"}}
)
async def list_order_item_photos(item_id: UUID, order_service: AdminOrderService = Depends(get_admin_order_service)):
    try:
        return order_service.get_photos(item_id)
    except LookupError as e:
        raise not_found(e)


# ---- photos ----

@router.get(
    "/photos/url",
    response_model=PhotoUrlResponse,
    summary="Public URL for a stored photo"
)
async def get_photo_url(
    path: str = Query("", description="Storage path"),
    photo_service: PhotoService = Depends(get_photo_service)
):
    return PhotoUrlResponse(url=photo_service.get_url(path))


@router.get(
    "/photos/download",
    summary="Download a stored photo",
    description="Returns the file as an attachment. Absolute URLs are redirected to.",
    responses={
        200: {"description": "Photo bytes", "content": {"image/*": {}}},
        307: {"description": "Redirect for absolute URLs"},
        404: {"description": "Photo not found"}
    }
)
async def download_photo(
    path: str = Query(..., min_length=1, description="Storage path"),
    photo_service: PhotoService = Depends(get_photo_service)
):
    return photo_file_response(photo_service, path)


# ---- stats ----

@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Dashboard statistics",
    description="""
    Totals across the store. `completed_orders` counts delivered orders and
    `total_revenue` sums every order's total.
    """
)
async def dashboard_stats(order_service: AdminOrderService = Depends(get_admin_order_service)):
    return order_service.get_dashboard_stats()

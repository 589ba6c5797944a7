from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from uuid import UUID
from storefront.db.database import get_db
from storefront.schemas.cart import CartItemAdd, CartItemUpdate, CartItemResponse, CartResponse
from storefront.auth.dependencies import get_current_user
from storefront.services.cart_service import CartService

router = APIRouter(
    prefix="/cart",
    tags=["Cart"]
)


def get_cart_service(db: Session = Depends(get_db)) -> CartService:
    """Dependency to get cart service"""
    return CartService(db)


@router.get(
    "",
    response_model=CartResponse,
    summary="Get the cart",
    description="""
    Return the caller's cart lines (newest first) with product and variant details.

    **Totals:**
    - `total_items`: sum of quantities
    - `total_price`: sum of unit price times quantity, where the unit price is the
      variant price when a variant is chosen
    """,
    responses={
        200: {"description": "Cart contents"},
        401: {"description": "Authentication required"}
    }
)
async def get_cart(
    current_user: dict = Depends(get_current_user),
    cart_service: CartService = Depends(get_cart_service)
):
    return cart_service.load_cart(current_user["user_id"])


@router.post(
    "/items",
    response_model=CartItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add to cart",
    description="""
    Add units of a product to the cart. If the cart already holds a line for the
    same product and variant, its quantity is increased instead.
    """,
    responses={
        201: {"description": "Cart line created or increased"},
        401: {"description": "Authentication required"},
        404: {"description": "Product or variant not found"}
    }
)
async def add_to_cart(
    request: CartItemAdd,
    current_user: dict = Depends(get_current_user),
    cart_service: CartService = Depends(get_cart_service)
):
    try:
        return cart_service.add_to_cart(
            user_id=current_user["user_id"],
            product_id=request.product_id,
            variant_id=request.variant_id,
            quantity=request.quantity
        )
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


@router.patch(
    "/items/{item_id}",
    response_model=CartItemResponse,
    summary="Change quantity",
    description="Set the quantity of one of the caller's cart lines. The quantity must be at least 1.",
    responses={
        200: {"description": "Quantity updated"},
        401: {"description": "Authentication required"},
        404: {"description": "Cart item not found"},
        422: {"description": "Quantity below 1"}
    }
)
async def update_cart_item(
    item_id: UUID,
    request: CartItemUpdate,
    current_user: dict = Depends(get_current_user),
    cart_service: CartService = Depends(get_cart_service)
):
    try:
        return cart_service.update_cart_item(current_user["user_id"], item_id, request.quantity)
    except LookupError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )


@router.delete(
    "/items/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove from cart",
    responses={
        204: {"description": "Line removed"},
        401: {"description": "Authentication required"},
        404: {"description": "Cart item not found"}
    }
)
async def remove_from_cart(
    item_id: UUID,
    current_user: dict = Depends(get_current_user),
    cart_service: CartService = Depends(get_cart_service)
):
    try:
        cart_service.remove_from_cart(current_user["user_id"], item_id)
    except LookupError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    return None


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear the cart",
    responses={
        204: {"description": "Cart emptied"},
        401: {"description": "Authentication required"}
    }
)
async def clear_cart(
    current_user: dict = Depends(get_current_user),
    cart_service: CartService = Depends(get_cart_service)
):
    cart_service.clear_cart(current_user["user_id"])
    return None

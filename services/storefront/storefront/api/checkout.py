from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from storefront.db.database import get_db
from storefront.schemas.order import CheckoutRequest, CheckoutResponse
from storefront.auth.dependencies import get_current_user
from storefront.services.checkout_service import CheckoutService

router = APIRouter(
    prefix="/checkout",
    tags=["Checkout"]
)


def get_checkout_service(db: Session = Depends(get_db)) -> CheckoutService:
    """Dependency to get checkout service"""
    return CheckoutService(db)


@router.post(
    "",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place an order",
    description="""
    Turn the caller's cart into an order.

    **Validation (in order):**
    1. The cart must not be empty
    2. Name, email, phone, address, city, province and postal code are required
    3. Every line whose product name contains "photobox", "cetak" or "foto" needs at least one photo
    4. A line may carry at most `quantity * 5` photos

    **Result:**
    - Order number `PB-YYYYMMDD-NNNNNN`, status `pending`, payment `pending`
    - Total = cart subtotal + flat shipping fee
    - The cart is cleared
    """,
    responses={
        201: {"description": "Order placed"},
        400: {"description": "Validation failed; `detail` explains which rule"},
        401: {"description": "Authentication required"},
        403: {"description": "A submitted photo belongs to another user"}
    }
)
async def checkout(
    form: CheckoutRequest,
    request: Request,
    current_user: dict = Depends(get_current_user),
    checkout_service: CheckoutService = Depends(get_checkout_service)
):
    try:
        order = checkout_service.place_order(
            user_id=current_user["user_id"],
            form=form,
            user_agent=request.headers.get("user-agent")
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except PermissionError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e)
        )
    return {
        "order_number": order.order_number,
        "message": f"Order placed. Order number: {order.order_number}",
        "order": order
    }

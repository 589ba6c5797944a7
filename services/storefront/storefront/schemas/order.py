from pydantic import BaseModel, Field, AliasChoices
from typing import Optional, List, Dict, Any
from uuid import UUID
from datetime import datetime

from storefront.models.order import ORDER_STATUSES, PAYMENT_STATUSES, PAYMENT_METHODS
from storefront.schemas.photo import OrderPhotoResponse


def one_of(values) -> str:
    return f"^({'|'.join(values)})$"


class UploadedPhoto(BaseModel):
    """A photo already placed in storage via POST /photos"""
    file_name: str = Field(..., min_length=1)
    file_path: str = Field(..., min_length=1)
    file_size: Optional[int] = Field(None, ge=0)
    mime_type: Optional[str] = None
    public_url: Optional[str] = None


class CheckoutRequest(BaseModel):
    # Required fields are checked by the checkout service so that a blank form
    # produces a single "complete all required fields" error
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: str = ""
    address: str = ""
    city: str = ""
    province: str = ""
    postal_code: str = ""
    payment_method: str = Field("transfer", pattern=one_of(PAYMENT_METHODS), description="Bank transfer or cash on delivery")
    notes: Optional[str] = None
    photo_uploads: Dict[UUID, List[UploadedPhoto]] = Field(
        default_factory=dict,
        description="Uploaded photos keyed by cart item id"
    )


class ShippingAddress(BaseModel):
    address: str
    city: str
    province: str
    postal_code: str


class OrderItemResponse(BaseModel):
    id: UUID
    product_id: Optional[UUID] = None
    variant_id: Optional[UUID] = None
    product_name: str
    variant_name: Optional[str] = None
    price: int
    quantity: int
    subtotal: int
    product_data: Optional[Dict[str, Any]] = None
    photos: List[OrderPhotoResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: UUID
    user_id: UUID
    order_number: str = Field(..., examples=["PB-20240115-123456"])
    status: str
    customer_name: str
    customer_email: str
    customer_phone: str
    shipping_address: ShippingAddress
    subtotal: int
    shipping_fee: int
    tax_amount: int
    discount_amount: int
    total_amount: int
    payment_method: str
    payment_status: str
    notes: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("order_metadata", "metadata")
    )
    items: List[OrderItemResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AdminOrderResponse(OrderResponse):
    item_count: int
    photo_count: int


class CheckoutResponse(BaseModel):
    order_number: str
    message: str
    order: OrderResponse


class OrderStatusUpdate(BaseModel):
    status: str = Field(..., pattern=one_of(ORDER_STATUSES))


class PaymentStatusUpdate(BaseModel):
    payment_status: str = Field(..., pattern=one_of(PAYMENT_STATUSES))


class UserOrderStats(BaseModel):
    total_orders: int
    total_spent: int
    pending_orders: int
    processing_orders: int
    completed_orders: int
    cancelled_orders: int


class DashboardStats(BaseModel):
    total_orders: int
    total_revenue: int
    total_products: int
    total_users: int
    pending_orders: int
    processing_orders: int
    completed_orders: int
    total_photos: int

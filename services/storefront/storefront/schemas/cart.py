from pydantic import BaseModel, Field
from typing import Optional, List
from uuid import UUID
from datetime import datetime


class CartItemAdd(BaseModel):
    product_id: UUID = Field(..., description="Product to add")
    variant_id: Optional[UUID] = Field(None, description="Chosen variant, if the product has variants")
    quantity: int = Field(1, ge=1, description="Units to add; merged into an existing line for the same product and variant")


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=1, description="New quantity (at least 1; remove the line instead of setting 0)")


class CartProduct(BaseModel):
    id: UUID
    name: str
    slug: str
    price: int
    sku: Optional[str] = None
    images: Optional[List[str]] = None
    stock_quantity: int

    class Config:
        from_attributes = True


class CartVariant(BaseModel):
    id: UUID
    name: str
    price: int
    stock_quantity: int

    class Config:
        from_attributes = True


class CartItemResponse(BaseModel):
    id: UUID
    product_id: UUID
    variant_id: Optional[UUID] = None
    quantity: int
    price: int = Field(..., description="Unit price (variant price when a variant is set)")
    subtotal: int = Field(..., description="price * quantity")
    product: CartProduct
    variant: Optional[CartVariant] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CartResponse(BaseModel):
    items: List[CartItemResponse]
    total_items: int = Field(..., description="Sum of quantities")
    total_price: int = Field(..., description="Sum of price * quantity")
    formatted_total_price: str

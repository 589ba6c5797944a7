from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from uuid import UUID
from datetime import datetime


class VariantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Variant name", examples=["4R (10x15 cm)"])
    sku: Optional[str] = Field(None, max_length=255)
    price: int = Field(..., ge=0, description="Variant price in whole currency units", examples=[3500])
    stock_quantity: int = Field(0, ge=0)
    is_active: bool = True
    sort_order: int = 0


class VariantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    sku: Optional[str] = Field(None, max_length=255)
    price: Optional[int] = Field(None, ge=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None

    @field_validator("name", "price", "stock_quantity", "is_active", "sort_order")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class VariantResponse(BaseModel):
    id: UUID
    product_id: UUID
    name: str
    sku: Optional[str] = None
    price: int
    stock_quantity: int
    is_active: bool
    sort_order: int

    class Config:
        from_attributes = True


class CategorySummary(BaseModel):
    id: UUID
    name: str
    slug: str

    class Config:
        from_attributes = True


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=500, description="Product name", examples=["Photobox Classic"])
    slug: Optional[str] = Field(None, min_length=1, max_length=500, pattern="^[a-z0-9-]+$",
                                description="URL slug, generated from the name when omitted")
    description: Optional[str] = Field(None, description="Product description")
    short_description: Optional[str] = Field(None, description="One-line summary shown on product cards")
    price: int = Field(..., ge=0, description="Price in whole currency units", examples=[150000])
    original_price: Optional[int] = Field(None, ge=0, description="Price before discount", examples=[175000])
    sku: Optional[str] = Field(None, max_length=255, description="Stock keeping unit", examples=["PBX-CLASSIC"])
    stock_quantity: int = Field(0, ge=0, description="Units in stock")
    category_id: Optional[UUID] = Field(None, description="Category UUID")
    images: Optional[List[str]] = Field(None, description="Image URLs or storage paths")
    is_active: bool = Field(True, description="Visible in the catalog")
    is_featured: bool = Field(False, description="Shown on the home page")
    sort_order: int = Field(0, description="Position among featured products")


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=500)
    slug: Optional[str] = Field(None, min_length=1, max_length=500, pattern="^[a-z0-9-]+$")
    description: Optional[str] = None
    short_description: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    original_price: Optional[int] = Field(None, ge=0)
    sku: Optional[str] = Field(None, max_length=255)
    stock_quantity: Optional[int] = Field(None, ge=0)
    category_id: Optional[UUID] = None
    images: Optional[List[str]] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    sort_order: Optional[int] = None

    @field_validator("name", "slug", "price", "stock_quantity", "is_active", "is_featured", "sort_order")
    @classmethod
    def not_null(cls, value):
        # Omit a field to leave it unchanged; these columns cannot be cleared
        if value is None:
            raise ValueError("may not be null")
        return value


class ProductResponse(BaseModel):
    id: UUID = Field(..., description="Product UUID")
    category_id: Optional[UUID] = Field(None, description="Category UUID")
    category: Optional[CategorySummary] = Field(None, description="Category the product belongs to")
    name: str = Field(..., description="Product name", examples=["Photobox Classic"])
    slug: str = Field(..., description="Product URL slug", examples=["photobox-classic"])
    description: Optional[str] = None
    short_description: Optional[str] = None
    price: int = Field(..., description="Price in whole currency units", examples=[150000])
    original_price: Optional[int] = None
    formatted_price: str = Field(..., description="Display price", examples=["Rp 150.000"])
    sku: Optional[str] = None
    stock_quantity: int
    images: List[str] = Field(default_factory=list, description="Image URLs")
    main_image: str = Field(..., description="First image, or the placeholder image")
    has_discount: bool
    discount_percentage: int
    is_active: bool
    is_featured: bool
    sort_order: int
    variants: List[VariantResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "category_id": "123e4567-e89b-12d3-a456-426614174001",
                "category": {"id": "123e4567-e89b-12d3-a456-426614174001", "name": "Photobox", "slug": "photobox"},
                "name": "Photobox Classic",
                "slug": "photobox-classic",
                "price": 150000,
                "original_price": 175000,
                "formatted_price": "Rp 150.000",
                "stock_quantity": 25,
                "images": ["https://res.cloudinary.com/demo/image/upload/products/photobox-classic"],
                "main_image": "https://res.cloudinary.com/demo/image/upload/products/photobox-classic",
                "has_discount": True,
                "discount_percentage": 14,
                "is_active": True,
                "is_featured": True,
                "sort_order": 1,
                "variants": [],
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z"
            }
        }


class AdminProductResponse(ProductResponse):
    category_name: str = Field(..., description="Category name, or 'Uncategorized'")
    deleted_at: Optional[datetime] = None

from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID
from datetime import datetime


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, min_length=1, max_length=255, pattern="^[a-z0-9-]+$",
                                description="Generated from the name when omitted")
    description: Optional[str] = None


class CategoryResponse(BaseModel):
    id: UUID = Field(..., description="Category UUID", examples=["123e4567-e89b-12d3-a456-426614174000"])
    name: str = Field(..., description="Category name", examples=["Photobox"])
    slug: str = Field(..., description="Category URL slug", examples=["photobox"])
    description: Optional[str] = Field(None, description="Category description")
    is_active: bool = Field(True, description="Whether the category is shown in the catalog")
    created_at: datetime = Field(..., description="Creation timestamp")

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "name": "Cetak Foto",
                "slug": "cetak-foto",
                "description": "Photo prints in every size",
                "is_active": True,
                "created_at": "2024-01-15T10:30:00Z"
            }
        }

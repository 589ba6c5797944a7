from pydantic import BaseModel, Field, AliasChoices
from typing import Optional, Dict, Any
from uuid import UUID
from datetime import datetime


class PhotoUploadResponse(BaseModel):
    file_name: str = Field(..., description="Original file name", examples=["holiday.jpg"])
    file_path: str = Field(..., description="Storage path; send this back at checkout",
                           examples=["order-photos/6f1c.../1718000000000-k3j9x2.jpg"])
    public_url: str = Field(..., description="Public URL for previews")
    file_size: int = Field(..., description="Size in bytes")
    mime_type: str = Field(..., examples=["image/jpeg"])


class PhotoUrlResponse(BaseModel):
    url: Optional[str] = Field(None, description="Public URL, or null for an empty path")


class OrderPhotoResponse(BaseModel):
    id: UUID
    order_item_id: UUID
    file_name: str
    file_path: str
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    upload_status: str
    sort_order: int
    metadata: Optional[Dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("photo_metadata", "metadata")
    )
    created_at: datetime

    class Config:
        from_attributes = True

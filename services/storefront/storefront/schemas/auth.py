from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID
from datetime import datetime


class SignUpRequest(BaseModel):
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", examples=["customer@example.com"])
    password: str = Field(..., min_length=6, max_length=72)
    full_name: Optional[str] = Field(None, max_length=255, examples=["Budi Santoso"])


class SignInRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: UUID
    email: str
    full_name: Optional[str] = None
    email_confirmed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ProfileResponse(BaseModel):
    id: UUID
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: str = Field(..., examples=["customer"])
    created_at: Optional[datetime] = None
    is_fallback: bool = Field(False, description="True when the profile could not be stored and was synthesized")

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Seconds until the access token expires")
    user: UserResponse


class MeResponse(BaseModel):
    user: UserResponse
    profile: ProfileResponse

"""
Authentication Pydantic schemas.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from transport_backend.app.models.user import UserRole


class UserRegister(BaseModel):
    """
    Schema for operator registration.

    The first registered operator becomes ADMIN; later ones are DISPATCHER.
    """
    email: EmailStr = Field(..., description="User email address")
    username: str = Field(..., min_length=3, max_length=50, description="Unique username")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")


class UserLogin(BaseModel):
    """Login with either username or email."""
    username: str = Field(..., description="Username or email")
    password: str = Field(..., description="Password")


class TokenResponse(BaseModel):
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user_id: int
    username: str
    email: str
    role: UserRole


class UserResponse(BaseModel):
    id: int
    email: str
    username: str
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

"""
Authentication and user profile Pydantic schemas.

Defines request and response schemas for the /users endpoints.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional
from inventory_backend.app.models.enums import Role


class UserRegister(BaseModel):
    """
    Schema for user registration.

    Used by POST /users/register.
    Default role is CUSTOMER; admin and manager cannot self-register.
    """
    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=6, max_length=72, description="Password (6-72 characters)")
    role: Optional[Role] = Field(default=Role.CUSTOMER, description="User role (defaults to customer)")


class UserLogin(BaseModel):
    """Schema for user login (POST /users/login)."""
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="Password")


class UserUpdate(BaseModel):
    """Editable profile fields. Role and email are not changeable here."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    bio: Optional[str] = Field(None, max_length=250)
    photo: Optional[str] = Field(None, max_length=500)


class PasswordChange(BaseModel):
    old_password: str = Field(..., description="Current password")
    password: str = Field(..., min_length=6, max_length=72, description="New password")


class ForgotPassword(BaseModel):
    email: EmailStr


class PasswordReset(BaseModel):
    password: str = Field(..., min_length=6, max_length=72)


class UserResponse(BaseModel):
    """
    Public profile of a user.

    Used by GET /users/getuser and the register/update endpoints.
    """
    id: int
    name: str
    email: str
    role: Role
    photo: str
    phone: str
    bio: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LoginResponse(UserResponse):
    """Profile plus the session token (also set as an HTTP-only cookie)."""
    token: str


class CustomerSummary(BaseModel):
    id: int
    name: str
    email: str
    phone: str

    class Config:
        from_attributes = True

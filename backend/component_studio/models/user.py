"""
User Model - Defines the user data structure.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class UserUsage(BaseModel):
    """Running usage counters, bumped by the session service."""
    total_sessions: int = 0
    total_components: int = 0
    total_tokens: int = 0


class UserBase(BaseModel):
    """Base user model with common fields."""
    username: str = Field(..., min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    full_name: Optional[str] = None


class UserCreate(UserBase):
    """User creation model with password."""
    password: str = Field(..., min_length=6)


class UserUpdate(BaseModel):
    """Profile fields a user may change; omitted fields are kept."""
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(default=None, max_length=100)


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6)


class AccountDelete(BaseModel):
    password: str


class User(UserBase):
    """User model with all fields."""
    user_id: str
    created_at: datetime
    updated_at: datetime
    is_active: bool = True
    usage: UserUsage = Field(default_factory=UserUsage)

    class Config:
        from_attributes = True


class UserInDB(User):
    """User model as stored with hashed password."""
    hashed_password: str


class Token(BaseModel):
    """JWT token response model."""
    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    """Token payload data."""
    user_id: Optional[str] = None
    username: Optional[str] = None

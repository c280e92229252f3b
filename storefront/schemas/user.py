from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Optional
from datetime import datetime

from storefront.models.users import UserRole, UserStatus
from storefront.schemas.order import OrderSummary


# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr


# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str = Field(min_length=1)


# Schema for user registration requests
class UserCreate(UserBase):
    name: str = Field(min_length=1)
    password: str = Field(min_length=8)


# Profile fields a customer may edit on their own account
class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None


# Admin edit additionally covers role and account status
class UserAdminUpdate(ProfileUpdate):
    role: Optional[str] = None
    status: Optional[str] = None


# Output schema for user profile details
class UserResponse(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: Optional[str] = None
    role: UserRole
    status: UserStatus
    phone: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    created_at: Optional[datetime] = None


class UserListItem(UserResponse):
    order_count: int = 0


class UserDetail(UserResponse):
    order_count: int = 0
    recent_orders: List[OrderSummary] = []


class UsersPage(BaseModel):
    items: List[UserListItem]
    total: int
    page: int
    limit: int
    pages: int


# Login/registration result; the token is also set as an http-only cookie
class AuthResponse(BaseModel):
    success: bool = True
    user: UserResponse
    access_token: str
    token_type: str = "bearer"

# storefront/schemas/product.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Union
from datetime import datetime


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ColorIn(BaseModel):
    name: str = Field(min_length=1)
    value: str = Field(min_length=1)


class LengthIn(BaseModel):
    length: str = Field(min_length=1)


class ColorOut(ORMBase):
    id: int
    name: str
    value: str


class LengthOut(ORMBase):
    id: int
    length: str


# Schema for creating a new product; variants are created in the same transaction
class ProductCreate(BaseModel):
    name: str
    description: str
    price: float = Field(ge=0)
    category: str
    images: List[str] = []
    featured: bool = False
    stock: int = Field(default=0, ge=0)
    colors: List[ColorIn] = []
    # Lengths arrive either as {"length": "..."} objects or bare labels
    lengths: List[Union[LengthIn, str]] = []


# Schema for product updates - every field optional, variant lists replace existing ones
class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = None
    images: Optional[List[str]] = None
    featured: Optional[bool] = None
    stock: Optional[int] = Field(default=None, ge=0)
    colors: Optional[List[ColorIn]] = None
    lengths: Optional[List[Union[LengthIn, str]]] = None


class ProductOut(ORMBase):
    id: int
    name: str
    description: str
    price: float
    images: List[str] = []
    category: str
    featured: bool
    stock: int
    rating: float
    review_count: int
    colors: List[ColorOut] = []
    lengths: List[LengthOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Paginated response for product listings
class ProductListPage(ORMBase):
    items: List[ProductOut]
    total: int
    page: int
    limit: int
    pages: int


class BulkDeleteRequest(BaseModel):
    ids: List[int] = Field(min_length=1)


class BulkDeleteResponse(BaseModel):
    requested: int
    deleted: int
    failed: int
    errors: List[dict] = []

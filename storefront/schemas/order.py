from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Optional
from datetime import datetime

from storefront.models.order import OrderStatus


class CheckoutLine(BaseModel):
    """A cart line as submitted at checkout; the price is the one captured in the cart."""
    product_id: int
    name: str = ""
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)
    color: Optional[str] = None
    length: Optional[str] = None
    image: Optional[str] = None


class ShippingDetails(BaseModel):
    first_name: str
    last_name: str
    email: EmailStr
    phone: Optional[str] = None
    street: str
    apt: Optional[str] = None
    city: str
    state: str
    zip: str
    country: str


class PaymentDetails(BaseModel):
    method: str = "card"
    last4: Optional[str] = Field(default=None, max_length=4)
    brand: Optional[str] = None
    email: Optional[EmailStr] = None


# Input schema for checkout. When items is omitted the cart cookie is used.
class OrderCreatePayload(BaseModel):
    items: Optional[List[CheckoutLine]] = None
    shipping: ShippingDetails
    payment: Optional[PaymentDetails] = None
    coupon_code: Optional[str] = None


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    product_name: str
    price: float
    quantity: int
    color: Optional[str] = None
    length: Optional[str] = None


class OrderCustomerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: Optional[str] = None
    email: str
    phone: Optional[str] = None


# Output schema representing the full order details
class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    status: OrderStatus
    subtotal: float
    shipping: float
    tax: float
    discount: float
    coupon_code: Optional[str] = None
    total: float
    shipping_address: str
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    payment_method: Optional[str] = None
    payment_last4: Optional[str] = None
    payment_brand: Optional[str] = None
    payment_email: Optional[str] = None
    tracking_carrier: Optional[str] = None
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[OrderItemOut] = []
    user: Optional[OrderCustomerOut] = None


# Short form used in user detail views
class OrderSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: OrderStatus
    total: float
    created_at: Optional[datetime] = None


# Schema for paginated order lists
class OrdersPage(BaseModel):
    items: List[OrderResponse]
    total: int
    page: int
    limit: int
    pages: int


# Admin update; status is validated by the lifecycle, not here
class OrderUpdatePayload(BaseModel):
    status: Optional[str] = None
    tracking_carrier: Optional[str] = None
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None
    notes: Optional[str] = None

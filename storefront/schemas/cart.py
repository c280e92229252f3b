from pydantic import BaseModel, Field
from typing import List, Optional


# Request schema for adding a product variant to the cart
class CartAddItem(BaseModel):
    product_id: int
    quantity: int = Field(default=1, gt=0)
    color: Optional[str] = None
    length: Optional[str] = None


# Identifies a cart line by product and variant options
class CartLineRef(BaseModel):
    product_id: int
    color: Optional[str] = None
    length: Optional[str] = None


# Request schema for setting a line's quantity; zero removes the line
class CartUpdateItem(CartLineRef):
    quantity: int = Field(ge=0)


class CartItemOut(BaseModel):
    product_id: int
    name: str
    price: float
    quantity: int
    color: Optional[str] = None
    length: Optional[str] = None
    image: Optional[str] = None
    line_total: float


class QuoteOut(BaseModel):
    subtotal: float
    shipping: float
    tax: float
    discount: float
    total: float


# Response schema for the entire cart summary
class CartOut(BaseModel):
    items: List[CartItemOut]
    count: int
    quote: QuoteOut

"""Cart and checkout pricing.

The quote is a pure function of the cart lines and an optional coupon code.
Two flows exist: the checkout flow charges tax, the cart-page flow shows a
pre-tax estimate. Callers pick one explicitly through ``include_tax``.
"""
from dataclasses import dataclass, asdict
from typing import Iterable, Optional

from storefront.config import settings


@dataclass(frozen=True)
class Quote:
    subtotal: float
    shipping: float
    tax: float
    discount: float
    total: float

    def rounded(self) -> "Quote":
        # Total is rebuilt from the rounded parts so the stored figures add up
        subtotal = round(self.subtotal, 2)
        shipping = round(self.shipping, 2)
        tax = round(self.tax, 2)
        discount = round(self.discount, 2)
        return Quote(
            subtotal=subtotal,
            shipping=shipping,
            tax=tax,
            discount=discount,
            total=round(subtotal + shipping + tax - discount, 2),
        )

    def as_dict(self) -> dict:
        return asdict(self)


def coupon_applies(coupon_code: Optional[str]) -> bool:
    return coupon_code is not None and coupon_code == settings.COUPON_CODE


def subtotal_of(items: Iterable) -> float:
    # Lines may be CartItem objects or anything with price/quantity attributes
    return sum(item.price * item.quantity for item in items)


def quote(items: Iterable, coupon_code: Optional[str] = None, include_tax: bool = True) -> Quote:
    subtotal = subtotal_of(items)
    shipping = settings.SHIPPING_FLAT_FEE if subtotal > 0 else 0.0
    tax = subtotal * settings.TAX_RATE if include_tax else 0.0
    discount = subtotal * settings.COUPON_DISCOUNT_RATE if coupon_applies(coupon_code) else 0.0
    total = subtotal + shipping + tax - discount
    return Quote(subtotal=subtotal, shipping=shipping, tax=tax, discount=discount, total=total)

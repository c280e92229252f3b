"""Client-held shopping cart.

The cart never lives in the database. ``CartStore`` keeps the lines in
memory and mirrors the whole list to a key-value storage port after every
mutation; in production the port is a signed browser cookie, in tests a
plain dict.
"""
import json
import logging
from typing import Dict, List, Optional, Protocol, Tuple

from fastapi import Request, Response
from jose import jwt, JWTError
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from storefront.config import settings
from storefront.services import pricing

logger = logging.getLogger(__name__)

CartKey = Tuple[int, Optional[str], Optional[str]]

MAX_COOKIE_BYTES = 4000


class CartItem(BaseModel):
    product_id: int
    name: str = ""
    price: float = Field(ge=0)
    quantity: int = 1
    color: Optional[str] = None
    length: Optional[str] = None
    image: Optional[str] = None

    @property
    def key(self) -> CartKey:
        return line_key(self)


def line_key(item) -> CartKey:
    """Identity of a cart line: same product with the same variant options."""
    return (item.product_id, item.color, item.length)


class CartStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStorage:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class CookieStorage:
    """Stores values in signed cookies so the client cannot edit prices."""

    def __init__(self, request: Request, response: Response):
        self.request = request
        self.response = response
        self._written: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        if key in self._written:
            return self._written[key]
        raw = self.request.cookies.get(key)
        if not raw:
            return None
        try:
            claims = jwt.decode(raw, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            logger.warning("Discarding cart cookie with invalid signature")
            return None
        return claims.get("data")

    def set(self, key: str, value: str) -> None:
        self._written[key] = value
        signed = jwt.encode({"data": value}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
        if len(signed) > MAX_COOKIE_BYTES:
            # Browsers silently drop cookies past ~4 KB
            logger.warning("Cookie %s is %d bytes, browsers may discard it", key, len(signed))
        self.response.set_cookie(
            key=key,
            value=signed,
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite="lax",
            path="/",
            max_age=30 * 24 * 60 * 60,
        )


class CartStore:
    def __init__(self, storage: CartStorage, key: str = "cart"):
        self.storage = storage
        self.key = key
        self.items: List[CartItem] = self._load()

    def _load(self) -> List[CartItem]:
        raw = self.storage.get(self.key)
        if not raw:
            return []
        try:
            return [CartItem.model_validate(entry) for entry in json.loads(raw)]
        except (ValueError, TypeError, PydanticValidationError) as e:
            logger.error("Failed to parse stored cart: %s", e)
            return []

    def _save(self) -> None:
        payload = json.dumps([item.model_dump() for item in self.items])
        self.storage.set(self.key, payload)

    def _find(self, item) -> Optional[int]:
        wanted = line_key(item)
        for index, line in enumerate(self.items):
            if line.key == wanted:
                return index
        return None

    def add(self, item: CartItem, quantity: Optional[int] = None) -> List[CartItem]:
        qty = item.quantity if quantity is None else quantity
        if qty < 1:
            return self.items

        index = self._find(item)
        if index is not None:
            self.items[index].quantity += qty
        else:
            self.items.append(item.model_copy(update={"quantity": qty}))
        self._save()
        return self.items

    def update_quantity(self, item, quantity: int) -> List[CartItem]:
        # Dropping to zero removes the line so quantities stay >= 1
        if quantity < 1:
            return self.remove(item)

        index = self._find(item)
        if index is not None:
            self.items[index].quantity = quantity
            self._save()
        return self.items

    def remove(self, item) -> List[CartItem]:
        wanted = line_key(item)
        self.items = [line for line in self.items if line.key != wanted]
        self._save()
        return self.items

    def clear(self) -> List[CartItem]:
        self.items = []
        self._save()
        return self.items

    @property
    def count(self) -> int:
        return sum(line.quantity for line in self.items)

    @property
    def subtotal(self) -> float:
        return pricing.subtotal_of(self.items)

    def quote(self, coupon_code: Optional[str] = None, include_tax: bool = True) -> pricing.Quote:
        return pricing.quote(self.items, coupon_code=coupon_code, include_tax=include_tax)

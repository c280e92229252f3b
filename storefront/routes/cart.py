# storefront/routes/cart.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from storefront.config import settings
from storefront.database import get_db
from storefront.models.product import Product
from storefront.services.cart import CartItem, CartStore, CookieStorage
from storefront.schemas.cart import CartAddItem, CartLineRef, CartUpdateItem, CartOut, CartItemOut, QuoteOut
from storefront.utils.errors import NotFoundError, ValidationError

router = APIRouter(prefix="/cart", tags=["Cart"])


# The cart lives in a signed cookie; no session is required to shop
def get_cart_store(request: Request, response: Response) -> CartStore:
    return CartStore(CookieStorage(request, response), key=settings.CART_COOKIE_NAME)


def _cart_to_out(store: CartStore, coupon: Optional[str], include_tax: bool) -> CartOut:
    items_out = [
        CartItemOut(
            product_id=line.product_id,
            name=line.name,
            price=line.price,
            quantity=line.quantity,
            color=line.color,
            length=line.length,
            image=line.image,
            line_total=round(line.price * line.quantity, 2),
        )
        for line in store.items
    ]
    q = store.quote(coupon_code=coupon, include_tax=include_tax).rounded()
    return CartOut(items=items_out, count=store.count, quote=QuoteOut(**q.as_dict()))


def _check_variant(product: Product, color: Optional[str], length: Optional[str]) -> None:
    # Options may still be unselected; selected ones must exist on the product
    if color is not None and product.colors and color not in {c.name for c in product.colors}:
        raise ValidationError(f"Color {color!r} is not available for {product.name}")
    if length is not None and product.lengths and length not in {entry.length for entry in product.lengths}:
        raise ValidationError(f"Length {length!r} is not available for {product.name}")


@router.get("", response_model=CartOut)
def get_cart(
    coupon: Optional[str] = Query(None),
    store: CartStore = Depends(get_cart_store),
):
    # Cart page estimate: shipping and coupon, no tax
    return _cart_to_out(store, coupon, include_tax=False)


@router.get("/quote", response_model=QuoteOut)
def get_quote(
    coupon: Optional[str] = Query(None),
    include_tax: bool = Query(True),
    store: CartStore = Depends(get_cart_store),
):
    return QuoteOut(**store.quote(coupon_code=coupon, include_tax=include_tax).rounded().as_dict())


@router.post("/items", response_model=CartOut)
def add_to_cart(
    payload: CartAddItem,
    db: Session = Depends(get_db),
    store: CartStore = Depends(get_cart_store),
):
    product = db.query(Product).filter(Product.id == payload.product_id).first()
    if not product:
        raise NotFoundError("Product not found")
    _check_variant(product, payload.color, payload.length)

    # Price and name are captured now and travel with the line until checkout
    store.add(CartItem(
        product_id=product.id,
        name=product.name,
        price=product.price,
        quantity=payload.quantity,
        color=payload.color,
        length=payload.length,
        image=(product.images or [None])[0],
    ))
    return _cart_to_out(store, None, include_tax=False)


@router.put("/items", response_model=CartOut)
def update_cart_item(payload: CartUpdateItem, store: CartStore = Depends(get_cart_store)):
    store.update_quantity(payload, payload.quantity)
    return _cart_to_out(store, None, include_tax=False)


@router.delete("/items", response_model=CartOut)
def delete_cart_item(payload: CartLineRef, store: CartStore = Depends(get_cart_store)):
    store.remove(payload)
    return _cart_to_out(store, None, include_tax=False)


@router.delete("", response_model=CartOut)
def clear_cart(store: CartStore = Depends(get_cart_store)):
    store.clear()
    return _cart_to_out(store, None, include_tax=False)

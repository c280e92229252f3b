"""Order creation and the order status lifecycle."""
import logging
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.product import Product
from storefront.models.users import User
from storefront.services import pricing
from storefront.utils.errors import (
    ValidationError, NotFoundError, InvalidTransitionError, InternalError,
)

logger = logging.getLogger(__name__)

# Forward-only progress; skipping ahead is allowed, going back is not
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {
        OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED,
    },
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# States in which a tracking triple may be attached
_TRACKABLE_STATES = {OrderStatus.SHIPPED, OrderStatus.DELIVERED}

_REQUIRED_SHIPPING_FIELDS = ("first_name", "last_name", "email", "street", "city", "state", "zip", "country")


def parse_status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().upper())
    except ValueError:
        raise ValidationError(f"Invalid order status: {value!r}")


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target == current or target in _VALID_TRANSITIONS.get(current, set())


def format_shipping_address(shipping) -> str:
    """street[, apt], city, state zip, country"""
    address = shipping.street
    if getattr(shipping, "apt", None):
        address += f", {shipping.apt}"
    return f"{address}, {shipping.city}, {shipping.state} {shipping.zip}, {shipping.country}"


def _require_shipping_fields(shipping) -> None:
    if shipping is None:
        raise ValidationError("Shipping details are required")
    missing = [f for f in _REQUIRED_SHIPPING_FIELDS if not (getattr(shipping, f, None) or "").strip()]
    if missing:
        raise ValidationError(f"Missing required shipping fields: {', '.join(missing)}")


def load_order(db: Session, order_id: int) -> Order:
    order = db.query(Order).options(
        joinedload(Order.items), joinedload(Order.user)
    ).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Order not found")
    return order


def create_order(
    db: Session,
    user: User,
    items: Iterable,
    shipping,
    payment=None,
    coupon_code: Optional[str] = None,
) -> Order:
    """Place an order from a cart snapshot.

    Totals are recomputed from the submitted lines using the checkout quote;
    line prices are copied as captured in the cart, not re-read from the
    catalog. Clearing the cart afterwards is the caller's job.
    """
    lines = list(items or [])
    if not lines:
        raise ValidationError("Cart is empty")
    _require_shipping_fields(shipping)

    for line in lines:
        if line.quantity < 1:
            raise ValidationError("Quantities must be at least 1")

    product_ids = {line.product_id for line in lines}
    products = {p.id: p for p in db.query(Product).filter(Product.id.in_(product_ids)).all()}
    unknown = sorted(product_ids - set(products))
    if unknown:
        raise ValidationError(f"Unknown products in cart: {unknown}")

    q = pricing.quote(lines, coupon_code=coupon_code, include_tax=True).rounded()

    order = Order(
        user_id=user.id,
        status=OrderStatus.PENDING,
        subtotal=q.subtotal,
        shipping=q.shipping,
        tax=q.tax,
        discount=q.discount,
        coupon_code=coupon_code if q.discount else None,
        total=q.total,
        shipping_address=format_shipping_address(shipping),
        contact_name=f"{shipping.first_name} {shipping.last_name}".strip(),
        contact_email=shipping.email,
        contact_phone=getattr(shipping, "phone", None),
        payment_method=getattr(payment, "method", None),
        payment_last4=getattr(payment, "last4", None),
        payment_brand=getattr(payment, "brand", None),
        payment_email=getattr(payment, "email", None),
    )
    order.items = [
        OrderItem(
            product_id=line.product_id,
            product_name=getattr(line, "name", None) or products[line.product_id].name,
            price=line.price,
            quantity=line.quantity,
            color=line.color,
            length=line.length,
        )
        for line in lines
    ]

    # Header and line items commit together or not at all
    db.add(order)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to create order for user %s", user.id)
        raise InternalError()

    db.refresh(order)
    logger.info("Order %s created for user %s (total %.2f)", order.id, user.id, order.total)
    return order


def update_order(
    db: Session,
    order_id: int,
    status=None,
    tracking_carrier: Optional[str] = None,
    tracking_number: Optional[str] = None,
    tracking_url: Optional[str] = None,
    notes: Optional[str] = None,
) -> Order:
    """Admin update of status, tracking triple and notes.

    Fields left as None are not touched; an empty string clears a field.
    """
    target = parse_status(status) if status is not None else None

    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Order not found")

    current = order.status
    if target is not None and not can_transition(current, target):
        raise InvalidTransitionError(f"Cannot change status from {current.value} to {target.value}")
    resulting = target or current

    tracking = {
        "tracking_carrier": tracking_carrier,
        "tracking_number": tracking_number,
        "tracking_url": tracking_url,
    }
    if any(v for v in tracking.values()) and resulting not in _TRACKABLE_STATES:
        raise ValidationError(f"Tracking information requires a shipped order, status is {resulting.value}")

    order.status = resulting
    for field, value in tracking.items():
        if value is not None:
            setattr(order, field, value or None)
    if notes is not None:
        order.notes = notes or None

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to update order %s", order_id)
        raise InternalError()

    if resulting != current:
        logger.info("Order %s status %s -> %s", order_id, current.value, resulting.value)
    return load_order(db, order_id)

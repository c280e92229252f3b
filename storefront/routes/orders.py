# storefront/routes/orders.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.models.users import User, UserRole
from storefront.routes.cart import get_cart_store
from storefront.schemas.order import OrderCreatePayload, OrderResponse, OrdersPage, OrderUpdatePayload
from storefront.services import catalog, orders as order_service
from storefront.services.cart import CartStore, line_key
from storefront.utils.audit import write_log, order_snapshot
from storefront.utils.errors import ForbiddenError, ValidationError
from storefront.utils.tokenJWT import get_current_user, admin_required

router = APIRouter(tags=["Orders"])


def _is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN


def _page_out(page: catalog.Page) -> OrdersPage:
    return OrdersPage(
        items=[OrderResponse.model_validate(o) for o in page.items],
        total=page.total, page=page.page, limit=page.limit, pages=page.pages,
    )


def _checkout_lines(submitted, store: CartStore):
    """Lines to bill. Prices always come from the signed cart cookie.

    Submitted lines only select which cart lines to buy and in what
    quantity; each must match a cart line by product, color, length and price.
    """
    if submitted is None:
        return store.items

    in_cart = {line.key: line for line in store.items}
    lines = []
    for line in submitted:
        cart_line = in_cart.get(line_key(line))
        if cart_line is None or round(cart_line.price, 2) != round(line.price, 2):
            raise ValidationError(f"Line for product {line.product_id} does not match the cart")
        lines.append(cart_line.model_copy(update={"quantity": line.quantity}))
    return lines


# Place an order from the submitted lines or, when omitted, the cart cookie
@router.post("/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreatePayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    store: CartStore = Depends(get_cart_store),
):
    items = _checkout_lines(payload.items, store)

    order = order_service.create_order(
        db, current_user, items, payload.shipping,
        payment=payload.payment, coupon_code=payload.coupon_code,
    )
    store.clear()

    write_log(
        db, request, action="ORDER_CREATE", resource="orders", user_id=current_user.id,
        resource_id=order.id, meta={"after": order_snapshot(order)},
    )
    return order_service.load_order(db, order.id)


# Current user's order history; admins see every order
@router.get("/orders", response_model=OrdersPage)
def list_my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user_id = None if _is_admin(current_user) else current_user.id
    return _page_out(catalog.list_orders(db, user_id=user_id, page=page, limit=limit))


@router.get("/orders/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = order_service.load_order(db, order_id)
    if order.user_id != current_user.id and not _is_admin(current_user):
        raise ForbiddenError("Not allowed to view this order")
    return order


# =========================
# BACK OFFICE
# =========================
@router.get("/admin/orders", response_model=OrdersPage)
def admin_list_orders(
    status_filter: Optional[str] = Query(None, alias="status"),
    user_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, description="Customer name, email or address"),
    sort: str = Query("created_at"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    result = catalog.list_orders(
        db, status=status_filter, user_id=user_id, search=search,
        sort=sort, order=order, page=page, limit=limit,
    )
    return _page_out(result)


@router.get("/admin/orders/{order_id}", response_model=OrderResponse)
def admin_get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    return order_service.load_order(db, order_id)


# Status transition plus tracking and notes
@router.put("/admin/orders/{order_id}", response_model=OrderResponse)
def admin_update_order(
    order_id: int,
    payload: OrderUpdatePayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    before = order_snapshot(order_service.load_order(db, order_id))
    order = order_service.update_order(db, order_id, **payload.model_dump())

    write_log(
        db, request, action="ORDER_UPDATE", resource="orders", user_id=current_user.id,
        resource_id=order_id, meta={"before": before, "after": order_snapshot(order)},
    )
    return order_service.load_order(db, order_id)

"""Audit trail for sign-ins and back office changes.

Each entry names the resource kind ("auth", "products", "orders", "users")
and, where one exists, the id of the row that was touched, so the admin log
view can show the history of a single order or product.
"""
from typing import Any, Dict, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from storefront.models.log import Log


def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    # First hop of X-Forwarded-For when running behind a proxy
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()[:64]
    return request.client.host if request.client else None


def order_snapshot(order) -> Dict[str, Any]:
    return {
        "status": order.status.value,
        "total": order.total,
        "discount": order.discount,
        "coupon_code": order.coupon_code,
        "units": sum(item.quantity for item in order.items),
        "tracking_number": order.tracking_number,
    }


def product_snapshot(product) -> Dict[str, Any]:
    return {
        "name": product.name,
        "category": product.category,
        "price": product.price,
        "stock": product.stock,
    }


def bulk_status(result) -> str:
    if not result.failed:
        return "SUCCESS"
    return "PARTIAL" if result.deleted else "FAIL"


def write_log(
    db: Session,
    request: Optional[Request],
    *,
    action: str,
    resource: str,
    user_id: Optional[int] = None,
    resource_id: Optional[int] = None,
    status: str = "SUCCESS",
    meta: Optional[Dict[str, Any]] = None,
) -> Log:
    entry = Log(
        user_id=user_id,
        action=action,
        resource=resource,
        resource_id=resource_id,
        status=status,
        ip=client_ip(request),
        meta=meta or {},
    )
    db.add(entry)
    db.commit()
    return entry

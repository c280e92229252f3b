"""Filtered, paginated listings and guarded deletes for products, orders and users."""
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy import or_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from storefront.models.order import Order, OrderItem
from storefront.models.product import Product, ProductColor, ProductLength
from storefront.models.users import User, UserRole, UserStatus
from storefront.services.orders import parse_status
from storefront.utils.errors import (
    StoreError, ValidationError, NotFoundError, ConflictError, InternalError,
)

logger = logging.getLogger(__name__)

MAX_LIMIT = 100


@dataclass
class Page:
    items: List[Any]
    total: int
    page: int
    limit: int
    pages: int


@dataclass
class BulkResult:
    requested: int = 0
    deleted: int = 0
    failed: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)


def paginate(query: Query, page: int = 1, limit: int = 20) -> Page:
    if page < 1:
        raise ValidationError("page must be >= 1")
    if limit < 1:
        raise ValidationError("limit must be > 0")
    limit = min(limit, MAX_LIMIT)

    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return Page(items=items, total=total, page=page, limit=limit, pages=math.ceil(total / limit))


def _apply_sort(query: Query, allowed: Dict[str, Any], sort: Optional[str], order: Optional[str],
                default_sort: str, default_order: str) -> Query:
    # Unknown sort fields fall back to the default instead of reaching SQL
    col = allowed.get((sort or "").lower(), allowed[default_sort])
    direction = (order or default_order).lower()
    return query.order_by(col.desc() if direction == "desc" else col.asc())


def _commit(db: Session, what: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Database error while %s", what)
        raise InternalError()


# ---- PRODUCTS ----

PRODUCT_SORTS = {
    "name": Product.name,
    "price": Product.price,
    "stock": Product.stock,
    "rating": Product.rating,
    "category": Product.category,
    "created_at": Product.created_at,
    "createdat": Product.created_at,
}


def list_products(
    db: Session,
    category: Optional[str] = None,
    featured: Optional[bool] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
    order: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Page:
    query = db.query(Product).options(selectinload(Product.colors), selectinload(Product.lengths))

    if category:
        query = query.filter(Product.category.ilike(f"%{category}%"))
    if featured:
        query = query.filter(Product.featured.is_(True))
    if search:
        like = f"%{search}%"
        query = query.filter(or_(Product.name.ilike(like), Product.description.ilike(like)))

    # id as tie-breaker keeps pages stable
    query = _apply_sort(query, PRODUCT_SORTS, sort, order, "name", "asc").order_by(Product.id.asc())
    return paginate(query, page, limit)


def list_categories(db: Session) -> List[str]:
    rows = db.query(Product.category).distinct().filter(Product.category != None, Product.category != "").all()  # noqa: E711
    return sorted(r[0] for r in rows)


def get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).options(
        selectinload(Product.colors), selectinload(Product.lengths)
    ).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def _variant_rows(colors: Optional[Iterable], lengths: Optional[Iterable]):
    color_rows = None
    if colors is not None:
        color_rows = [ProductColor(name=c["name"], value=c["value"]) for c in colors]
    length_rows = None
    if lengths is not None:
        # Accept both {"length": "18 inches"} and bare "18 inches"
        length_rows = [
            ProductLength(length=entry["length"] if isinstance(entry, dict) else str(entry))
            for entry in lengths
        ]
    return color_rows, length_rows


def create_product(db: Session, data: Dict[str, Any]) -> Product:
    for required in ("name", "description", "category"):
        if not (data.get(required) or "").strip():
            raise ValidationError("Name, description, price, and category are required")
    if data.get("price") is None:
        raise ValidationError("Name, description, price, and category are required")

    color_rows, length_rows = _variant_rows(data.get("colors"), data.get("lengths"))
    product = Product(
        name=data["name"].strip(),
        description=data["description"],
        price=float(data["price"]),
        images=list(data.get("images") or []),
        category=data["category"].strip(),
        featured=bool(data.get("featured") or False),
        stock=int(data.get("stock") or 0),
        rating=0.0,
        review_count=0,
        colors=color_rows or [],
        lengths=length_rows or [],
    )
    db.add(product)
    _commit(db, "creating product")
    logger.info("Product %s created", product.id)
    return get_product(db, product.id)


_PRODUCT_FIELDS = ("name", "description", "price", "images", "category", "featured", "stock")


def update_product(db: Session, product_id: int, data: Dict[str, Any]) -> Product:
    """Apply the supplied fields; supplied color/length lists replace the old ones."""
    product = get_product(db, product_id)

    for required in ("name", "description", "category"):
        if required in data and data[required] is not None and not data[required].strip():
            raise ValidationError(f"Product {required} cannot be blank")

    for key in _PRODUCT_FIELDS:
        if key in data and data[key] is not None:
            setattr(product, key, data[key])

    color_rows, length_rows = _variant_rows(data.get("colors"), data.get("lengths"))
    # delete-orphan cascade removes the previous rows in the same transaction
    if color_rows is not None:
        product.colors = color_rows
    if length_rows is not None:
        product.lengths = length_rows

    _commit(db, f"updating product {product_id}")
    db.expire(product)
    return get_product(db, product_id)


def delete_product(db: Session, product_id: int) -> None:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product not found")

    ordered = db.query(OrderItem.id).filter(OrderItem.product_id == product_id).first()
    if ordered:
        raise ConflictError("Cannot delete product that has been ordered. Consider updating its stock to 0 instead.")

    db.delete(product)
    _commit(db, f"deleting product {product_id}")
    logger.info("Product %s deleted", product_id)


# ---- ORDERS ----

ORDER_SORTS = {
    "created_at": Order.created_at,
    "createdat": Order.created_at,
    "total": Order.total,
    "status": Order.status,
    "id": Order.id,
}


def list_orders(
    db: Session,
    status: Optional[str] = None,
    user_id: Optional[int] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
    order: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Page:
    query = db.query(Order).options(selectinload(Order.items), selectinload(Order.user))

    if status:
        query = query.filter(Order.status == parse_status(status))
    if user_id is not None:
        query = query.filter(Order.user_id == user_id)
    if search:
        like = f"%{search}%"
        query = query.join(User, Order.user_id == User.id).filter(
            or_(User.email.ilike(like), User.name.ilike(like), Order.shipping_address.ilike(like))
        )

    query = _apply_sort(query, ORDER_SORTS, sort, order, "created_at", "desc").order_by(Order.id.desc())
    return paginate(query, page, limit)


# ---- USERS ----

USER_SORTS = {
    "created_at": User.created_at,
    "createdat": User.created_at,
    "name": User.name,
    "email": User.email,
    "role": User.role,
    "id": User.id,
}


def list_users(
    db: Session,
    search: Optional[str] = None,
    role: Optional[str] = None,
    sort: Optional[str] = None,
    order: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Page:
    query = db.query(User)

    if search:
        like = f"%{search}%"
        query = query.filter(or_(User.name.ilike(like), User.email.ilike(like)))
    if role:
        try:
            query = query.filter(User.role == UserRole(role.strip().upper()))
        except ValueError:
            raise ValidationError(f"Invalid role: {role!r}")

    query = _apply_sort(query, USER_SORTS, sort, order, "created_at", "desc").order_by(User.id.desc())
    return paginate(query, page, limit)


def order_counts(db: Session, user_ids: List[int]) -> Dict[int, int]:
    if not user_ids:
        return {}
    rows = db.query(Order.user_id, func.count(Order.id)).filter(
        Order.user_id.in_(user_ids)
    ).group_by(Order.user_id).all()
    return {user_id: count for user_id, count in rows}


def get_user(db: Session, user_id: int):
    """Return (user, order_count, five most recent orders)."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    count = db.query(func.count(Order.id)).filter(Order.user_id == user_id).scalar() or 0
    recent = db.query(Order).filter(Order.user_id == user_id).order_by(
        Order.created_at.desc(), Order.id.desc()
    ).limit(5).all()
    return user, count, recent


_USER_FIELDS = ("name", "phone", "street", "city", "state", "zip", "country")


def update_user(db: Session, user_id: int, data: Dict[str, Any], allow_admin_fields: bool = True) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")

    email = data.get("email")
    if email:
        email = email.strip().lower()
        taken = db.query(User.id).filter(func.lower(User.email) == email, User.id != user_id).first()
        if taken:
            raise ConflictError("User with this email already exists")
        user.email = email

    for key in _USER_FIELDS:
        if data.get(key) is not None:
            setattr(user, key, data[key])

    if allow_admin_fields:
        if data.get("role"):
            try:
                user.role = UserRole(str(data["role"]).strip().upper())
            except ValueError:
                raise ValidationError(f"Invalid role: {data['role']!r}")
        if data.get("status"):
            try:
                user.status = UserStatus(str(data["status"]).strip().upper())
            except ValueError:
                raise ValidationError(f"Invalid status: {data['status']!r}")

    _commit(db, f"updating user {user_id}")
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: int, acting_user: Optional[User] = None) -> None:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    if acting_user is not None and acting_user.id == user.id:
        raise ValidationError("You cannot delete your own account")

    has_orders = db.query(Order.id).filter(Order.user_id == user_id).first()
    if has_orders:
        raise ConflictError("Cannot delete user with existing orders")

    db.delete(user)
    _commit(db, f"deleting user {user_id}")
    logger.info("User %s deleted", user_id)


# ---- BULK ----

def bulk_delete(ids: Iterable[int], delete_one: Callable[[int], None]) -> BulkResult:
    """Delete ids one at a time; a failing id is recorded and the loop goes on."""
    result = BulkResult()
    for item_id in ids:
        result.requested += 1
        try:
            delete_one(item_id)
        except StoreError as e:
            result.failed += 1
            result.errors.append({"id": item_id, "detail": e.detail})
        else:
            result.deleted += 1
    logger.info("Bulk delete: %s of %s deleted", result.deleted, result.requested)
    return result

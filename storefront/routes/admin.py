# storefront/routes/admin.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.models.users import User
from storefront.schemas.order import OrderSummary
from storefront.schemas.product import BulkDeleteRequest, BulkDeleteResponse
from storefront.schemas.user import UserAdminUpdate, UserDetail, UserListItem, UsersPage
from storefront.services import catalog
from storefront.utils.audit import write_log, bulk_status
from storefront.utils.tokenJWT import admin_required

router = APIRouter(prefix="/admin/users", tags=["Admin"])


# Retrieve customers with search, role filter, sorting and pagination
@router.get("", response_model=UsersPage)
def get_all_users(
    search: Optional[str] = Query(None, description="Search name or e-mail"),
    role: Optional[str] = Query(None, description="USER or ADMIN"),
    sort: str = Query("created_at"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    result = catalog.list_users(db, search=search, role=role, sort=sort, order=order, page=page, limit=limit)
    counts = catalog.order_counts(db, [u.id for u in result.items])

    items = []
    for user in result.items:
        item = UserListItem.model_validate(user)
        item.order_count = counts.get(user.id, 0)
        items.append(item)

    return {
        "items": items,
        "total": result.total,
        "page": result.page,
        "limit": result.limit,
        "pages": result.pages,
    }


@router.get("/{user_id}", response_model=UserDetail)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    user, count, recent = catalog.get_user(db, user_id)
    detail = UserDetail.model_validate(user)
    detail.order_count = count
    detail.recent_orders = [OrderSummary.model_validate(o) for o in recent]
    return detail


@router.put("/{user_id}", response_model=UserDetail)
def update_user(
    user_id: int,
    payload: UserAdminUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    data = payload.model_dump(exclude_unset=True)
    user = catalog.update_user(db, user_id, data)
    write_log(
        db, request, action="USER_UPDATE", resource="users", user_id=current_user.id,
        resource_id=user_id,
        meta={
            "email": user.email, "fields": sorted(data.keys()),
            "role": user.role.value, "status": user.status.value,
        },
    )
    return get_user(user_id, db, current_user)


# Delete a customer account; refused while the customer has orders
@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    catalog.delete_user(db, user_id, acting_user=current_user)
    write_log(
        db, request, action="USER_DELETE", resource="users", user_id=current_user.id,
        resource_id=user_id,
    )
    return {"success": True}


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
def bulk_delete_users(
    payload: BulkDeleteRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    result = catalog.bulk_delete(
        payload.ids, lambda uid: catalog.delete_user(db, uid, acting_user=current_user)
    )
    write_log(
        db, request, action="USER_BULK_DELETE", resource="users", user_id=current_user.id,
        status=bulk_status(result),
        meta={"ids": payload.ids, "deleted": result.deleted, "failed": result.failed, "errors": result.errors},
    )
    return BulkDeleteResponse(**vars(result))

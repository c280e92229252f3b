# storefront/routes/products.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.models.users import User
from storefront.services import catalog
from storefront.utils.audit import write_log, product_snapshot, bulk_status
from storefront.utils.tokenJWT import admin_required
import storefront.schemas.product as product_schemas

router = APIRouter(tags=["Products"])


def _page_out(page: catalog.Page) -> product_schemas.ProductListPage:
    return product_schemas.ProductListPage(
        items=[product_schemas.ProductOut.model_validate(p) for p in page.items],
        total=page.total, page=page.page, limit=page.limit, pages=page.pages,
    )


def _payload_data(payload) -> dict:
    # Only fields the client sent; variant lists stay absent unless replaced
    return payload.model_dump(exclude_unset=True)


# =========================
# STOREFRONT CATALOG
# =========================
@router.get("/products", response_model=product_schemas.ProductListPage)
def list_products(
    category: Optional[str] = Query(None, description="Category substring, case-insensitive"),
    featured: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Search name and description"),
    sort: str = Query("name"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    result = catalog.list_products(
        db, category=category, featured=featured, search=search,
        sort=sort, order=order, page=page, limit=limit,
    )
    return _page_out(result)


@router.get("/products/categories", response_model=List[str])
def list_categories(db: Session = Depends(get_db)):
    return catalog.list_categories(db)


@router.get("/products/{product_id}", response_model=product_schemas.ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return catalog.get_product(db, product_id)


# =========================
# BACK OFFICE
# =========================
@router.get("/admin/products", response_model=product_schemas.ProductListPage)
def admin_list_products(
    category: Optional[str] = Query(None),
    featured: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    sort: str = Query("name"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    result = catalog.list_products(
        db, category=category, featured=featured, search=search,
        sort=sort, order=order, page=page, limit=limit,
    )
    return _page_out(result)


@router.get("/admin/products/{product_id}", response_model=product_schemas.ProductOut)
def admin_get_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    return catalog.get_product(db, product_id)


@router.post("/admin/products", response_model=product_schemas.ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    product = catalog.create_product(db, _payload_data(payload))
    write_log(
        db, request, action="PRODUCT_CREATE", resource="products", user_id=current_user.id,
        resource_id=product.id, meta={"after": product_snapshot(product)},
    )
    return product


@router.put("/admin/products/{product_id}", response_model=product_schemas.ProductOut)
def update_product(
    product_id: int,
    payload: product_schemas.ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    data = _payload_data(payload)
    before = product_snapshot(catalog.get_product(db, product_id))
    product = catalog.update_product(db, product_id, data)
    write_log(
        db, request, action="PRODUCT_UPDATE", resource="products", user_id=current_user.id,
        resource_id=product_id,
        meta={"fields": sorted(data.keys()), "before": before, "after": product_snapshot(product)},
    )
    return product


@router.delete("/admin/products/{product_id}")
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    before = product_snapshot(catalog.get_product(db, product_id))
    catalog.delete_product(db, product_id)
    write_log(
        db, request, action="PRODUCT_DELETE", resource="products", user_id=current_user.id,
        resource_id=product_id, meta={"before": before},
    )
    return {"success": True}


@router.post("/admin/products/bulk-delete", response_model=product_schemas.BulkDeleteResponse)
def bulk_delete_products(
    payload: product_schemas.BulkDeleteRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    result = catalog.bulk_delete(payload.ids, lambda pid: catalog.delete_product(db, pid))
    write_log(
        db, request, action="PRODUCT_BULK_DELETE", resource="products", user_id=current_user.id,
        status=bulk_status(result),
        meta={"ids": payload.ids, "deleted": result.deleted, "failed": result.failed, "errors": result.errors},
    )
    return product_schemas.BulkDeleteResponse(**vars(result))

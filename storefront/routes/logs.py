# storefront/routes/logs.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional, Any
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from storefront.database import get_db
from storefront.models.log import Log
from storefront.models.users import User
from storefront.services.catalog import paginate
from storefront.utils.errors import ValidationError
from storefront.utils.tokenJWT import admin_required

router = APIRouter(prefix="/admin/logs", tags=["Logs"])


class LogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[int] = None
    action: str
    resource: str
    resource_id: Optional[int] = None
    status: str
    ip: Optional[str] = None
    ts: datetime
    meta: Optional[Any] = None


class LogPage(BaseModel):
    items: List[LogResponse]
    total: int
    page: int
    limit: int
    pages: int


def _parse_date(value: str, end_of_day: bool = False) -> datetime:
    # Bare dates cover the whole day when used as an upper bound
    if end_of_day and len(value) == 10:
        value += " 23:59:59"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r}")


@router.get("", response_model=LogPage)
def get_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None, description="Action substring"),
    user_id: Optional[int] = Query(None),
    resource: Optional[str] = Query(None),
    resource_id: Optional[int] = Query(None, description="Id of the touched order, product or user"),
    status: Optional[str] = Query(None, description="SUCCESS, FAIL or PARTIAL"),
    date_from: Optional[str] = Query(None, description="YYYY-MM-DD"),
    date_to: Optional[str] = Query(None, description="YYYY-MM-DD"),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    query = db.query(Log)

    if action:
        query = query.filter(Log.action.ilike(f"%{action}%"))
    if user_id is not None:
        query = query.filter(Log.user_id == user_id)
    if resource:
        query = query.filter(Log.resource.ilike(f"%{resource}%"))
    if resource_id is not None:
        query = query.filter(Log.resource_id == resource_id)
    if status:
        query = query.filter(Log.status == status.upper())
    if date_from:
        query = query.filter(Log.ts >= _parse_date(date_from))
    if date_to:
        query = query.filter(Log.ts <= _parse_date(date_to, end_of_day=True))

    result = paginate(query.order_by(Log.ts.desc(), Log.id.desc()), page, limit)
    return {
        "items": result.items,
        "total": result.total,
        "page": result.page,
        "limit": result.limit,
        "pages": result.pages,
    }

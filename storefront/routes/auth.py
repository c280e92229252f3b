# storefront/routes/auth.py
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.models.users import User, UserRole, UserStatus
from storefront.schemas import user as schemas
from storefront.services import catalog
from storefront.utils.audit import write_log
from storefront.utils.errors import ConflictError, ForbiddenError, UnauthorizedError
from storefront.utils.hashing import get_password_hash, verify_password
from storefront.utils.tokenJWT import (
    bearer_scheme, create_session, end_session, get_current_user, admin_required,
    set_session_cookie, clear_session_cookie, request_token,
)

router = APIRouter(tags=["Auth"])


def _find_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def _sign_in(db: Session, user: User, response: Response) -> schemas.AuthResponse:
    token = create_session(db, user)
    set_session_cookie(response, token)
    return schemas.AuthResponse(user=schemas.UserResponse.model_validate(user), access_token=token)


def _audit(db: Session, request: Request, action: str, user: Optional[User], outcome: str = "SUCCESS", **meta) -> None:
    if user is not None:
        meta.setdefault("email", user.email)
    user_id = user.id if user else None
    write_log(db, request, action=action, resource="auth", user_id=user_id,
              resource_id=user_id, status=outcome, meta=meta)


def _authenticate(db: Session, payload: schemas.UserLogin, request: Request, action: str) -> User:
    user = _find_by_email(db, payload.email)

    # Validate credentials and log failure on error
    if not user or not verify_password(payload.password, user.password_hash):
        _audit(db, request, action, user, "FAIL", email=payload.email, reason="bad credentials")
        raise UnauthorizedError("Invalid email or password")

    if user.status == UserStatus.SUSPENDED:
        _audit(db, request, action, user, "FAIL", reason="suspended")
        raise ForbiddenError("Account is suspended. Please contact support.")
    return user


# Register a new customer and sign them in
@router.post("/auth/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.UserCreate, request: Request, response: Response, db: Session = Depends(get_db)):
    normalized_email = payload.email.strip().lower()

    if _find_by_email(db, normalized_email):
        _audit(db, request, "REGISTER", None, "FAIL", email=normalized_email, reason="email exists")
        raise ConflictError("User with this email already exists")

    new_user = User(
        email=normalized_email,
        password_hash=get_password_hash(payload.password),
        name=payload.name.strip(),
        role=UserRole.USER,
        status=UserStatus.ACTIVE,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    _audit(db, request, "REGISTER", new_user)
    return _sign_in(db, new_user, response)


@router.post("/auth/login", response_model=schemas.AuthResponse)
def login(payload: schemas.UserLogin, request: Request, response: Response, db: Session = Depends(get_db)):
    user = _authenticate(db, payload, request, "LOGIN")
    _audit(db, request, "LOGIN", user)
    return _sign_in(db, user, response)


@router.post("/auth/logout")
def logout(
    request: Request,
    response: Response,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
):
    end_session(db, request_token(request, credentials))
    clear_session_cookie(response)
    return {"success": True}


@router.get("/auth/me", response_model=schemas.UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/auth/me", response_model=schemas.UserResponse)
def update_me(
    payload: schemas.ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    data = payload.model_dump(exclude_unset=True)
    return catalog.update_user(db, current_user.id, data, allow_admin_fields=False)


# Back office login: same credentials check, admins only
@router.post("/admin/auth/login", response_model=schemas.AuthResponse)
def admin_login(payload: schemas.UserLogin, request: Request, response: Response, db: Session = Depends(get_db)):
    user = _authenticate(db, payload, request, "ADMIN_LOGIN")
    if user.role != UserRole.ADMIN:
        _audit(db, request, "ADMIN_LOGIN", user, "FAIL", reason="not admin")
        raise ForbiddenError("Unauthorized. Admin access required.")

    _audit(db, request, "ADMIN_LOGIN", user)
    return _sign_in(db, user, response)


@router.get("/admin/auth/me", response_model=schemas.UserResponse)
def admin_me(current_user: User = Depends(admin_required)):
    return current_user

# storefront/utils/tokenJWT.py
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from fastapi import Depends, Request, Response
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session as DbSession

from storefront.config import settings
from storefront.database import get_db
from storefront.models.users import User, Session, UserStatus
from storefront.utils.errors import UnauthorizedError, ForbiddenError

logger = logging.getLogger(__name__)

# Cookie is the primary transport; the bearer header serves API clients
bearer_scheme = HTTPBearer(auto_error=False)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


# Open a server-side session and return the signed token that references it
def create_session(db: DbSession, user: User) -> str:
    token = secrets.token_hex(32)
    expires_at = _utcnow() + timedelta(days=settings.SESSION_EXPIRE_DAYS)
    db.add(Session(user_id=user.id, token=token, expires_at=expires_at))
    db.commit()

    claims = {
        "sub": user.email,
        "role": user.role.value,
        "sid": token,
        "exp": expires_at.replace(tzinfo=timezone.utc),
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _session_id(token: str) -> Optional[str]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    return payload.get("sid")


# Delete the session a signed token refers to (logout)
def end_session(db: DbSession, token: Optional[str]) -> None:
    sid = _session_id(token) if token else None
    if not sid:
        return
    db.query(Session).filter(Session.token == sid).delete()
    db.commit()


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
        path="/",
        max_age=settings.SESSION_EXPIRE_DAYS * 24 * 60 * 60,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME, path="/")


def request_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


# Retrieve the user owning the session referenced by the cookie or bearer token
def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: DbSession = Depends(get_db),
) -> User:
    token = request_token(request, credentials)
    if not token:
        raise UnauthorizedError("Not authenticated")

    sid = _session_id(token)
    if sid is None:
        raise UnauthorizedError("Could not validate credentials")

    session = db.query(Session).filter(Session.token == sid).first()
    if session is None:
        raise UnauthorizedError("Session not found")

    if session.expires_at < _utcnow():
        # Expired sessions are removed on first sight
        logger.info("Session for user %s expired", session.user_id)
        db.delete(session)
        db.commit()
        raise UnauthorizedError("Session expired")

    user = session.user
    if user.status == UserStatus.SUSPENDED:
        raise ForbiddenError("Account is suspended. Please contact support.")
    return user


# Dependency factory for role-based access control
def role_required(*allowed_roles):
    def _checker(current_user: User = Depends(get_current_user)):
        if allowed_roles and current_user.role.value not in allowed_roles:
            raise ForbiddenError("Forbidden")
        return current_user
    return _checker


admin_required = role_required("ADMIN")

"""
Admin authentication for the storefront.

The store owner logs in with a single password (bcrypt hash kept in the store
settings) and receives a signed session cookie. Automation can use the
X-Admin-Key header instead when ADMIN_API_KEY is configured.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from passlib.context import CryptContext

from storefront.core.config import Settings, get_settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a plain password against a stored hash. Unknown hash formats never match."""
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def create_session_token(settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=settings.SESSION_TTL_DAYS))
    payload = {"admin": True, "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_session_token(token: str, settings: Settings) -> Optional[dict]:
    """Return the token claims, or None if the token is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if not payload.get("admin"):
        return None
    return payload


def session_cookie_options(settings: Settings) -> dict:
    return {
        "httponly": True,
        "samesite": "lax",
        "secure": settings.is_production,
        "max_age": settings.SESSION_TTL_DAYS * 24 * 60 * 60,
    }


def is_admin_request(request: Request, settings: Settings) -> bool:
    """True when the request carries a valid admin key or session cookie."""
    provided_key = request.headers.get("x-admin-key")
    if settings.ADMIN_API_KEY and provided_key:
        if secrets.compare_digest(provided_key.encode("utf8"), settings.ADMIN_API_KEY.encode("utf8")):
            return True

    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token and decode_session_token(token, settings):
        return True
    return False


def get_current_admin(request: Request, settings: Settings = Depends(get_settings)) -> bool:
    """
    Admin gate - session cookie or X-Admin-Key header
    """
    if not is_admin_request(request, settings):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="auth required",
        )
    return True


def require_admin():
    """
    Dependency to require an admin session
    Usage: @router.get("/", dependencies=[require_admin()])
    """
    return Depends(get_current_admin)

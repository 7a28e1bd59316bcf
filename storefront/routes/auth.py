"""Owner login, logout and password management."""
import logging

from fastapi import APIRouter, Depends, Request, Response

from storefront.core.config import Settings, get_settings
from storefront.core.exceptions import AuthenticationError
from storefront.core.security import (
    create_session_token,
    is_admin_request,
    session_cookie_options,
)
from storefront.dependencies import get_store_service
from storefront.schemas.store import LoginRequest, PasswordChange
from storefront.services.store_service import StoreService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/auth/login")
@router.post("/login")
async def login(
    credentials: LoginRequest,
    response: Response,
    store_service: StoreService = Depends(get_store_service),
    settings: Settings = Depends(get_settings),
):
    if not await store_service.verify_password(credentials.password):
        logger.warning("Failed owner login attempt")
        raise AuthenticationError("wrong password")

    token = create_session_token(settings)
    response.set_cookie(settings.SESSION_COOKIE_NAME, token, **session_cookie_options(settings))
    logger.info("Owner logged in")
    return {"ok": True}


@router.post("/auth/logout")
async def logout(response: Response, settings: Settings = Depends(get_settings)):
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"ok": True}


@router.get("/auth/me")
async def me(request: Request, settings: Settings = Depends(get_settings)):
    logged_in = is_admin_request(request, settings)
    return {"ok": logged_in, "loggedIn": logged_in}


@router.post("/admin/password")
async def change_password(
    body: PasswordChange,
    request: Request,
    store_service: StoreService = Depends(get_store_service),
    settings: Settings = Depends(get_settings),
):
    """Set a new owner password. Requires an admin session or the current password."""
    await store_service.change_password(
        body.password,
        current_password=body.current_password,
        is_admin=is_admin_request(request, settings),
    )
    return {"ok": True}

# tests/unit/core/test_security.py
from datetime import timedelta

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from storefront.core.security import (
    create_session_token,
    decode_session_token,
    get_current_admin,
    get_password_hash,
    is_admin_request,
    session_cookie_options,
    verify_password,
)


def make_request(headers=None):
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw_headers})


def test_password_hash_round_trip():
    hashed = get_password_hash("owner-pass")
    assert hashed != "owner-pass"
    assert verify_password("owner-pass", hashed) is True
    assert verify_password("other-pass", hashed) is False


@pytest.mark.parametrize("plain, hashed", [("", "$2b$12$abc"), ("pw", None), ("pw", "not-a-bcrypt-hash")])
def test_verify_password_never_matches_bad_input(plain, hashed):
    assert verify_password(plain, hashed) is False


def test_session_token_round_trip(settings):
    token = create_session_token(settings)
    claims = decode_session_token(token, settings)
    assert claims["admin"] is True


def test_expired_session_token_rejected(settings):
    token = create_session_token(settings, expires_delta=timedelta(seconds=-10))
    assert decode_session_token(token, settings) is None


def test_token_signed_with_other_secret_rejected(settings):
    other = settings.model_copy(update={"SECRET_KEY": "someone-else"})
    assert decode_session_token(create_session_token(other), settings) is None


def test_cookie_is_secure_only_in_production(settings):
    assert session_cookie_options(settings)["secure"] is False
    assert session_cookie_options(settings)["httponly"] is True
    production = settings.model_copy(update={"ENVIRONMENT": "production"})
    assert session_cookie_options(production)["secure"] is True


def test_admin_key_header_grants_access(settings):
    assert is_admin_request(make_request({"X-Admin-Key": settings.ADMIN_API_KEY}), settings) is True
    assert is_admin_request(make_request({"X-Admin-Key": "wrong"}), settings) is False


def test_admin_key_ignored_when_not_configured(settings):
    unconfigured = settings.model_copy(update={"ADMIN_API_KEY": ""})
    assert is_admin_request(make_request({"X-Admin-Key": ""}), unconfigured) is False


def test_session_cookie_grants_access(settings):
    token = create_session_token(settings)
    request = make_request({"Cookie": f"{settings.SESSION_COOKIE_NAME}={token}"})
    assert is_admin_request(request, settings) is True


def test_get_current_admin_rejects_anonymous(settings):
    with pytest.raises(HTTPException) as exc_info:
        get_current_admin(make_request(), settings)
    assert exc_info.value.status_code == 401

# tests/unit/services/test_store_service.py
from decimal import Decimal

import pytest

from storefront.core.exceptions import AuthenticationError, ValidationError
from storefront.models import DEFAULT_STORE_ID, Store
from storefront.schemas.store import StoreSettingsUpdate
from storefront.services.store_service import StoreService, build_payment_url, public_settings


@pytest.fixture
def store_service(db_session, settings):
    return StoreService(db_session, settings)


# --- payment links ---

@pytest.mark.parametrize("payment_type, handles, expected", [
    ("cashapp", {"cash_app_handle": "$snakzplug"}, "https://cash.app/$snakzplug?amount=4.50"),
    ("cashapp", {"cash_app_handle": "snakzplug"}, "https://cash.app/$snakzplug?amount=4.50"),
    ("venmo", {"venmo_handle": "@snakz-plug"}, "https://venmo.com/snakz-plug?txn=pay&amount=4.50"),
    ("venmo", {"venmo_handle": "/snakz plug"}, "https://venmo.com/snakz%20plug?txn=pay&amount=4.50"),
    ("cashapp", {"cash_app_handle": ""}, None),
    ("venmo", {"cash_app_handle": "$snakzplug"}, None),
    ("cash", {"cash_app_handle": "$snakzplug", "venmo_handle": "snakz"}, None),
    (None, {}, None),
])
def test_build_payment_url(payment_type, handles, expected):
    assert build_payment_url(payment_type, Decimal("4.5"), handles) == expected


def test_public_settings_drops_password_hash():
    settings = {"owner_pass_hash": "$2b$...", "store_name": "Snakz Plug"}
    assert public_settings(settings) == {"store_name": "Snakz Plug"}
    assert public_settings(None) == {}


# --- store row ---

@pytest.mark.asyncio
async def test_get_store_seeds_default_row(store_service, db_session):
    store = await store_service.get_store()

    assert store.id == DEFAULT_STORE_ID
    assert store.name == "Snakz Plug"
    assert store.settings["hide_when_zero"] is True
    assert store.settings["cash_app_handle"] == ""
    assert "owner_pass_hash" not in store.settings

    row = await db_session.get(Store, DEFAULT_STORE_ID)
    assert row.settings["owner_pass_hash"].startswith("$2")


@pytest.mark.asyncio
async def test_update_settings_applies_only_given_fields(store_service):
    await store_service.get_store()

    store = await store_service.update_settings(StoreSettingsUpdate(venmo_handle="snakz", store_name="Snack Shack"))

    assert store.name == "Snack Shack"
    assert store.settings["venmo_handle"] == "snakz"
    assert store.settings["store_name"] == "Snack Shack"
    assert store.settings["pickup_instructions"] == "Pick up at the student booth."


@pytest.mark.asyncio
async def test_payment_url_uses_store_handles(store_service):
    await store_service.update_settings(StoreSettingsUpdate(cash_app_handle="$snakzplug"))

    assert await store_service.payment_url("cashapp", Decimal("3")) == "https://cash.app/$snakzplug?amount=3.00"
    assert await store_service.payment_url("venmo", Decimal("3")) is None


# --- password ---

@pytest.mark.asyncio
async def test_seeded_password_verifies(store_service, settings):
    assert await store_service.verify_password(settings.ADMIN_PASSWORD) is True
    assert await store_service.verify_password("wrong-password") is False


@pytest.mark.asyncio
async def test_verify_requires_a_password(store_service):
    with pytest.raises(ValidationError):
        await store_service.verify_password("")


@pytest.mark.asyncio
async def test_change_password_with_current_password(store_service, settings):
    await store_service.change_password("new-secret", current_password=settings.ADMIN_PASSWORD)

    assert await store_service.verify_password("new-secret") is True
    assert await store_service.verify_password(settings.ADMIN_PASSWORD) is False


@pytest.mark.asyncio
async def test_change_password_with_wrong_current_password(store_service):
    with pytest.raises(AuthenticationError):
        await store_service.change_password("new-secret", current_password="not-it")


@pytest.mark.asyncio
async def test_admin_can_change_password_without_current(store_service):
    await store_service.change_password("admin-set", is_admin=True)

    assert await store_service.verify_password("admin-set") is True


@pytest.mark.asyncio
async def test_short_password_rejected(store_service):
    with pytest.raises(ValidationError):
        await store_service.change_password("abc", is_admin=True)

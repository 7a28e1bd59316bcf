"""
Store settings and the owner password.

There is a single store row (id 'default'). Its settings JSON holds the
display name, payment handles, pickup instructions, the hide_when_zero flag and
the bcrypt hash of the owner password. The hash never leaves this module.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional
from urllib.parse import quote

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import Settings
from storefront.core.enums import PaymentType
from storefront.core.exceptions import AuthenticationError, StoreNotConfiguredError, ValidationError
from storefront.core.security import MIN_PASSWORD_LENGTH, get_password_hash, verify_password
from storefront.models import DEFAULT_STORE_ID, Store
from storefront.schemas.store import StoreRead, StoreSettingsUpdate

logger = logging.getLogger(__name__)

PASSWORD_HASH_KEY = "owner_pass_hash"
PRIVATE_SETTINGS = frozenset({PASSWORD_HASH_KEY})


def public_settings(settings: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {k: v for k, v in (settings or {}).items() if k not in PRIVATE_SETTINGS}


def _format_amount(amount) -> str:
    return format(Decimal(str(amount or 0)).quantize(Decimal("0.01")), "f")


def build_payment_url(payment_type: Optional[str], amount, settings: Dict[str, Any]) -> Optional[str]:
    """Cash App / Venmo deep link for the configured handle, or None."""
    if payment_type == PaymentType.CASHAPP.value and settings.get("cash_app_handle"):
        tag = str(settings["cash_app_handle"]).lstrip("$")
        return f"https://cash.app/${quote(tag, safe='')}?amount={_format_amount(amount)}"
    if payment_type == PaymentType.VENMO.value and settings.get("venmo_handle"):
        handle = str(settings["venmo_handle"]).lstrip("@").lstrip("/")
        return f"https://venmo.com/{quote(handle, safe='')}?txn=pay&amount={_format_amount(amount)}"
    return None


class StoreService:
    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    def _default_settings(self) -> Dict[str, Any]:
        return {
            PASSWORD_HASH_KEY: get_password_hash(self.settings.ADMIN_PASSWORD),
            "store_name": self.settings.STORE_NAME,
            "cash_app_handle": "",
            "venmo_handle": "",
            "pickup_instructions": "Pick up at the student booth.",
            "hide_when_zero": True,
        }

    async def _get_or_create(self) -> Store:
        store = await self.db.get(Store, DEFAULT_STORE_ID)
        if store is not None:
            return store

        store = Store(id=DEFAULT_STORE_ID, name=self.settings.STORE_NAME, settings=self._default_settings())
        try:
            self.db.add(store)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            # Another request may have seeded it first
            store = await self.db.get(Store, DEFAULT_STORE_ID)
            if store is None:
                raise
            return store

        logger.info("Seeded default store '%s' with ADMIN_PASSWORD", self.settings.STORE_NAME)
        return store

    async def get_store(self) -> StoreRead:
        """The store with its public settings."""
        store = await self._get_or_create()
        return StoreRead(id=store.id, name=store.name, settings=public_settings(store.settings))

    async def get_settings(self) -> Dict[str, Any]:
        store = await self._get_or_create()
        return public_settings(store.settings)

    async def update_settings(self, patch: StoreSettingsUpdate) -> StoreRead:
        store = await self._get_or_create()
        changes = patch.changes()
        if not changes:
            return StoreRead(id=store.id, name=store.name, settings=public_settings(store.settings))

        settings = dict(store.settings or {})
        if "owner_pass" in changes:
            owner_pass = changes.pop("owner_pass")
            if owner_pass is None:
                raise ValidationError("owner_pass cannot be empty")
            settings[PASSWORD_HASH_KEY] = get_password_hash(owner_pass)
        settings.update(changes)

        try:
            # Reassign so the JSON column is marked dirty
            store.settings = settings
            if changes.get("store_name"):
                store.name = changes["store_name"]
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Store settings updated: %s", ", ".join(sorted(changes)) or "owner_pass")
        return StoreRead(id=store.id, name=store.name, settings=public_settings(store.settings))

    async def verify_password(self, password: Optional[str]) -> bool:
        """
        Check the owner password.

        Raises:
            ValidationError: If no password was given
            StoreNotConfiguredError: If the store has no password set
        """
        if not password:
            raise ValidationError("password required")
        store = await self._get_or_create()
        password_hash = (store.settings or {}).get(PASSWORD_HASH_KEY)
        if not password_hash:
            raise StoreNotConfiguredError("no password set")
        return verify_password(password, password_hash)

    async def change_password(
        self,
        new_password: str,
        current_password: Optional[str] = None,
        is_admin: bool = False,
    ) -> None:
        """
        Set a new owner password. Callers without an admin session must prove
        the current password.
        """
        if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")

        if not is_admin:
            if not current_password or not await self.verify_password(current_password):
                raise AuthenticationError("wrong password")

        await self.update_settings(StoreSettingsUpdate(owner_pass=new_password))
        logger.info("Owner password changed")

    async def payment_url(self, payment_type: Optional[str], amount) -> Optional[str]:
        if payment_type not in (PaymentType.CASHAPP.value, PaymentType.VENMO.value):
            return None
        return build_payment_url(payment_type, amount, await self.get_settings())

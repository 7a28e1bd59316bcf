"""Store settings routes."""
import logging

from fastapi import APIRouter, Depends

from storefront.core.security import require_admin
from storefront.dependencies import get_store_service
from storefront.schemas.store import StoreSettingsUpdate
from storefront.services.store_service import StoreService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/store", tags=["store"])


@router.get("")
async def get_store(store_service: StoreService = Depends(get_store_service)):
    """Public store settings. The owner password hash is never included."""
    store = await store_service.get_store()
    return {"ok": True, "store": store.model_dump(mode="json")}


@router.patch("", dependencies=[require_admin()])
async def update_store(
    patch: StoreSettingsUpdate,
    store_service: StoreService = Depends(get_store_service),
):
    store = await store_service.update_settings(patch)
    return {"ok": True, "store": store.model_dump(mode="json")}

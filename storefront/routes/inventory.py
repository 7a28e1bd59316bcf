"""Inventory ledger routes."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from storefront.core.security import require_admin
from storefront.dependencies import get_inventory_service
from storefront.services.inventory_service import InventoryService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/inventory", tags=["inventory"], dependencies=[require_admin()])


@router.get("/events")
async def list_events(
    product_id: Optional[str] = Query(None, description="Only entries for this product"),
    limit: int = Query(500, ge=1, le=5000),
    inventory_service: InventoryService = Depends(get_inventory_service),
):
    events = await inventory_service.list_events(product_id=product_id, limit=limit)
    return {"ok": True, "events": [e.model_dump(mode="json") for e in events]}


@router.get("/reconcile")
async def reconcile(inventory_service: InventoryService = Depends(get_inventory_service)):
    """Products whose stock_qty disagrees with the sum of their ledger entries."""
    discrepancies = await inventory_service.reconcile()
    return {
        "ok": not discrepancies,
        "discrepancies": [d.model_dump(mode="json") for d in discrepancies],
    }

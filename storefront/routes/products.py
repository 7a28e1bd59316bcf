"""Catalog routes: public listing and admin product management."""
import logging

from fastapi import APIRouter, Depends, status

from storefront.core.enums import InventoryReason
from storefront.core.security import require_admin
from storefront.dependencies import get_inventory_service, get_product_service, get_store_service
from storefront.schemas.inventory import StockAdjustment
from storefront.schemas.product import ProductCreate, ProductUpdate
from storefront.services.inventory_service import InventoryService
from storefront.services.product_service import ProductService
from storefront.services.store_service import StoreService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("")
async def list_products(
    product_service: ProductService = Depends(get_product_service),
    store_service: StoreService = Depends(get_store_service),
):
    """Active products by name. Out-of-stock products are hidden when the store's hide_when_zero is on."""
    store_settings = await store_service.get_settings()
    products = await product_service.list_products(
        hide_out_of_stock=bool(store_settings.get("hide_when_zero")),
    )
    return {"ok": True, "products": [p.model_dump(mode="json") for p in products]}


@router.get("/all", dependencies=[require_admin()])
async def list_all_products(product_service: ProductService = Depends(get_product_service)):
    products = await product_service.list_products(include_inactive=True)
    return {"ok": True, "products": [p.model_dump(mode="json") for p in products]}


@router.get("/{product_id}", dependencies=[require_admin()])
async def get_product(product_id: str, product_service: ProductService = Depends(get_product_service)):
    product = await product_service.get_product(product_id)
    return {"ok": True, "product": product.model_dump(mode="json")}


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[require_admin()])
async def create_product(
    product_data: ProductCreate,
    product_service: ProductService = Depends(get_product_service),
):
    product = await product_service.create_product(product_data)
    return {"ok": True, "product": product.model_dump(mode="json")}


@router.patch("/{product_id}", dependencies=[require_admin()])
async def update_product(
    product_id: str,
    update: ProductUpdate,
    product_service: ProductService = Depends(get_product_service),
    inventory_service: InventoryService = Depends(get_inventory_service),
):
    """
    Patch product fields. A stock_qty in the body is applied as a 'set'
    adjustment so the ledger stays in step with stock.
    """
    product = await product_service.update_product(product_id, update)

    changes = update.changes()
    if changes.get("stock_qty") is not None:
        adjusted = await inventory_service.adjust_stock(
            product_id,
            quantity=changes["stock_qty"],
            reason=InventoryReason.SET,
            meta=changes.get("stock_meta"),
        )
        product = product.model_copy(update={"stock_qty": adjusted.stock_qty})

    return {"ok": True, "product": product.model_dump(mode="json")}


@router.delete("/{product_id}", dependencies=[require_admin()])
async def delete_product(product_id: str, product_service: ProductService = Depends(get_product_service)):
    await product_service.delete_product(product_id)
    return {"ok": True}


@router.post("/{product_id}/stock", dependencies=[require_admin()])
async def adjust_stock(
    product_id: str,
    adjustment: StockAdjustment,
    inventory_service: InventoryService = Depends(get_inventory_service),
):
    """Set stock to an absolute quantity or move it by a delta. Writes a ledger entry."""
    adjusted = await inventory_service.adjust_stock(
        product_id,
        quantity=adjustment.quantity,
        delta=adjustment.delta,
        reason=adjustment.reason,
        meta=adjustment.meta,
    )
    return {"ok": True, "adjustment": adjusted.model_dump(mode="json")}

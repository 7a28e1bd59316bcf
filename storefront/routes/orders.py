"""Order routes: public checkout and admin order review."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from storefront.core.enums import OrderStatus
from storefront.core.security import require_admin
from storefront.dependencies import get_order_query_service, get_order_service, get_store_service
from storefront.schemas.order import OrderCreate, OrderUpdate
from storefront.services.order_service import OrderQueryService, OrderService
from storefront.services.store_service import StoreService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def place_order(
    order: OrderCreate,
    order_service: OrderService = Depends(get_order_service),
    store_service: StoreService = Depends(get_store_service),
):
    """
    Place an order. Stock is reserved atomically; on any failure nothing is
    written. Cash App and Venmo orders get a payment_url deep link.
    """
    placed = await order_service.place_order(order.cart, order.metadata())

    payment_url = None
    try:
        payment_url = await store_service.payment_url(order.payment_type, placed.total)
    except Exception:
        # The order is committed; a missing link must not turn it into an error
        logger.exception("Could not build payment link for order %s", placed.order_id)

    return {"ok": True, **placed.model_dump(mode="json"), "payment_url": payment_url}


@router.get("", dependencies=[require_admin()])
async def list_orders(
    limit: int = Query(500, ge=1, le=5000),
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    query_service: OrderQueryService = Depends(get_order_query_service),
):
    orders = await query_service.list_orders(
        limit=limit,
        status=order_status.value if order_status else None,
    )
    return {"ok": True, "orders": [o.model_dump(mode="json") for o in orders]}


@router.get("/{order_id}", dependencies=[require_admin()])
async def get_order(order_id: str, query_service: OrderQueryService = Depends(get_order_query_service)):
    order = await query_service.get_order(order_id)
    return {"ok": True, "order": order.model_dump(mode="json")}


@router.patch("/{order_id}", dependencies=[require_admin()])
async def update_order(
    order_id: str,
    update: OrderUpdate,
    query_service: OrderQueryService = Depends(get_order_query_service),
):
    order = await query_service.update_order(order_id, update)
    return {"ok": True, "order": order.model_dump(mode="json")}

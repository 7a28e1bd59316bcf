"""
Order placement and order administration.

OrderService.place_order runs the whole placement as one transaction:

1. lock each referenced product row, in ascending product id order so that
   concurrent orders over overlapping products cannot deadlock
2. check stock while holding the lock, decrement it, append a 'sale' ledger
   entry and an order line carrying the product's current price
3. insert the order header under a fresh UUID
4. commit

Any failure (validation, missing product, short stock, store error, timeout,
cancellation) rolls the transaction back, so no stock decrement, line or ledger
entry survives a failed call. The service keeps no state between calls.

Placement is not idempotent: the same cart submitted twice makes two orders.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.enums import InventoryReason, OrderStatus, PaymentType
from storefront.core.exceptions import (
    InsufficientStockError,
    InvalidCartError,
    OrderNotFoundError,
    OrderPlacementError,
    ProductNotFoundError,
    StoreUnavailableError,
    UnknownOrderError,
)
from storefront.database import Database, acquire_write_lock, apply_lock_timeout, is_transient_error
from storefront.models import InventoryEvent, Order, OrderLine
from storefront.models.order import new_order_id
from storefront.schemas.order import CartItem, OrderMetadata, OrderPlaced, OrderRead, OrderUpdate
from storefront.services.inventory_service import lock_product

logger = logging.getLogger(__name__)


def parse_cart(cart: Any) -> List[CartItem]:
    """Validate the raw cart. Raises InvalidCartError for an empty cart or any malformed entry."""
    if not isinstance(cart, (list, tuple)) or len(cart) == 0:
        raise InvalidCartError("cart required")

    items = []
    for position, entry in enumerate(cart):
        if isinstance(entry, CartItem):
            items.append(entry)
            continue
        if not isinstance(entry, dict):
            raise InvalidCartError(f"invalid cart item at position {position}")
        try:
            items.append(CartItem.model_validate(entry))
        except PydanticValidationError as e:
            raise InvalidCartError(f"invalid cart item at position {position}") from e
    return items


def lock_order(items: List[CartItem]) -> List[CartItem]:
    # sorted() is stable: duplicate product ids keep their cart order
    return sorted(items, key=lambda item: item.product_id)


def initial_status(payment_type: Optional[str]) -> OrderStatus:
    if payment_type == PaymentType.CASH.value:
        return OrderStatus.PAID
    return OrderStatus.CREATED


class OrderService:
    """
    The order placement engine.

    Args:
        database: open store handle
        timeout: seconds allowed for the whole placement, lock waits included;
            on expiry the transaction is rolled back and StoreUnavailableError raised
        lock_timeout_ms: PostgreSQL lock_timeout for the placement transaction
    """

    def __init__(
        self,
        database: Database,
        timeout: Optional[float] = 5.0,
        lock_timeout_ms: Optional[int] = None,
        default_currency: str = "USD",
    ):
        self.database = database
        self.timeout = timeout
        self.lock_timeout_ms = lock_timeout_ms
        self.default_currency = default_currency

    async def place_order(self, cart: Any, metadata: Optional[OrderMetadata] = None) -> OrderPlaced:
        """
        Place an order for ``cart`` (a list of {product_id, quantity} entries).

        Raises:
            InvalidCartError: empty cart or malformed entry
            ProductNotFoundError: a referenced product does not exist
            InsufficientStockError: a product has less stock than requested
            StoreUnavailableError: transport/lock/timeout failure, safe to retry
            UnknownOrderError: anything else
        """
        items = parse_cart(cart)
        metadata = metadata or OrderMetadata()

        try:
            if self.timeout:
                placed = await asyncio.wait_for(self._place(items, metadata), timeout=self.timeout)
            else:
                placed = await self._place(items, metadata)
        except OrderPlacementError:
            raise
        except asyncio.TimeoutError as e:
            logger.warning("Order placement timed out after %ss, transaction rolled back", self.timeout)
            raise StoreUnavailableError("Order placement timed out") from e
        except Exception as e:
            if is_transient_error(e):
                logger.warning("Order placement failed on the store, transaction rolled back: %s", e)
                raise StoreUnavailableError(f"Order placement failed: {e}") from e
            logger.exception("Unexpected error placing order")
            raise UnknownOrderError("Order placement failed") from e

        logger.info(
            "Placed order %s (%d lines, total %s, status %s)",
            placed.order_id, len(items), placed.total, placed.status.value,
        )
        return placed

    async def _place(self, items: List[CartItem], metadata: OrderMetadata) -> OrderPlaced:
        order_id = new_order_id()
        status = initial_status(metadata.payment_type)
        lines: List[OrderLine] = []
        events: List[InventoryEvent] = []
        total = Decimal("0.00")

        async with self.database.serialized(), self.database.session() as session:
            async with session.begin():
                await apply_lock_timeout(session, self.lock_timeout_ms)
                await acquire_write_lock(session)

                for item in lock_order(items):
                    product = await lock_product(session, item.product_id)
                    if product is None:
                        raise ProductNotFoundError(item.product_id)
                    if product.stock_qty < item.quantity:
                        raise InsufficientStockError(item.product_id, item.quantity, product.stock_qty)

                    product.stock_qty -= item.quantity
                    events.append(InventoryEvent(
                        product_id=product.id,
                        delta=-item.quantity,
                        reason=InventoryReason.SALE.value,
                    ))
                    lines.append(OrderLine(
                        product_id=product.id,
                        qty=item.quantity,
                        unit_price=product.price,
                        meta=item.model_extra or None,
                    ))
                    total += product.price * item.quantity

                order = Order(
                    id=order_id,
                    payload=self._payload(items, metadata),
                    payment_type=metadata.payment_type,
                    payment_ref=metadata.payment_ref,
                    customer_name=metadata.customer_name,
                    status=status.value,
                    lines=lines,
                    inventory_events=events,
                )
                session.add(order)
                await session.flush()

        return OrderPlaced(order_id=order_id, status=status, total=total)

    def _payload(self, items: List[CartItem], metadata: OrderMetadata) -> Dict[str, Any]:
        payload = metadata.model_dump(mode="json", exclude_none=True)
        payload["cart"] = [item.model_dump(mode="json") for item in items]
        payload["currency"] = metadata.currency or self.default_currency
        return payload


class OrderQueryService:
    """Read and patch access to placed orders for the admin screens."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_orders(self, limit: int = 500, status: Optional[str] = None) -> List[OrderRead]:
        stmt = (
            select(Order)
            .options(selectinload(Order.lines))
            .order_by(Order.created_at.desc(), Order.id)
            .limit(limit)
        )
        if status:
            stmt = stmt.where(Order.status == status)
        result = await self.db.execute(stmt)
        return [OrderRead.model_validate(order) for order in result.scalars().all()]

    async def _get(self, order_id: str) -> Order:
        result = await self.db.execute(
            select(Order).options(selectinload(Order.lines)).where(Order.id == order_id)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise OrderNotFoundError(f"Order not found: {order_id}")
        return order

    async def get_order(self, order_id: str) -> OrderRead:
        return OrderRead.model_validate(await self._get(order_id))

    async def update_order(self, order_id: str, update: OrderUpdate) -> OrderRead:
        """Apply only the fields present in ``update``."""
        order = await self._get(order_id)
        changes = update.changes()
        if not changes:
            return OrderRead.model_validate(order)

        try:
            for key, value in changes.items():
                if isinstance(value, OrderStatus):
                    value = value.value
                setattr(order, key, value)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Order %s updated: %s", order_id, ", ".join(sorted(changes)))
        return OrderRead.model_validate(order)

"""
Stock adjustments and the inventory ledger.

Every stock change goes through a row lock on the product and writes a
matching InventoryEvent in the same transaction, so that for every product

    stock_qty == sum(InventoryEvent.delta)

The locking helpers here are shared with order placement.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.enums import ADJUSTMENT_REASONS, InventoryReason
from storefront.core.exceptions import (
    CatalogProductNotFoundError,
    InvalidStockAdjustmentError,
    StoreUnavailableError,
)
from storefront.database import Database, acquire_write_lock, apply_lock_timeout, is_transient_error
from storefront.models import InventoryEvent, Product
from storefront.schemas.inventory import InventoryEventRead, LedgerDiscrepancy, StockAdjusted

logger = logging.getLogger(__name__)


async def lock_product(session: AsyncSession, product_id: str) -> Optional[Product]:
    """
    SELECT ... FOR UPDATE the product row and return it, or None if missing.

    The row is re-read from the database under the lock (populate_existing) so
    a stale identity-map copy can never be used for a stock check.
    """
    stmt = (
        select(Product)
        .where(Product.id == product_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def apply_adjustment(
    session: AsyncSession,
    product_id: str,
    *,
    quantity: Optional[int] = None,
    delta: Optional[int] = None,
    reason: InventoryReason = InventoryReason.MANUAL_ADJUST,
    meta: Optional[Dict[str, Any]] = None,
) -> StockAdjusted:
    """
    Adjust stock inside the caller's transaction. Locks the row, computes the
    delta, updates stock_qty and appends the ledger entry.
    """
    product = await lock_product(session, product_id)
    if product is None:
        raise CatalogProductNotFoundError(product_id)

    previous_qty = product.stock_qty
    if quantity is not None:
        new_qty = quantity
        change = quantity - previous_qty
    else:
        change = delta
        new_qty = previous_qty + delta

    if new_qty < 0:
        raise InvalidStockAdjustmentError(
            f"Adjustment would make stock negative for {product_id}: {previous_qty} + ({change})"
        )

    product.stock_qty = new_qty
    session.add(InventoryEvent(product_id=product.id, delta=change, reason=reason.value, meta=meta))
    await session.flush()

    return StockAdjusted(
        product_id=product.id,
        previous_qty=previous_qty,
        stock_qty=new_qty,
        delta=change,
        reason=reason,
    )


def _validate_adjustment(quantity: Optional[int], delta: Optional[int], reason) -> InventoryReason:
    if (quantity is None) == (delta is None):
        raise InvalidStockAdjustmentError("Provide exactly one of quantity or delta")
    if quantity is not None and quantity < 0:
        raise InvalidStockAdjustmentError("quantity must be non-negative")
    try:
        reason = InventoryReason(reason)
    except ValueError:
        raise InvalidStockAdjustmentError(f"Unknown reason: {reason}")
    if reason not in ADJUSTMENT_REASONS:
        raise InvalidStockAdjustmentError(f"Reason '{reason.value}' is reserved for order placement")
    return reason


class InventoryService:
    """Administrative stock changes and read access to the ledger."""

    def __init__(self, database: Database, lock_timeout_ms: Optional[int] = None):
        self.database = database
        self.lock_timeout_ms = lock_timeout_ms

    async def adjust_stock(
        self,
        product_id: str,
        *,
        quantity: Optional[int] = None,
        delta: Optional[int] = None,
        reason: InventoryReason = InventoryReason.MANUAL_ADJUST,
        meta: Optional[Dict[str, Any]] = None,
    ) -> StockAdjusted:
        """
        Set stock to ``quantity`` or move it by ``delta`` under the product row lock.

        Raises:
            InvalidStockAdjustmentError: bad arguments or the result would be negative
            CatalogProductNotFoundError: no such product
            StoreUnavailableError: transport or lock failure; nothing was written
        """
        reason = _validate_adjustment(quantity, delta, reason)

        try:
            async with self.database.serialized(), self.database.session() as session:
                async with session.begin():
                    await apply_lock_timeout(session, self.lock_timeout_ms)
                    await acquire_write_lock(session)
                    adjusted = await apply_adjustment(
                        session,
                        product_id,
                        quantity=quantity,
                        delta=delta,
                        reason=reason,
                        meta=meta,
                    )
        except Exception as e:
            if is_transient_error(e):
                logger.warning("Stock adjustment for %s failed on the store: %s", product_id, e)
                raise StoreUnavailableError(f"Stock adjustment failed: {e}") from e
            raise

        logger.info(
            "Stock for %s adjusted %s -> %s (%s)",
            adjusted.product_id, adjusted.previous_qty, adjusted.stock_qty, reason.value,
        )
        return adjusted

    async def list_events(self, product_id: Optional[str] = None, limit: int = 500) -> List[InventoryEventRead]:
        """Ledger entries, newest first."""
        stmt = select(InventoryEvent).order_by(InventoryEvent.id.desc()).limit(limit)
        if product_id is not None:
            stmt = stmt.where(InventoryEvent.product_id == product_id)

        async with self.database.session() as session:
            result = await session.execute(stmt)
            return [InventoryEventRead.model_validate(event) for event in result.scalars().all()]

    async def ledger_total(self, product_id: str) -> int:
        async with self.database.session() as session:
            total = await session.scalar(
                select(func.coalesce(func.sum(InventoryEvent.delta), 0))
                .where(InventoryEvent.product_id == product_id)
            )
        return int(total or 0)

    async def reconcile(self) -> List[LedgerDiscrepancy]:
        """
        Compare every product's stock_qty with the sum of its ledger deltas.
        Returns only the products that disagree.
        """
        ledger = (
            select(
                InventoryEvent.product_id.label("product_id"),
                func.sum(InventoryEvent.delta).label("total"),
            )
            .group_by(InventoryEvent.product_id)
            .subquery()
        )
        stmt = (
            select(Product.id, Product.stock_qty, func.coalesce(ledger.c.total, 0))
            .outerjoin(ledger, ledger.c.product_id == Product.id)
            .order_by(Product.id)
        )

        async with self.database.session() as session:
            rows = (await session.execute(stmt)).all()

        discrepancies = [
            LedgerDiscrepancy(product_id=product_id, stock_qty=stock_qty, ledger_total=int(total))
            for product_id, stock_qty, total in rows
            if stock_qty != int(total)
        ]
        if discrepancies:
            logger.warning("Ledger reconciliation found %d discrepancies", len(discrepancies))
        return discrepancies

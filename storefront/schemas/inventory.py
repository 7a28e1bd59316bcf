"""
Schemas for stock adjustments and the inventory ledger.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, computed_field

from storefront.core.enums import InventoryReason
from .base import BaseSchema


class StockAdjustment(BaseModel):
    """Exactly one of quantity (absolute) or delta (relative)."""
    quantity: Optional[int] = None
    delta: Optional[int] = None
    reason: InventoryReason = InventoryReason.MANUAL_ADJUST
    meta: Optional[Dict[str, Any]] = None


class StockAdjusted(BaseModel):
    product_id: str
    previous_qty: int
    stock_qty: int
    delta: int
    reason: InventoryReason


class InventoryEventRead(BaseSchema):
    id: int
    product_id: str
    delta: int
    reason: str
    order_id: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None


class LedgerDiscrepancy(BaseModel):
    product_id: str
    stock_qty: int
    ledger_total: int

    @computed_field
    @property
    def difference(self) -> int:
        return self.stock_qty - self.ledger_total

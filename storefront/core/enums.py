"""
Shared enums and constants used across the application.
"""

from enum import Enum


class OrderStatus(str, Enum):
    """Order lifecycle values used in both models and schemas"""
    CREATED = "created"
    PENDING = "pending"
    PAID = "paid"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


class InventoryReason(str, Enum):
    """Reason codes recorded on every inventory ledger entry"""
    SALE = "sale"                    # Written only by order placement
    MANUAL_ADJUST = "manual_adjust"
    INITIAL = "initial"              # Opening stock when a product is created
    SET = "set"                      # Absolute stock level set by an admin or seed
    DELETE = "delete"                # Closing entry when a product is deleted


class PaymentType(str, Enum):
    CASH = "cash"
    CASHAPP = "cashapp"
    VENMO = "venmo"
    CARD = "card"
    OTHER = "other"


# Reasons an admin may pass to AdjustStock. SALE is reserved for the order engine.
ADJUSTMENT_REASONS = frozenset({
    InventoryReason.MANUAL_ADJUST,
    InventoryReason.SET,
    InventoryReason.INITIAL,
})

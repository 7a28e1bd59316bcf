"""
Core module exports.
"""
from .enums import (
    OrderStatus,
    InventoryReason,
    PaymentType,
)

from .exceptions import (
    BaseServiceError,
    OrderPlacementError,
    InvalidCartError,
    ProductNotFoundError,
    InsufficientStockError,
    StoreUnavailableError,
    UnknownOrderError,
    CatalogProductNotFoundError,
    ProductAlreadyExistsError,
    ProductInUseError,
    InvalidStockAdjustmentError,
    OrderNotFoundError,
    StoreNotConfiguredError,
    AuthenticationError,
    ValidationError,
)

from .product import Product
from .order import Order, OrderLine
from .inventory_event import InventoryEvent
from .store import Store, DEFAULT_STORE_ID

# This ensures all models are registered with SQLAlchemy
__all__ = [
    'Product',
    'Order',
    'OrderLine',
    'InventoryEvent',
    'Store',
    'DEFAULT_STORE_ID',
]

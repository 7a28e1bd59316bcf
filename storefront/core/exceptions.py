class BaseServiceError(Exception):
    """Base exception for all service-related errors."""
    status_code = 500
    code = "server_error"

    def __init__(self, message: str = None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


# --- Order placement ---------------------------------------------------------

class OrderPlacementError(BaseServiceError):
    """Base exception for order placement failures."""
    pass

class InvalidCartError(OrderPlacementError):
    """Raised when the cart is empty or an entry is malformed."""
    status_code = 400
    code = "invalid_cart"

class ProductNotFoundError(OrderPlacementError):
    """Raised when a referenced product does not exist."""
    status_code = 400
    code = "product_not_found"

    def __init__(self, product_id: str, message: str = None):
        super().__init__(message or f"Product not found: {product_id}")
        self.product_id = product_id

class InsufficientStockError(OrderPlacementError):
    """Raised when requested quantity exceeds current stock."""
    status_code = 400
    code = "insufficient_stock"

    def __init__(self, product_id: str, requested: int, available: int):
        super().__init__(
            f"Not enough stock for {product_id}: requested={requested}, available={available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available

class StoreUnavailableError(OrderPlacementError):
    """Raised on transport or transaction failures. Safe to retry."""
    status_code = 500
    code = "store_unavailable"

class UnknownOrderError(OrderPlacementError):
    """Raised for any other order placement failure. Not retried."""
    status_code = 500
    code = "unknown"


# --- Catalog and ledger ------------------------------------------------------

class CatalogProductNotFoundError(ProductNotFoundError):
    """Raised when an admin catalog or stock operation targets a missing product."""
    status_code = 404

class ProductAlreadyExistsError(BaseServiceError):
    """Raised when creating a product whose id is taken."""
    status_code = 409
    code = "product_exists"

class ProductInUseError(BaseServiceError):
    """Raised when deleting a product referenced by historical orders."""
    status_code = 409
    code = "product_in_use"

class InvalidStockAdjustmentError(BaseServiceError):
    """Raised when a stock adjustment is malformed or would make stock negative."""
    status_code = 400
    code = "invalid_adjustment"

class OrderNotFoundError(BaseServiceError):
    """Raised when an order is not found."""
    status_code = 404
    code = "order_not_found"


# --- Store settings and auth -------------------------------------------------

class StoreNotConfiguredError(BaseServiceError):
    """Raised when the store row or its password is missing."""
    status_code = 400
    code = "no_store"

class AuthenticationError(BaseServiceError):
    """Raised when a password or session token is rejected."""
    status_code = 401
    code = "auth_failed"

class ValidationError(BaseServiceError):
    """Raised when data validation fails."""
    status_code = 400
    code = "validation_error"

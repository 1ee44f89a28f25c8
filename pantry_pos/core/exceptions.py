"""
Domain errors raised by the POS core.

Every error carries a short, user-facing message tied to the attempted
action plus an optional ``details`` dict for the API layer.
"""


class PosError(Exception):
    """Base class for all point-of-sale errors."""

    code = "pos_error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class EmptyCartError(PosError):
    """Raised when finalizing a cart with no lines."""
    code = "empty_cart"

    def __init__(self, message: str = "Cart is empty.", details: dict | None = None):
        super().__init__(message, details)


class InsufficientPaymentError(PosError):
    """Raised when cash given is short of the sale total."""
    code = "insufficient_payment"

    def __init__(self, message: str = "Insufficient cash.", details: dict | None = None):
        super().__init__(message, details)


class AlreadyRefundedError(PosError):
    """Raised when refunding a sale that was already refunded."""
    code = "already_refunded"

    def __init__(self, message: str = "Sale was already refunded.", details: dict | None = None):
        super().__init__(message, details)


class StorageError(PosError):
    """Raised when a collection cannot be written to the key-value store."""
    code = "storage_error"


class ProductNotFoundError(PosError):
    code = "product_not_found"


class IngredientNotFoundError(PosError):
    code = "ingredient_not_found"


class SaleNotFoundError(PosError):
    code = "sale_not_found"


class CartLineNotFoundError(PosError):
    code = "cart_line_not_found"


class InvalidQuantityError(PosError):
    """Raised for negative or non-numeric stock quantities."""
    code = "invalid_quantity"


class ProductUnavailableError(PosError):
    """Raised when offering a product whose status is Unavailable."""
    code = "product_unavailable"

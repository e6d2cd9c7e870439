# app/core/exceptions.py
"""
Domain exceptions for pricing, cart and checkout.

Pure modules (pricing, cart aggregation, legacy normalization) raise these;
the HTTP layer maps them to JSON responses in app/main.py.
"""


class PricingError(ValueError):
    """Base class for invalid input given to the pricing engine."""


class InvalidCountError(PricingError):
    """Raised when a category count is negative or not an integer."""

    def __init__(self, count: object):
        self.count = count
        super().__init__(f"Category count must be a non-negative integer, got {count!r}")


class UnknownProductTypeError(PricingError):
    """Raised when a product type is not priced by the active price list."""

    def __init__(self, product_type: object, price_list: str | None = None):
        self.product_type = product_type
        self.price_list = price_list
        where = f" in price list '{price_list}'" if price_list else ""
        super().__init__(f"Unknown product type{where}: {product_type!r}")


class InvalidDeliveryOptionError(PricingError):
    """Raised when a delivery option is neither 'pickup' nor 'delivery'."""

    def __init__(self, option: object):
        self.option = option
        super().__init__(f"Unknown delivery option: {option!r}")


class InvalidCartItemError(ValueError):
    """Raised when a cart item is malformed (programmer error, not a policy rejection)."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class PromoError(ValueError):
    """Raised when a promo code cannot be evaluated."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

"""
Storefront — Domain errors

Raised by the service layer, translated to HTTP responses by the routers.
"""


class StorefrontError(Exception):
    """Base class for business-rule and persistence failures."""


class InvalidPayload(StorefrontError):
    """Request is structurally unusable (no items, no customer email)."""


class NotFound(StorefrontError):
    """A referenced product, variant or ingredient does not exist."""


class InsufficientStock(StorefrontError):
    """A stock-tracked variant cannot cover the requested quantity."""

    def __init__(self, item: str, requested: int, available: int):
        self.item = item
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for '{item}': requested={requested}, available={available}"
        )


class InsufficientIngredient(StorefrontError):
    """A recipe ingredient cannot cover the requested quantity."""

    def __init__(self, ingredient: str, required, available):
        self.ingredient = ingredient
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient ingredient: {ingredient} (required={required}, available={available})"
        )


class PersistenceFailure(StorefrontError):
    """Storage failed mid-transaction; everything was rolled back."""

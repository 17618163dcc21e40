from storefront.models.stock import StockItem, StockMovement, MovementReason
from storefront.models.catalog import Product, Variant, RecipeLine
from storefront.models.order import Order, OrderStatus

__all__ = [
    "StockItem", "StockMovement", "MovementReason",
    "Product", "Variant", "RecipeLine",
    "Order", "OrderStatus",
]

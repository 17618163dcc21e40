"""
Storefront — Order placement with inventory reservation

Two phases inside one transaction:
  1. VALIDATE: load every product/variant, aggregate a deduction plan,
     check it against current ingredient and variant stock (reads only)
  2. APPLY:    conditional decrements (WHERE qty >= n); a zero row count
     means a concurrent order won the race → StockConflictError → retry

Nothing is committed unless every line validates and every write lands.
"""
import uuid
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import (
    StorefrontError,
    InvalidPayload,
    NotFound,
    InsufficientStock,
    InsufficientIngredient,
    PersistenceFailure,
)
from storefront.core.optimistic_lock import StockConflictError, with_optimistic_retry
from storefront.core.pricing import Totals, compute_totals
from storefront.db.coverage import load_stock_map
from storefront.models.catalog import Product, Variant
from storefront.models.order import Order, OrderStatus
from storefront.models.stock import StockItem, StockMovement, MovementReason
from storefront.schemas.catalog import ProductOut, VariantOut
from storefront.schemas.order import OrderItemRequest, OrderRequest

logger = logging.getLogger(__name__)


@dataclass
class DeductionPlan:
    ingredients: dict[str, Decimal] = field(default_factory=lambda: defaultdict(Decimal))
    variants: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    variant_labels: dict[str, str] = field(default_factory=dict)
    variant_stock: dict[str, int] = field(default_factory=dict)
    line_items: list[dict[str, Any]] = field(default_factory=list)
    subtotal: Decimal = Decimal("0")


async def _load_line(db: AsyncSession, item: OrderItemRequest) -> tuple[Product, Variant]:
    product = await db.get(Product, item.product_id, populate_existing=True)
    if product is None or not product.active:
        raise NotFound(f"Product '{item.product_id}' not found.")
    variant = product.variant(item.variant_id)
    if variant is None or not variant.active:
        raise NotFound(f"Variant '{item.variant_id}' not found.")
    return product, variant


async def build_plan(db: AsyncSession, items: list[OrderItemRequest]) -> DeductionPlan:
    """Phase 1: validate every line against current stock. No writes."""
    plan = DeductionPlan()

    for item in items:
        product, variant = await _load_line(db, item)

        if variant.recipe:
            for line in variant.recipe:
                plan.ingredients[line.ingredient_id] += line.amount * item.quantity
        else:
            plan.variants[variant.id] += item.quantity
            plan.variant_labels[variant.id] = f"{product.title} ({variant.sku})"
            plan.variant_stock[variant.id] = variant.stock

        plan.subtotal += variant.price * item.quantity
        plan.line_items.append({
            "product_id": product.id,
            "variant_id": variant.id,
            "quantity": item.quantity,
            "product": ProductOut.model_validate(product).model_dump(mode="json"),
            "variant": VariantOut.model_validate(variant).model_dump(mode="json"),
        })

    stock = await load_stock_map(db, plan.ingredients.keys())
    for ingredient_id, required in plan.ingredients.items():
        ingredient = stock.get(ingredient_id)
        if ingredient is None:
            raise NotFound(f"Ingredient '{ingredient_id}' not found.")
        if required > ingredient.quantity:
            raise InsufficientIngredient(ingredient.name, required, ingredient.quantity)

    for variant_id, quantity in plan.variants.items():
        available = plan.variant_stock[variant_id]
        if quantity > available:
            raise InsufficientStock(plan.variant_labels[variant_id], quantity, available)

    return plan


async def apply_plan(db: AsyncSession, plan: DeductionPlan, order_id: str) -> None:
    """Phase 2: conditional decrements. Raises StockConflictError if any row moved underneath us."""
    for ingredient_id, required in plan.ingredients.items():
        result = await db.execute(
            update(StockItem)
            .where(StockItem.id == ingredient_id, StockItem.quantity >= required)
            .values(quantity=StockItem.quantity - required)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise StockConflictError(f"Stock item '{ingredient_id}' changed concurrently.")
        db.add(StockMovement(
            stock_item_id=ingredient_id,
            order_id=order_id,
            delta=-required,
            reason=MovementReason.ORDER,
        ))

    for variant_id, quantity in plan.variants.items():
        result = await db.execute(
            update(Variant)
            .where(Variant.id == variant_id, Variant.stock >= quantity)
            .values(stock=Variant.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise StockConflictError(f"Variant '{variant_id}' stock changed concurrently.")


def new_order(
    order_id: str,
    request: OrderRequest,
    user_id: str | None,
    plan: DeductionPlan,
    totals: Totals,
) -> Order:
    return Order(
        id=order_id,
        user_id=user_id,
        customer_email=request.customer_email,
        status=OrderStatus.PENDING,
        items=plan.line_items,
        subtotal=totals.subtotal,
        tax=totals.tax,
        shipping=totals.shipping,
        total=totals.total,
        shipping_address=request.shipping_address.model_dump(mode="json"),
        billing_address=request.billing_address.model_dump(mode="json"),
    )


@with_optimistic_retry()
async def place_order(db: AsyncSession, request: OrderRequest, user_id: str | None = None) -> Order:
    """
    Validate, reserve stock and persist one order, all or nothing.

    Raises InvalidPayload, NotFound, InsufficientStock, InsufficientIngredient,
    StockConflictError (after retries) or PersistenceFailure.
    """
    if not request.items or not request.customer_email:
        raise InvalidPayload("Order must contain at least one item and a customer email.")

    try:
        plan = await build_plan(db, request.items)
        order_id = str(uuid.uuid4())
        await apply_plan(db, plan, order_id)
        order = new_order(order_id, request, user_id, plan, compute_totals(plan.subtotal))
        db.add(order)
        await db.commit()
        await db.refresh(order)
    except StorefrontError as exc:
        await db.rollback()
        if not isinstance(exc, StockConflictError):
            logger.warning("Order rejected for %s: %s", request.customer_email, exc)
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Order placement failed for %s", request.customer_email)
        raise PersistenceFailure("Failed to create order.") from exc

    logger.info(
        "Order %s placed for %s: %d line(s), total=%s",
        order.id, order.customer_email, len(order.items), order.total,
    )
    return order

"""
Storefront — Coverage queries

Coverage is the number of whole units purchasable right now. The arithmetic
matches order validation: an order for q units passes iff q <= coverage.
"""
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.catalog import Product, Variant
from storefront.models.stock import StockItem


async def load_stock_map(db: AsyncSession, ingredient_ids: Iterable[str] | None = None) -> dict[str, StockItem]:
    """Current stock items keyed by id, always re-read from the database."""
    query = select(StockItem).execution_options(populate_existing=True)
    if ingredient_ids is not None:
        ids = list(ingredient_ids)
        if not ids:
            return {}
        query = query.where(StockItem.id.in_(ids))
    result = await db.execute(query)
    return {item.id: item for item in result.scalars().all()}


def variant_coverage(variant: Variant, stock_by_id: Mapping[str, StockItem]) -> int:
    if not variant.recipe:
        return max(0, variant.stock)
    limits = []
    for line in variant.recipe:
        item = stock_by_id.get(line.ingredient_id)
        if item is None:
            return 0
        limits.append(int(Decimal(item.quantity) // Decimal(line.amount)))
    return max(0, min(limits))


def product_coverage(product: Product, stock_by_id: Mapping[str, StockItem]) -> int:
    covers = [variant_coverage(v, stock_by_id) for v in product.variants if v.active]
    return min(covers) if covers else 0


def recipe_breakdown(variant: Variant, stock_by_id: Mapping[str, StockItem]) -> list[dict[str, Any]]:
    out = []
    for line in variant.recipe:
        item = stock_by_id.get(line.ingredient_id)
        in_stock = Decimal(item.quantity) if item else Decimal("0")
        out.append({
            "ingredient_id": line.ingredient_id,
            "name": item.name if item else "Unknown",
            "unit": item.unit if item else "",
            "amount_per_unit": line.amount,
            "in_stock": in_stock,
            "missing": max(Decimal("0"), line.amount - in_stock),
        })
    return out

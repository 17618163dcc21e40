"""
Storefront — Stock ledger mutations

Every quantity change is a single conditional UPDATE plus an audit row,
committed together. Quantities never go below zero.
"""
import logging
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import NotFound, InsufficientIngredient
from storefront.models.stock import StockItem, StockMovement, MovementReason

logger = logging.getLogger(__name__)


async def get_stock_item(db: AsyncSession, ingredient_id: str) -> StockItem:
    item = await db.get(StockItem, ingredient_id, populate_existing=True)
    if item is None:
        raise NotFound(f"Ingredient '{ingredient_id}' not found.")
    return item


async def list_stock(db: AsyncSession) -> list[StockItem]:
    result = await db.execute(select(StockItem).order_by(StockItem.name))
    return list(result.scalars().all())


async def low_stock(db: AsyncSession, threshold: Decimal | None = None) -> list[StockItem]:
    """Items at or below `threshold`, or at or below their own reorder level."""
    limit = StockItem.reorder_level if threshold is None else threshold
    result = await db.execute(
        select(StockItem).where(StockItem.quantity <= limit).order_by(StockItem.name)
    )
    return list(result.scalars().all())


async def _change_quantity(
    db: AsyncSession, ingredient_id: str, delta: Decimal, reason: MovementReason
) -> StockItem:
    conditions = [StockItem.id == ingredient_id]
    if delta < 0:
        conditions.append(StockItem.quantity >= -delta)

    result = await db.execute(
        update(StockItem)
        .where(*conditions)
        .values(quantity=StockItem.quantity + delta)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.rollback()
        item = await get_stock_item(db, ingredient_id)
        raise InsufficientIngredient(item.name, -delta, item.quantity)

    db.add(StockMovement(stock_item_id=ingredient_id, delta=delta, reason=reason))
    await db.commit()

    item = await get_stock_item(db, ingredient_id)
    logger.info("Stock %s %s by %s → %s", item.name, reason.value, delta, item.quantity)
    return item


async def reorder(db: AsyncSession, ingredient_id: str, quantity: Decimal) -> StockItem:
    await get_stock_item(db, ingredient_id)
    return await _change_quantity(db, ingredient_id, quantity, MovementReason.REORDER)


async def adjust(db: AsyncSession, ingredient_id: str, delta: Decimal) -> StockItem:
    await get_stock_item(db, ingredient_id)
    return await _change_quantity(db, ingredient_id, delta, MovementReason.ADJUST)


async def set_reorder_level(db: AsyncSession, ingredient_id: str, reorder_level: Decimal) -> StockItem:
    item = await get_stock_item(db, ingredient_id)
    item.reorder_level = reorder_level
    await db.commit()
    return await get_stock_item(db, ingredient_id)

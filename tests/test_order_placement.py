"""
Order placement: stock reservation, all-or-nothing, conflict retry.
"""
from decimal import Decimal

import pytest
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from storefront.core.errors import (
    InvalidPayload,
    NotFound,
    InsufficientStock,
    InsufficientIngredient,
    PersistenceFailure,
)
from storefront.core.optimistic_lock import StockConflictError
from storefront.db import order_ops
from storefront.db.database import AsyncSessionLocal
from storefront.models import Order, StockItem, StockMovement, Variant, OrderStatus
from storefront.schemas.order import OrderRequest
from tests.conftest import order_payload, reload


def request_for(*lines) -> OrderRequest:
    return OrderRequest.model_validate(order_payload(*lines))


async def _order_count(session) -> int:
    result = await session.execute(select(Order))
    count = len(result.scalars().all())
    await session.commit()
    return count


@pytest.mark.asyncio
async def test_recipe_order_deducts_ingredients_and_leaves_variant_stock(session, catalog):
    order = await order_ops.place_order(session, request_for((catalog.drinks, catalog.flat_white, 3)))

    assert order.status == OrderStatus.PENDING
    assert (await reload(session, StockItem, catalog.beans)).quantity == Decimal("946")
    assert (await reload(session, StockItem, catalog.milk)).quantity == Decimal("4340")
    assert (await reload(session, Variant, catalog.flat_white)).stock == 0


@pytest.mark.asyncio
async def test_non_recipe_order_deducts_variant_stock_only(session, catalog):
    await order_ops.place_order(session, request_for((catalog.house_blend, catalog.blend_250, 2)))

    assert (await reload(session, Variant, catalog.blend_250)).stock == 3
    assert (await reload(session, StockItem, catalog.beans)).quantity == Decimal("1000")
    movements = (await session.execute(select(StockMovement))).scalars().all()
    assert movements == []


@pytest.mark.asyncio
async def test_latte_scenario_second_order_exceeds_beans(session, catalog):
    await order_ops.place_order(session, request_for((catalog.drinks, catalog.latte, 10)))
    assert (await reload(session, StockItem, catalog.beans)).quantity == Decimal("820")

    with pytest.raises(InsufficientIngredient) as exc_info:
        await order_ops.place_order(session, request_for((catalog.drinks, catalog.latte, 60)))

    assert exc_info.value.ingredient == "Beans"
    assert "Beans" in str(exc_info.value)
    assert (await reload(session, StockItem, catalog.beans)).quantity == Decimal("820")
    assert await _order_count(session) == 1


@pytest.mark.asyncio
async def test_failing_later_line_leaves_earlier_lines_untouched(session, catalog):
    with pytest.raises(InsufficientStock):
        await order_ops.place_order(
            session,
            request_for(
                (catalog.drinks, catalog.flat_white, 2),
                (catalog.house_blend, catalog.blend_250, 6),
            ),
        )

    assert (await reload(session, StockItem, catalog.beans)).quantity == Decimal("1000")
    assert (await reload(session, StockItem, catalog.milk)).quantity == Decimal("5000")
    assert (await reload(session, Variant, catalog.blend_250)).stock == 5
    assert await _order_count(session) == 0


@pytest.mark.asyncio
async def test_insufficient_stock_names_the_variant(session, catalog):
    with pytest.raises(InsufficientStock) as exc_info:
        await order_ops.place_order(session, request_for((catalog.house_blend, catalog.blend_250, 6)))

    assert "BLEND-250" in str(exc_info.value)
    assert exc_info.value.available == 5
    assert (await reload(session, Variant, catalog.blend_250)).stock == 5


@pytest.mark.asyncio
async def test_lines_sharing_an_ingredient_are_checked_together(session, catalog):
    # 40 lattes + 20 flat whites need 1080g of beans; each line alone fits in 1000g
    with pytest.raises(InsufficientIngredient) as exc_info:
        await order_ops.place_order(
            session,
            request_for((catalog.drinks, catalog.latte, 40), (catalog.drinks, catalog.flat_white, 20)),
        )

    assert exc_info.value.ingredient == "Beans"
    assert exc_info.value.required == Decimal("1080")
    assert (await reload(session, StockItem, catalog.milk)).quantity == Decimal("5000")


@pytest.mark.asyncio
async def test_unknown_or_inactive_references_are_not_found(session, catalog):
    with pytest.raises(NotFound):
        await order_ops.place_order(session, request_for(("no-such-product", catalog.latte, 1)))
    with pytest.raises(NotFound):
        await order_ops.place_order(session, request_for((catalog.drinks, "no-such-variant", 1)))
    with pytest.raises(NotFound):
        await order_ops.place_order(session, request_for((catalog.drinks, catalog.blend_250, 1)))
    with pytest.raises(NotFound):
        await order_ops.place_order(session, request_for((catalog.old_roast, catalog.old_1kg, 1)))


@pytest.mark.asyncio
async def test_empty_items_rejected_before_lookups(session, catalog):
    request = OrderRequest.model_construct(items=[], customer_email="jane@beanmail.com")
    with pytest.raises(InvalidPayload):
        await order_ops.place_order(session, request)


@pytest.mark.asyncio
async def test_storage_failure_rolls_back_applied_deductions(session, catalog, monkeypatch):
    def broken_order(*args, **kwargs):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(order_ops, "new_order", broken_order)

    with pytest.raises(PersistenceFailure):
        await order_ops.place_order(
            session,
            request_for((catalog.drinks, catalog.flat_white, 1), (catalog.house_blend, catalog.blend_250, 1)),
        )

    assert (await reload(session, StockItem, catalog.beans)).quantity == Decimal("1000")
    assert (await reload(session, StockItem, catalog.milk)).quantity == Decimal("5000")
    assert (await reload(session, Variant, catalog.blend_250)).stock == 5
    assert await _order_count(session) == 0


@pytest.mark.asyncio
async def test_reload_failure_after_commit_is_persistence_failure(session, catalog, monkeypatch):
    async def broken_refresh(instance, *args, **kwargs):
        raise SQLAlchemyError("connection reset")

    monkeypatch.setattr(session, "refresh", broken_refresh)

    with pytest.raises(PersistenceFailure):
        await order_ops.place_order(session, request_for((catalog.drinks, catalog.latte, 1)))


@pytest.mark.asyncio
async def test_apply_plan_refuses_to_overdraw(session, catalog):
    plan = await order_ops.build_plan(session, request_for((catalog.drinks, catalog.latte, 50)).items)
    await session.commit()

    # another writer takes most of the beans after validation
    async with AsyncSessionLocal() as other:
        await other.execute(update(StockItem).where(StockItem.id == catalog.beans).values(quantity=Decimal("100")))
        await other.commit()

    with pytest.raises(StockConflictError):
        await order_ops.apply_plan(session, plan, "order-x")
    await session.rollback()

    assert (await reload(session, StockItem, catalog.beans)).quantity == Decimal("100")


@pytest.mark.asyncio
async def test_concurrent_drain_is_retried_then_rejected(session, catalog, monkeypatch):
    real_build_plan = order_ops.build_plan
    calls = []

    async def racing_build_plan(db, items):
        # counted before validating: the second attempt raises from build_plan
        calls.append(len(calls) + 1)
        plan = await real_build_plan(db, items)
        if len(calls) == 1:
            async with AsyncSessionLocal() as other:
                await other.execute(update(StockItem).where(StockItem.id == catalog.beans).values(quantity=Decimal("10")))
                await other.commit()
        return plan

    monkeypatch.setattr(order_ops, "build_plan", racing_build_plan)

    with pytest.raises(InsufficientIngredient):
        await order_ops.place_order(session, request_for((catalog.drinks, catalog.latte, 1)))

    assert len(calls) == 2
    assert (await reload(session, StockItem, catalog.beans)).quantity == Decimal("10")
    assert await _order_count(session) == 0


@pytest.mark.asyncio
async def test_order_records_audit_movements(session, catalog):
    order = await order_ops.place_order(session, request_for((catalog.drinks, catalog.flat_white, 2)))

    result = await session.execute(select(StockMovement).where(StockMovement.order_id == order.id))
    deltas = {m.stock_item_id: m.delta for m in result.scalars().all()}
    assert deltas == {catalog.beans: Decimal("-36"), catalog.milk: Decimal("-440")}

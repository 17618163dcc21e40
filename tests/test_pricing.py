from decimal import Decimal

import pytest

from storefront.core.pricing import compute_totals, round2
from storefront.db import order_ops
from storefront.schemas.order import OrderRequest
from tests.conftest import order_payload


def test_round2_is_half_up_at_the_cent():
    assert round2(Decimal("0.125")) == Decimal("0.13")
    assert round2(Decimal("3.825")) == Decimal("3.83")
    assert round2(Decimal("1.8274")) == Decimal("1.83")


def test_flat_shipping_below_threshold():
    totals = compute_totals(Decimal("45"))
    assert totals.subtotal == Decimal("45.00")
    assert totals.tax == Decimal("3.83")
    assert totals.shipping == Decimal("5.99")
    assert totals.total == Decimal("54.82")


def test_free_shipping_at_threshold():
    totals = compute_totals(Decimal("50"))
    assert totals.tax == Decimal("4.25")
    assert totals.shipping == Decimal("0")
    assert totals.total == Decimal("54.25")

    assert compute_totals(Decimal("49.99")).shipping == Decimal("5.99")


@pytest.mark.asyncio
async def test_order_totals_come_from_catalog_prices(session, catalog):
    request = OrderRequest.model_validate(order_payload(
        (catalog.drinks, catalog.latte, 2),
        (catalog.house_blend, catalog.blend_250, 1),
    ))
    order = await order_ops.place_order(session, request)

    assert order.subtotal == Decimal("21.50")
    assert order.tax == Decimal("1.83")
    assert order.shipping == Decimal("5.99")
    assert order.total == Decimal("29.32")
    assert order.total == order.subtotal + order.tax + order.shipping

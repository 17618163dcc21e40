import pytest
from sqlalchemy import select

from storefront.db.coverage import load_stock_map, product_coverage
from storefront.db.seed import seed
from storefront.models import Product


@pytest.mark.asyncio
async def test_seed_loads_demo_catalog(session):
    counts = await seed(session)
    assert counts == {"stock_items": 3, "products": 2, "variants": 3}

    result = await session.execute(
        select(Product).order_by(Product.slug).execution_options(populate_existing=True)
    )
    products = {p.slug: p for p in result.scalars().all()}
    stock = await load_stock_map(session)

    assert set(products) == {"coffee-beans", "latte"}
    # milk is the binding ingredient: 50000ml / 220ml per latte
    assert product_coverage(products["latte"], stock) == 227
    assert product_coverage(products["coffee-beans"], stock) == 50

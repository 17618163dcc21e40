"""
Storefront — Demo data seed

Usage:
    python -m storefront.db.seed

Drops and recreates all tables, then loads three ingredients, a bagged-beans
product (stock-tracked variants) and a latte (recipe-driven variant).
"""
import asyncio
import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.database import AsyncSessionLocal, Base, engine
from storefront.models import Product, RecipeLine, StockItem, Variant

logger = logging.getLogger(__name__)


async def seed(db: AsyncSession) -> dict[str, int]:
    beans = StockItem(name="Coffee Beans", sku="ING-BEANS", unit="g", quantity=Decimal("100000"), reorder_level=Decimal("5000"))
    milk = StockItem(name="Milk", sku="ING-MILK", unit="ml", quantity=Decimal("50000"), reorder_level=Decimal("5000"))
    sugar = StockItem(name="Sugar", sku="ING-SUGAR", unit="g", quantity=Decimal("20000"), reorder_level=Decimal("1000"))
    db.add_all([beans, milk, sugar])
    await db.flush()

    bagged = Product(
        title="Coffee Beans",
        description="Premium Arabica beans",
        slug="coffee-beans",
        images=["/images/coffee-beans.jpg"],
        categories=["coffee"],
        tags=["arabica", "whole-bean"],
        featured=True,
        variants=[
            Variant(position=0, sku="COF-BEAN-250", title="250g", price=Decimal("9.99"), cost=Decimal("6.00"), stock=100),
            Variant(position=1, sku="COF-BEAN-1000", title="1kg", price=Decimal("29.99"), cost=Decimal("18.00"), stock=50),
        ],
    )
    latte = Product(
        title="Latte",
        description="Fresh latte beverage",
        slug="latte",
        images=["/images/latte.jpg"],
        categories=["beverages"],
        tags=["milk", "espresso"],
        variants=[
            Variant(
                position=0,
                sku="LATTE-REG",
                title="Regular",
                price=Decimal("4.50"),
                cost=Decimal("1.20"),
                stock=200,
                recipe=[
                    RecipeLine(position=0, ingredient_id=beans.id, amount=Decimal("18")),
                    RecipeLine(position=1, ingredient_id=milk.id, amount=Decimal("220")),
                    RecipeLine(position=2, ingredient_id=sugar.id, amount=Decimal("5")),
                ],
            ),
        ],
    )
    db.add_all([bagged, latte])
    await db.commit()
    return {"stock_items": 3, "products": 2, "variants": 3}


async def main() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        counts = await seed(db)
    logger.info("Seeded %s", counts)
    await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    asyncio.run(main())

"""
Storefront test fixtures

The app runs in-process over httpx's ASGI transport against a throwaway
SQLite database; the environment is configured before storefront is imported.
"""
import os
import tempfile
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

_DB_DIR = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'storefront.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["METRICS_ENABLED"] = "false"
os.environ["OPT_LOCK_BASE_DELAY_MS"] = "1"
os.environ["OPT_LOCK_JITTER_MS"] = "1"

import httpx
import pytest
import pytest_asyncio
from jose import jwt

import storefront.models  # noqa: F401
from storefront.db.database import AsyncSessionLocal, Base, engine
from storefront.main import app
from storefront.models import Product, RecipeLine, StockItem, Variant

ADDRESS = {
    "first_name": "Jane",
    "last_name": "Doe",
    "address1": "12 Roast Street",
    "city": "Portland",
    "state": "OR",
    "postal_code": "97201",
    "country": "US",
}


def make_token(sub: str, role: str = "customer") -> str:
    payload = {"sub": sub, "role": role, "exp": datetime.now(tz=timezone.utc) + timedelta(minutes=5)}
    return jwt.encode(payload, "test-secret", algorithm="HS256")


def auth_headers(sub: str, role: str = "customer") -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(sub, role)}"}


def order_payload(*lines, email: str = "jane@beanmail.com") -> dict:
    """lines: (product_id, variant_id, quantity) tuples."""
    return {
        "items": [{"product_id": p, "variant_id": v, "quantity": q} for p, v, q in lines],
        "customer_email": email,
        "shipping_address": ADDRESS,
        "billing_address": ADDRESS,
    }


async def reload(session, model, pk):
    """Fresh copy from the database, ending the read transaction."""
    obj = await session.get(model, pk, populate_existing=True)
    await session.commit()
    return obj


# ─── Fixtures ──────────────────────────────────────────────────────────────────
@pytest_asyncio.fixture
async def db_setup():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest_asyncio.fixture
async def session(db_setup):
    async with AsyncSessionLocal() as s:
        yield s


@pytest_asyncio.fixture
async def client(db_setup):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def admin():
    return auth_headers("admin-1", role="admin")


@pytest_asyncio.fixture
async def catalog(session):
    """
    Beans 1000g (reorder at 100), Milk 5000ml, Cups 40 (below reorder level 50).
    Espresso Drinks: Latte [beans 18], Flat White [beans 18, milk 220], stock 0 on both.
    House Blend 250g: 5 in stock, no recipe. Old Roast: inactive.
    """
    beans = StockItem(name="Beans", unit="g", quantity=Decimal("1000"), reorder_level=Decimal("100"))
    milk = StockItem(name="Milk", unit="ml", quantity=Decimal("5000"), reorder_level=Decimal("500"))
    cups = StockItem(name="Cups", unit="piece", quantity=Decimal("40"), reorder_level=Decimal("50"))
    session.add_all([beans, milk, cups])
    await session.flush()

    latte = Variant(
        position=0, sku="LATTE", title="Latte", price=Decimal("4.50"), stock=0,
        recipe=[RecipeLine(position=0, ingredient_id=beans.id, amount=Decimal("18"))],
    )
    flat_white = Variant(
        position=1, sku="FLAT-WHITE", title="Flat White", price=Decimal("5.00"), stock=0,
        recipe=[
            RecipeLine(position=0, ingredient_id=beans.id, amount=Decimal("18")),
            RecipeLine(position=1, ingredient_id=milk.id, amount=Decimal("220")),
        ],
    )
    drinks = Product(
        title="Espresso Drinks", slug="espresso-drinks", categories=["beverages"], tags=["milk"],
        variants=[latte, flat_white],
    )
    blend_250 = Variant(position=0, sku="BLEND-250", title="250g", price=Decimal("12.50"), stock=5)
    house_blend = Product(
        title="House Blend", slug="house-blend", categories=["coffee"], tags=["whole-bean"],
        featured=True, variants=[blend_250],
    )
    old_1kg = Variant(position=0, sku="OLD-1KG", title="1kg", price=Decimal("30.00"), stock=10)
    old_roast = Product(title="Old Roast", slug="old-roast", categories=["coffee"], active=False, variants=[old_1kg])

    session.add_all([drinks, house_blend, old_roast])
    await session.commit()

    return SimpleNamespace(
        beans=beans.id, milk=milk.id, cups=cups.id,
        drinks=drinks.id, latte=latte.id, flat_white=flat_white.id,
        house_blend=house_blend.id, blend_250=blend_250.id,
        old_roast=old_roast.id, old_1kg=old_1kg.id,
    )

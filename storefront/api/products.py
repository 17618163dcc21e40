"""
Storefront — Catalog API (read-only)
"""
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.database import get_db
from storefront.models.catalog import Product, Variant
from storefront.schemas.catalog import ProductOut

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=list[ProductOut])
async def list_products(
    search: str | None = None,
    category: str | None = None,
    featured: bool | None = None,
    tags: str | None = Query(None, description="Comma-separated tag list"),
    min_price: Decimal | None = Query(None, alias="min"),
    max_price: Decimal | None = Query(None, alias="max"),
    sort: str | None = Query(None, pattern="^(price_asc|price_desc|newest)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(24, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Product).where(Product.active.is_(True)))
    products = list(result.scalars().all())

    # Categories and tags are JSON lists; filtering happens here to stay dialect-neutral
    if search:
        needle = search.lower()
        products = [p for p in products if needle in p.title.lower()]
    if category:
        products = [p for p in products if category in p.categories]
    if featured is not None:
        products = [p for p in products if p.featured == featured]
    if tags:
        wanted = {t.strip() for t in tags.split(",") if t.strip()}
        products = [p for p in products if wanted & set(p.tags)]
    if min_price is not None or max_price is not None:
        def in_range(v: Variant) -> bool:
            return (min_price is None or v.price >= min_price) and (max_price is None or v.price <= max_price)
        products = [p for p in products if any(in_range(v) for v in p.variants)]

    def lowest_price(p: Product) -> Decimal:
        return min((v.price for v in p.variants), default=Decimal("0"))

    if sort == "price_asc":
        products.sort(key=lowest_price)
    elif sort == "price_desc":
        products.sort(key=lowest_price, reverse=True)
    else:
        products.sort(key=lambda p: p.created_at, reverse=True)

    start = (page - 1) * page_size
    return products[start:start + page_size]


@router.get("/{slug}", response_model=ProductOut)
async def get_product(slug: str, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Product).where(Product.slug == slug, Product.active.is_(True))
    )
    product = result.scalar_one_or_none()
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    return product

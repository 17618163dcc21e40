"""
Storefront — Stock admin API

Coverage, recipe and low-stock views for the admin dashboard, plus the
reorder / adjust / reorder-level mutations. Admin role required.
"""
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import NotFound, InsufficientIngredient
from storefront.core.security import require_admin
from storefront.db import stock_ops
from storefront.db.coverage import load_stock_map, product_coverage, recipe_breakdown, variant_coverage
from storefront.db.database import get_db
from storefront.models.catalog import Product
from storefront.schemas.stock import (
    StockItemOut,
    LowStockItem,
    LowStockResponse,
    ReorderRequest,
    AdjustRequest,
    ReorderLevelRequest,
    StockLevel,
    ProductCoverage,
    RecipeResponse,
)

router = APIRouter(prefix="/stock", tags=["stock"], dependencies=[Depends(require_admin)])


def _level(item) -> StockLevel:
    return StockLevel(id=item.id, quantity=item.quantity, reorder_level=item.reorder_level)


@router.get("", response_model=list[StockItemOut])
async def list_stock(db: AsyncSession = Depends(get_db)):
    return await stock_ops.list_stock(db)


@router.get("/low", response_model=LowStockResponse)
async def get_low_stock(threshold: Decimal | None = None, db: AsyncSession = Depends(get_db)):
    items = await stock_ops.low_stock(db, threshold)
    return LowStockResponse(
        low_count=len(items),
        items=[LowStockItem.model_validate(i) for i in items],
    )


@router.get("/products-coverage", response_model=list[ProductCoverage])
async def get_products_coverage(db: AsyncSession = Depends(get_db)):
    """Units currently sellable per active product (min over its variants)."""
    result = await db.execute(select(Product).where(Product.active.is_(True)).order_by(Product.title))
    products = result.scalars().all()
    stock = await load_stock_map(db)

    out = []
    for p in products:
        coverage = product_coverage(p, stock)
        out.append(ProductCoverage(
            id=p.id,
            name=p.title,
            category=p.categories[0] if p.categories else "General",
            coverage=coverage,
            status="in" if coverage > 0 else "out",
        ))
    return out


@router.get("/product/{product_id}/recipe", response_model=RecipeResponse)
async def get_product_recipe(product_id: str, variant_id: str | None = None, db: AsyncSession = Depends(get_db)):
    product = await db.get(Product, product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    variant = product.variant(variant_id) if variant_id else (product.variants[0] if product.variants else None)
    if variant is None:
        raise HTTPException(status_code=404, detail="Variant not found.")

    stock = await load_stock_map(db, [line.ingredient_id for line in variant.recipe])
    return RecipeResponse(
        product_id=product.id,
        variant_id=variant.id,
        coverage=variant_coverage(variant, stock),
        recipe=recipe_breakdown(variant, stock),
    )


@router.post("/reorder", response_model=StockLevel)
async def reorder_stock(payload: ReorderRequest, db: AsyncSession = Depends(get_db)):
    try:
        item = await stock_ops.reorder(db, payload.ingredient_id, payload.quantity)
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return _level(item)


@router.patch("/adjust", response_model=StockLevel)
async def adjust_stock(payload: AdjustRequest, db: AsyncSession = Depends(get_db)):
    try:
        item = await stock_ops.adjust(db, payload.ingredient_id, payload.delta)
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InsufficientIngredient as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return _level(item)


@router.patch("/reorder-level", response_model=StockLevel)
async def set_reorder_level(payload: ReorderLevelRequest, db: AsyncSession = Depends(get_db)):
    try:
        item = await stock_ops.set_reorder_level(db, payload.ingredient_id, payload.reorder_level)
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return _level(item)

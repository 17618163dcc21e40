"""
Storefront — Stock ledger schemas
"""
from decimal import Decimal
from pydantic import BaseModel, Field


class StockItemOut(BaseModel):
    id: str
    name: str
    sku: str | None = None
    unit: str
    quantity: Decimal
    reorder_level: Decimal
    active: bool

    model_config = {"from_attributes": True}


class LowStockItem(BaseModel):
    id: str
    name: str
    quantity: Decimal
    reorder_level: Decimal

    model_config = {"from_attributes": True}


class LowStockResponse(BaseModel):
    low_count: int
    items: list[LowStockItem]


class ReorderRequest(BaseModel):
    ingredient_id: str
    quantity: Decimal = Field(..., gt=0)


class AdjustRequest(BaseModel):
    ingredient_id: str
    delta: Decimal


class ReorderLevelRequest(BaseModel):
    ingredient_id: str
    reorder_level: Decimal = Field(..., ge=0)


class StockLevel(BaseModel):
    id: str
    quantity: Decimal
    reorder_level: Decimal


class ProductCoverage(BaseModel):
    id: str
    name: str
    category: str
    coverage: int
    status: str  # "in" | "out"


class RecipeComponent(BaseModel):
    ingredient_id: str
    name: str
    unit: str
    amount_per_unit: Decimal
    in_stock: Decimal
    missing: Decimal


class RecipeResponse(BaseModel):
    product_id: str
    variant_id: str
    coverage: int
    recipe: list[RecipeComponent]

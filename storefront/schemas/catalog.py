"""
Storefront — Catalog schemas (read-only)
"""
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel


class RecipeLineOut(BaseModel):
    ingredient_id: str
    amount: Decimal

    model_config = {"from_attributes": True}


class VariantOut(BaseModel):
    id: str
    sku: str
    title: str
    price: Decimal
    stock: int
    attributes: dict[str, str] = {}
    images: list[str] = []
    active: bool
    recipe: list[RecipeLineOut] = []

    model_config = {"from_attributes": True}


class ProductOut(BaseModel):
    id: str
    title: str
    description: str | None = None
    slug: str
    images: list[str] = []
    categories: list[str] = []
    tags: list[str] = []
    featured: bool
    active: bool
    variants: list[VariantOut] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}

"""
Storefront — Catalog models

Read-only from the order flow except for Variant.stock, which is decremented
for variants without a recipe.
"""
import uuid
from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
    String, Integer, Numeric, Boolean, DateTime, Text, JSON, ForeignKey, CheckConstraint, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from storefront.db.database import Base


class Product(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    categories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    variants: Mapped[list["Variant"]] = relationship(
        back_populates="product", lazy="selectin", cascade="all, delete-orphan", order_by="Variant.position",
    )

    def variant(self, variant_id: str) -> "Variant | None":
        return next((v for v in self.variants if v.id == variant_id), None)

    def __repr__(self) -> str:
        return f"<Product slug={self.slug}>"


class Variant(Base):
    """
    A purchasable SKU of a Product. With a recipe, ingredient stock is the
    binding constraint; without one, `stock` is.
    """
    __tablename__ = "variants"
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_variants_stock_non_negative"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    product_id: Mapped[str] = mapped_column(ForeignKey("products.id", ondelete="CASCADE"), index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sku: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    attributes: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    product: Mapped[Product] = relationship(back_populates="variants")
    recipe: Mapped[list["RecipeLine"]] = relationship(
        back_populates="variant", lazy="selectin", cascade="all, delete-orphan", order_by="RecipeLine.position",
    )


class RecipeLine(Base):
    """Amount of one StockItem consumed per unit of a Variant."""
    __tablename__ = "recipe_lines"
    __table_args__ = (CheckConstraint("amount > 0", name="ck_recipe_lines_amount_positive"),)

    variant_id: Mapped[str] = mapped_column(ForeignKey("variants.id", ondelete="CASCADE"), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    ingredient_id: Mapped[str] = mapped_column(ForeignKey("stock_items.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)

    variant: Mapped[Variant] = relationship(back_populates="recipe")

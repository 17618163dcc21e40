"""
Storefront — Stock ledger models

[CONFIG DATA]        stock_items: raw materials, quantities restored via seed
[TRANSACTIONAL DATA] stock_movements: append-only audit of every quantity change
"""
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum
from sqlalchemy import String, Numeric, Boolean, DateTime, CheckConstraint, Enum, func
from sqlalchemy.orm import Mapped, mapped_column
from storefront.db.database import Base


class StockItem(Base):
    """
    A raw material (beans, milk, cups...) tracked by quantity on hand.
    Quantity only changes through conditional updates so it never drops below zero.
    """
    __tablename__ = "stock_items"
    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_stock_items_quantity_non_negative"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    sku: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    unit: Mapped[str] = mapped_column(String(16), nullable=False)  # g, ml, piece
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=Decimal("0"))
    reorder_level: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=Decimal("0"))
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<StockItem name={self.name} quantity={self.quantity}{self.unit}>"


class MovementReason(str, PyEnum):
    ORDER = "order"
    REORDER = "reorder"
    ADJUST = "adjust"


class StockMovement(Base):
    """
    [TRANSACTIONAL DATA] Written in the same transaction as the change it records.
    """
    __tablename__ = "stock_movements"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    stock_item_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    order_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)
    delta: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    reason: Mapped[MovementReason] = mapped_column(
        Enum(MovementReason, name="movement_reason", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

"""
Storefront — Orders API

Flow:
  1. Optional JWT decoded by middleware (request.state.user)
  2. Idempotency-Key replay handled by middleware
  3. place_order(): validate → reserve stock → price → persist, one transaction
  4. Return the created order with its line-item snapshots
"""
from typing import Any
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import (
    InvalidPayload,
    NotFound,
    InsufficientStock,
    InsufficientIngredient,
    PersistenceFailure,
)
from storefront.core.optimistic_lock import StockConflictError
from storefront.core.security import get_current_user, get_optional_user
from storefront.db.database import get_db
from storefront.db.order_ops import place_order
from storefront.models.order import Order
from storefront.schemas.order import OrderRequest, OrderResponse

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderRequest,
    db: AsyncSession = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
):
    """Place an order as a guest or as the authenticated user."""
    try:
        return await place_order(db, payload, user_id=user.get("sub") if user else None)
    except InvalidPayload as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (InsufficientStock, InsufficientIngredient) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except StockConflictError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Stock changed while placing the order. Please retry.",
        )
    except PersistenceFailure:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create order.")


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, db: AsyncSession = Depends(get_db)):
    """Public lookup for the order confirmation page."""
    order = await db.get(Order, order_id)
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found.")
    return order


@router.get("", response_model=list[OrderResponse])
async def list_my_orders(
    db: AsyncSession = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
):
    """Orders owned by the authenticated user, newest first."""
    result = await db.execute(
        select(Order).where(Order.user_id == user["sub"]).order_by(Order.created_at.desc())
    )
    return result.scalars().all()

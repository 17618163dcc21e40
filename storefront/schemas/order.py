"""
Storefront — Order schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Any
from pydantic import BaseModel, EmailStr, Field

from storefront.models.order import OrderStatus


class OrderItemRequest(BaseModel):
    product_id: str = Field(..., min_length=1)
    variant_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)


class Address(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    company: str | None = None
    address1: str = Field(..., min_length=1)
    address2: str | None = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    phone: str | None = None


class OrderRequest(BaseModel):
    items: list[OrderItemRequest] = Field(..., min_length=1)
    customer_email: EmailStr
    shipping_address: Address
    billing_address: Address


class OrderLineItem(BaseModel):
    product_id: str
    variant_id: str
    quantity: int
    product: dict[str, Any]
    variant: dict[str, Any]


class OrderResponse(BaseModel):
    id: str
    user_id: str | None = None
    customer_email: str
    status: OrderStatus
    items: list[OrderLineItem]
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal
    shipping_address: Address
    billing_address: Address
    payment_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}

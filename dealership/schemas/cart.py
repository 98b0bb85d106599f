# dealership/schemas/cart.py
from datetime import datetime
from decimal import Decimal
from typing import List
from uuid import UUID

from pydantic import BaseModel, Field

from dealership.domain.enums import ItemType


class CartItemCreate(BaseModel):
    item_type: ItemType
    item_id: UUID
    quantity: int = Field(1, ge=1, le=100)


class CartItemUpdate(BaseModel):
    # <= 0 elimina la línea
    quantity: int = Field(..., le=100)


class CartLineRead(BaseModel):
    id: UUID
    item_type: ItemType
    item_id: UUID
    name: str
    brand_name: str | None = None
    part_number: str | None = None
    image_url: str | None = None
    unit_price: Decimal
    quantity: int
    line_total: Decimal
    stock_quantity: int
    is_available: bool
    has_sufficient_stock: bool
    added_at: datetime


class CartRead(BaseModel):
    id: UUID | None = None
    items: List[CartLineRead]
    total_items: int
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    grand_total: Decimal
    currency: str
    free_shipping_threshold: Decimal
    is_valid: bool


class CartCount(BaseModel):
    count: int

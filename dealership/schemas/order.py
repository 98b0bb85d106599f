# dealership/schemas/order.py
from datetime import datetime, date
from decimal import Decimal
from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from dealership.domain.enums import ItemType, OrderStatus, PaymentMethod, PaymentStatus


class CheckoutRequest(BaseModel):
    payment_method: PaymentMethod
    shipping_address: str | None = Field(None, max_length=255)
    city: str | None = Field(None, max_length=120)
    country: str | None = Field(None, max_length=120)
    notes: str | None = Field(None, max_length=1000)


class OrderItemRead(BaseModel):
    id: UUID
    item_type: ItemType
    item_id: UUID
    item_name: str
    part_number: str | None = None
    image_url: str | None = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    id: UUID
    order_number: str
    user_id: UUID | None = None
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    subtotal_amount: Decimal
    shipping_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    shipping_address: str
    notes: str | None = None
    order_date: datetime
    confirmed_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    can_cancel: bool
    total_items: int
    items: List[OrderItemRead] = []

    model_config = ConfigDict(from_attributes=True)


class OrderSummary(BaseModel):
    id: UUID
    order_number: str
    status: OrderStatus
    payment_status: PaymentStatus
    total_amount: Decimal
    order_date: datetime
    total_items: int
    can_cancel: bool

    model_config = ConfigDict(from_attributes=True)


class AdminOrderRead(OrderRead):
    customer_email: str | None = None
    customer_name: str | None = None


class OrderConfirmation(BaseModel):
    order: OrderRead
    tracking_number: str
    estimated_delivery: date


class TrackingStepRead(BaseModel):
    status: OrderStatus
    title: str
    description: str
    completed: bool
    occurred_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class OrderTracking(BaseModel):
    order_number: str
    status: OrderStatus
    payment_status: PaymentStatus
    order_date: datetime
    tracking_number: str
    estimated_delivery: date
    steps: List[TrackingStepRead]


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    note: str | None = Field(None, max_length=500)


class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus

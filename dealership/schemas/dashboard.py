# dealership/schemas/dashboard.py
from datetime import datetime
from decimal import Decimal
from typing import Dict, List

from pydantic import BaseModel

from dealership.domain.enums import CustomerTier
from dealership.schemas.catalog import CarPartRead, CarRead
from dealership.schemas.order import OrderSummary
from dealership.schemas.user import UserRead


class CustomerDashboard(BaseModel):
    full_name: str
    member_since: datetime
    last_login_at: datetime | None = None
    total_orders: int
    total_spent: Decimal
    tier: CustomerTier
    cart_item_count: int
    recent_orders: List[OrderSummary]


class AdminDashboard(BaseModel):
    total_cars: int
    total_car_parts: int
    total_customers: int
    total_orders: int
    pending_orders: int
    completed_orders: int
    total_revenue: Decimal
    monthly_revenue: Decimal
    new_customers_this_month: int
    orders_by_status: Dict[str, int]
    recent_orders: List[OrderSummary]
    recent_customers: List[UserRead]
    low_stock_cars: List[CarRead]
    low_stock_car_parts: List[CarPartRead]
    unread_messages: int = 0

from datetime import date
from decimal import Decimal
from typing import List
from uuid import UUID

from pydantic import BaseModel


class RecentDocument(BaseModel):
    """Resumen de un documento reciente"""
    id: UUID
    number: str
    customer_name: str
    date: date
    status: str
    total: Decimal = Decimal("0")


class DashboardCounts(BaseModel):
    customers: int
    products: int
    employees: int
    open_quotes: int
    pending_sales_orders: int
    action_required: int


class DashboardResponse(BaseModel):
    counts: DashboardCounts
    open_sales_order_value: Decimal
    recent_quotes: List[RecentDocument]
    recent_sales_orders: List[RecentDocument]
    recent_delivery_orders: List[RecentDocument]

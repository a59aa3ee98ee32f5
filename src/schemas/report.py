"""Admin report schemas."""

from datetime import date

from pydantic import BaseModel, Field


class RevenueBucket(BaseModel):
    count: int = Field(description="Number of orders")
    amount: int = Field(description="Sum of order totals")


class FinanceSummary(BaseModel):
    """Revenue grouped by payment outcome."""

    paid: RevenueBucket
    pending: RevenueBucket
    failed: RevenueBucket = Field(description="Failed and expired orders")


class MenuStat(BaseModel):
    name: str
    quantity: int
    revenue: int


class DailyStat(BaseModel):
    date: date
    orders: int
    revenue: int


class SalesReport(BaseModel):
    """Sales performance over paid orders."""

    total_orders: int
    total_revenue: int
    average_order_value: float
    top_items: list[MenuStat]
    daily: list[DailyStat]


class DashboardSummary(BaseModel):
    """Admin dashboard counters."""

    today_orders: int = Field(description="Orders delivered today")
    pending_orders: int
    total_revenue: int = Field(description="Revenue from paid orders")
    total_users: int
    menu_summary: dict[str, int] = Field(description="Quantity per menu item for today's deliveries")

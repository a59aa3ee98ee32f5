"""Finance and sales reporting over order rows.

The aggregation functions are pure and take plain order dicts; the service
only fetches rows.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from src.core.config import get_settings
from src.core.supabase import get_supabase_client
from src.services.payment_status import OrderStatus

TOP_ITEMS_LIMIT = 5
DAILY_REPORT_DAYS = 7


def _orders_with_status(orders: list[dict[str, Any]], *statuses: OrderStatus) -> list[dict[str, Any]]:
    values = {s.value for s in statuses}
    return [order for order in orders if order.get("status") in values]


def _bucket(orders: list[dict[str, Any]]) -> dict[str, int]:
    return {
        "count": len(orders),
        "amount": sum(int(order.get("total_price", 0)) for order in orders),
    }


def _as_date(value: Any, tz: ZoneInfo | None = None) -> date:
    if isinstance(value, datetime):
        return value.astimezone(tz).date() if tz and value.tzinfo else value.date()
    if isinstance(value, date):
        return value
    text = str(value)
    if len(text) == 10:
        return date.fromisoformat(text)
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    return parsed.astimezone(tz).date() if tz and parsed.tzinfo else parsed.date()


def finance_summary(orders: list[dict[str, Any]]) -> dict[str, Any]:
    """Revenue and counts per outcome; failed includes expired."""
    return {
        "paid": _bucket(_orders_with_status(orders, OrderStatus.PAID)),
        "pending": _bucket(_orders_with_status(orders, OrderStatus.PENDING)),
        "failed": _bucket(_orders_with_status(orders, OrderStatus.FAILED, OrderStatus.EXPIRED)),
    }


def menu_stats(orders: list[dict[str, Any]], limit: int = TOP_ITEMS_LIMIT) -> list[dict[str, Any]]:
    """Best-selling items by quantity, using the snapshotted names and prices."""
    stats: dict[str, dict[str, int]] = defaultdict(lambda: {"quantity": 0, "revenue": 0})
    for order in orders:
        for item in order.get("items", []):
            entry = stats[item["menu_item_name"]]
            entry["quantity"] += int(item["quantity"])
            entry["revenue"] += int(item["price"]) * int(item["quantity"])

    ranked = sorted(stats.items(), key=lambda kv: kv[1]["quantity"], reverse=True)
    return [{"name": name, **values} for name, values in ranked[:limit]]


def daily_stats(
    orders: list[dict[str, Any]],
    today: date,
    days: int = DAILY_REPORT_DAYS,
    tz: ZoneInfo | None = None,
) -> list[dict[str, Any]]:
    """Orders and revenue per creation day for the ``days`` days ending today."""
    per_day: dict[date, list[dict[str, Any]]] = defaultdict(list)
    for order in orders:
        per_day[_as_date(order["created_at"], tz)].append(order)

    result = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        day_orders = per_day.get(day, [])
        result.append(
            {
                "date": day,
                "orders": len(day_orders),
                "revenue": sum(int(o.get("total_price", 0)) for o in day_orders),
            }
        )
    return result


def sales_report(
    orders: list[dict[str, Any]],
    today: date,
    tz: ZoneInfo | None = None,
) -> dict[str, Any]:
    """Sales performance over paid orders only."""
    paid = _orders_with_status(orders, OrderStatus.PAID)
    total_revenue = sum(int(order.get("total_price", 0)) for order in paid)
    total_orders = len(paid)

    return {
        "total_orders": total_orders,
        "total_revenue": total_revenue,
        "average_order_value": total_revenue / total_orders if total_orders else 0.0,
        "top_items": menu_stats(paid),
        "daily": daily_stats(paid, today, tz=tz),
    }


def dashboard_summary(orders: list[dict[str, Any]], today: date, total_users: int) -> dict[str, Any]:
    """Counters for the admin dashboard; "today" means delivery date today."""
    today_orders = [order for order in orders if _as_date(order["delivery_date"]) == today]

    menu_summary: dict[str, int] = defaultdict(int)
    for order in today_orders:
        for item in order.get("items", []):
            menu_summary[item["menu_item_name"]] += int(item["quantity"])

    return {
        "today_orders": len(today_orders),
        "pending_orders": len(_orders_with_status(orders, OrderStatus.PENDING)),
        "total_revenue": _bucket(_orders_with_status(orders, OrderStatus.PAID))["amount"],
        "total_users": total_users,
        "menu_summary": dict(menu_summary),
    }


class ReportService:
    """Service that loads orders and hands them to the report functions."""

    def __init__(self) -> None:
        """Initialize report service with Supabase client."""
        self.client = get_supabase_client()
        self.settings = get_settings()

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(self.settings.delivery_timezone)

    def today(self) -> date:
        return datetime.now(self.timezone).date()

    async def _load_orders(self, since: date | None = None) -> list[dict[str, Any]]:
        query = self.client.table("orders").select("*")
        if since:
            query = query.gte("created_at", since.isoformat())
        response = query.execute()
        return response.data or []

    async def get_finance_summary(self, since: date | None = None) -> dict[str, Any]:
        return finance_summary(await self._load_orders(since))

    async def get_sales_report(self, since: date | None = None) -> dict[str, Any]:
        return sales_report(await self._load_orders(since), self.today(), tz=self.timezone)

    async def get_dashboard(self) -> dict[str, Any]:
        orders = await self._load_orders()
        users = self.client.table("profiles").select("id", count="exact").execute()
        total_users = users.count if users.count is not None else len(users.data or [])
        return dashboard_summary(orders, self.today(), total_users)

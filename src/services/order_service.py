"""Order business logic service.

Orders are created from the cart in ``pending`` status and afterwards only
ever change status. They are never deleted.
"""

import logging
import secrets
import time
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable
from uuid import UUID
from zoneinfo import ZoneInfo

from src.api.middleware.error_handler import NotFoundError, ValidationError
from src.core.config import get_settings
from src.core.supabase import get_supabase_client
from src.models.order import Order, OrderCreate, OrderItem, OrderStatusUpdate
from src.services.cart_service import CartService
from src.services.payment_status import OrderStatus, is_terminal
from src.services.recipient_service import RecipientService

logger = logging.getLogger(__name__)


class OrderNotFoundError(Exception):
    """No order row matched the identifier being updated."""

    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class OrderPersistenceError(Exception):
    """The order store rejected or failed a write."""


class BatchUpdateError(Exception):
    """A multi-order status update did not reach every requested order."""

    def __init__(self, status: OrderStatus, missing_ids: list[str]) -> None:
        self.status = status
        self.missing_ids = missing_ids
        super().__init__(
            f"Status {status.value} not applied to orders: {', '.join(missing_ids)}"
        )


def generate_order_id() -> str:
    """Create an order identifier: ``ORD-<epoch ms>-<hex>``."""
    return f"ORD-{int(time.time() * 1000)}-{secrets.token_hex(3).upper()}"


def delivery_window(
    now: datetime,
    cutoff_hour: int,
    window_days: int,
) -> tuple[date, date]:
    """Earliest and latest bookable delivery dates.

    Same-day delivery is only possible before ``cutoff_hour`` local time.

    Args:
        now: Current time, already in the delivery timezone.
        cutoff_hour: Hour at which same-day ordering closes.
        window_days: How many days past the earliest date can be booked.

    Returns:
        tuple[date, date]: (min_date, max_date), both inclusive.
    """
    cutoff = now.replace(hour=cutoff_hour, minute=0, second=0, microsecond=0)
    min_date = now.date() if now < cutoff else now.date() + timedelta(days=1)
    return min_date, min_date + timedelta(days=window_days)


def order_total(items: Iterable[dict[str, Any]]) -> int:
    """Sum of price x quantity over order line items."""
    return sum(int(item["price"]) * int(item["quantity"]) for item in items)


def writable_from(status: OrderStatus) -> list[str]:
    """Stored statuses an order may have for ``status`` to be written over it."""
    return list(dict.fromkeys([OrderStatus.PENDING.value, status.value]))


class OrderService:
    """Service for creating orders and persisting their status."""

    def __init__(self) -> None:
        """Initialize order service with Supabase client."""
        self.client = get_supabase_client()
        self.settings = get_settings()
        self.cart_service = CartService()
        self.recipient_service = RecipientService()

    def _now_local(self) -> datetime:
        return datetime.now(ZoneInfo(self.settings.delivery_timezone))

    async def create_order_from_cart(
        self,
        user_id: UUID,
        recipient_id: UUID,
        delivery_date: date,
    ) -> Order:
        """Check out the user's cart into a pending order.

        Line item names and prices are copied from the menu at this moment,
        so later menu price changes do not affect the order.

        Args:
            user_id: The ordering user.
            recipient_id: Recipient owned by the user.
            delivery_date: Requested delivery date.

        Returns:
            Order: The created order row.

        Raises:
            NotFoundError: If the recipient does not belong to the user.
            ValidationError: If the cart is empty, an item is unavailable or
                the delivery date is outside the booking window.
        """
        recipient = await self.recipient_service.get_recipient(recipient_id, user_id)
        if not recipient:
            raise NotFoundError("Recipient not found")

        min_date, max_date = delivery_window(
            self._now_local(),
            self.settings.order_cutoff_hour,
            self.settings.order_window_days,
        )
        if delivery_date < min_date or delivery_date > max_date:
            raise ValidationError(
                f"Delivery date must be between {min_date.isoformat()} and {max_date.isoformat()}"
            )

        lines = await self.cart_service.get_cart_lines(user_id)
        if not lines:
            raise ValidationError("Cart is empty")

        items: list[OrderItem] = []
        for line in lines:
            menu_item = line["menu_item"]
            if not menu_item.get("is_available", True):
                raise ValidationError(f"{menu_item['name']} is not available")
            stock = menu_item.get("stock")
            if stock is not None and line["quantity"] > stock:
                raise ValidationError(f"Only {stock} left of {menu_item['name']}")
            items.append(
                {
                    "menu_item_id": str(menu_item["id"]),
                    "menu_item_name": menu_item["name"],
                    "price": int(menu_item["price"]),
                    "quantity": int(line["quantity"]),
                }
            )

        now = datetime.now(timezone.utc).isoformat()
        order_data: OrderCreate = {
            "id": generate_order_id(),
            "user_id": str(user_id),
            "recipient_id": str(recipient_id),
            "recipient_name": recipient["name"],
            "recipient_class": recipient.get("class_name", ""),
            "items": items,
            "total_price": order_total(items),
            "delivery_date": delivery_date.isoformat(),
            "status": OrderStatus.PENDING.value,
            "created_at": now,
            "updated_at": now,
        }

        response = self.client.table("orders").insert(order_data).execute()
        order = response.data[0]
        logger.info("Order %s created for user %s (total %d)", order["id"], user_id, order_data["total_price"])

        await self.cart_service.clear_cart(user_id)
        return order

    async def get_order(self, order_id: str) -> Order | None:
        """Get an order by ID.

        Args:
            order_id: The order identifier.

        Returns:
            Order | None: The order data or None if not found.
        """
        response = (
            self.client.table("orders")
            .select("*")
            .eq("id", order_id)
            .maybe_single()
            .execute()
        )

        return response.data if response and response.data else None

    async def get_order_for_user(self, order_id: str, user_id: UUID) -> Order:
        """Get an order owned by ``user_id``.

        Raises:
            NotFoundError: If the order does not exist or belongs to someone else.
        """
        order = await self.get_order(order_id)
        if not order or order.get("user_id") != str(user_id):
            raise NotFoundError("Order not found")
        return order

    async def get_orders_by_ids(self, order_ids: list[str]) -> list[Order]:
        response = (
            self.client.table("orders")
            .select("*")
            .in_("id", order_ids)
            .execute()
        )

        return response.data or []

    async def list_orders_for_user(
        self,
        user_id: UUID,
        status: OrderStatus | None = None,
    ) -> list[Order]:
        """Get the user's orders, newest first, optionally filtered by status."""
        query = self.client.table("orders").select("*").eq("user_id", str(user_id))
        if status:
            query = query.eq("status", status.value)
        response = query.order("created_at", desc=True).execute()

        return response.data or []

    async def list_all_orders(
        self,
        status: OrderStatus | None = None,
        delivery_date: date | None = None,
    ) -> list[Order]:
        """Get every order (admin), newest first."""
        query = self.client.table("orders").select("*")
        if status:
            query = query.eq("status", status.value)
        if delivery_date:
            query = query.eq("delivery_date", delivery_date.isoformat())
        response = query.order("created_at", desc=True).execute()

        return response.data or []

    async def reorder(self, order_id: str, user_id: UUID) -> int:
        """Put the still-available items of a past order back in the cart.

        Returns:
            int: Number of line items added.
        """
        order = await self.get_order_for_user(order_id, user_id)
        added = 0
        for item in order.get("items", []):
            try:
                await self.cart_service.add_item(user_id, UUID(item["menu_item_id"]), item["quantity"])
            except (NotFoundError, ValidationError):
                logger.info("Skipping unavailable item %s on reorder of %s", item["menu_item_id"], order_id)
                continue
            added += 1
        return added

    async def update_order_status(self, order_id: str, status: OrderStatus) -> Order:
        """Set an order's status and refresh its updated_at.

        Writing the same status twice leaves the same stored status and does
        not error. An order that already reached a different final status is
        left alone, so a late notification for an abandoned transaction
        cannot undo a payment. The UPDATE itself only matches a pending order
        or one already in ``status``, which covers a concurrent writer.

        Args:
            order_id: The order identifier.
            status: Status to persist.

        Returns:
            Order: The order row as stored after the call.

        Raises:
            OrderNotFoundError: If no order has this ID. Nothing is inserted.
            OrderPersistenceError: If the store read or write fails.
        """
        current = await self._get_order_for_update(order_id)
        if current["status"] != status.value and is_terminal(current["status"]):
            logger.warning(
                "Order %s is already %s, not changing it to %s",
                order_id,
                current["status"],
                status.value,
            )
            return current

        update_data: OrderStatusUpdate = {
            "status": status.value,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }

        try:
            response = (
                self.client.table("orders")
                .update(update_data)
                .eq("id", order_id)
                .in_("status", writable_from(status))
                .execute()
            )
        except Exception as e:
            logger.error("Failed to update order %s to %s: %s", order_id, status.value, str(e))
            raise OrderPersistenceError(f"Failed to update order {order_id}: {e}") from e

        if not response.data:
            # Finalized by another writer between the read and the update
            logger.warning("Order %s changed before %s was written", order_id, status.value)
            return await self._get_order_for_update(order_id)

        logger.info("Order %s status updated to %s", order_id, status.value)
        return response.data[0]

    async def _get_order_for_update(self, order_id: str) -> Order:
        try:
            order = await self.get_order(order_id)
        except Exception as e:
            logger.error("Failed to load order %s: %s", order_id, str(e))
            raise OrderPersistenceError(f"Failed to load order {order_id}: {e}") from e

        if not order:
            logger.warning("Order not found for status update: %s", order_id)
            raise OrderNotFoundError(order_id)
        return order

    async def update_orders_status(self, order_ids: list[str], status: OrderStatus) -> list[Order]:
        """Apply one status to several orders in a single statement.

        Every ID is checked to exist first; if any is unknown nothing is
        written. Orders that already reached a different final status are
        skipped the same way update_order_status skips them. The rest are
        written by one ``UPDATE ... WHERE id IN (...)``, so the store changes
        them together or not at all.

        Returns:
            list[Order]: The covered order rows as stored after the call.

        Raises:
            BatchUpdateError: If some order IDs matched no row.
            OrderPersistenceError: If the store read or write fails.
        """
        try:
            existing = await self.get_orders_by_ids(order_ids)
        except Exception as e:
            raise OrderPersistenceError(f"Failed to load orders: {e}") from e

        by_id = {row["id"]: row for row in existing}
        missing = [order_id for order_id in order_ids if order_id not in by_id]
        if missing:
            logger.error("Batch status update to %s refused, unknown orders: %s", status.value, missing)
            raise BatchUpdateError(status, missing)

        settled = [
            order_id
            for order_id in order_ids
            if by_id[order_id]["status"] != status.value and is_terminal(by_id[order_id]["status"])
        ]
        if settled:
            logger.warning("Orders %s are already final, not changing them to %s", settled, status.value)

        targets = [order_id for order_id in order_ids if order_id not in settled]
        if not targets:
            return [by_id[order_id] for order_id in order_ids]

        update_data: OrderStatusUpdate = {
            "status": status.value,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }

        try:
            response = (
                self.client.table("orders")
                .update(update_data)
                .in_("id", targets)
                .in_("status", writable_from(status))
                .execute()
            )
        except Exception as e:
            logger.error("Failed to update orders %s to %s: %s", targets, status.value, str(e))
            raise OrderPersistenceError(f"Failed to update orders: {e}") from e

        updated = response.data or []
        updated_ids = {row["id"] for row in updated}
        missing = [order_id for order_id in targets if order_id not in updated_ids]
        if missing:
            logger.error("Batch status update to %s missed orders: %s", status.value, missing)
            raise BatchUpdateError(status, missing)

        logger.info("Orders %s status updated to %s", targets, status.value)
        return updated + [by_id[order_id] for order_id in settled]

    async def list_invoices(self, user_id: UUID) -> list[dict[str, Any]]:
        """One invoice per paid order of the user."""
        paid = await self.list_orders_for_user(user_id, OrderStatus.PAID)
        generated_at = datetime.now(timezone.utc)
        return [
            {
                "id": f"INV-{order['id']}",
                "order_id": order["id"],
                "order": order,
                "generated_at": generated_at,
            }
            for order in paid
        ]

    async def build_combined_invoice(self, user_id: UUID, order_ids: list[str]) -> dict[str, Any]:
        """One invoice over several of the user's paid orders.

        Raises:
            NotFoundError: If an order is unknown or belongs to someone else.
            ValidationError: If an order is not paid.
        """
        unique_ids = list(dict.fromkeys(order_ids))
        orders = await self.get_orders_by_ids(unique_ids)
        by_id = {order["id"]: order for order in orders}

        selected = []
        for order_id in unique_ids:
            order = by_id.get(order_id)
            if not order or order.get("user_id") != str(user_id):
                raise NotFoundError(f"Order not found: {order_id}")
            if order.get("status") != OrderStatus.PAID.value:
                raise ValidationError(f"Order {order_id} is not paid")
            selected.append(order)

        return {
            "id": f"INV-COMB-{int(time.time() * 1000)}",
            "orders": selected,
            "total_amount": sum(int(order["total_price"]) for order in selected),
            "generated_at": datetime.now(timezone.utc),
        }

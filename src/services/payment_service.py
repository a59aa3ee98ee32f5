"""Payment initiation service for Midtrans Snap.

Creates Snap transactions for a single order or for a batch of pending
orders, and applies a resolved OrderStatus to whatever orders a payment ID
covers.
"""

import logging
import secrets
import time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable
from uuid import UUID

from src.core.config import get_settings
from src.core.midtrans import SnapClient, get_snap_client
from src.core.supabase import get_supabase_client
from src.models.order import Order, PaymentBatch
from src.schemas.auth import UserContext
from src.schemas.payment import PaymentCreate
from src.services.order_service import OrderNotFoundError, OrderPersistenceError, OrderService
from src.services.payment_status import OrderStatus, map_transaction_status

logger = logging.getLogger(__name__)

# Midtrans rejects item names longer than this
MAX_ITEM_NAME_LENGTH = 50

BATCH_PREFIX = "BATCH-"


class PaymentRequestError(Exception):
    """A payment request that cannot be sent to the gateway."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class PaymentAmountError(Exception):
    """The gateway reported a different amount than the stored total."""

    def __init__(self, payment_id: str, reported: str, expected: int) -> None:
        self.payment_id = payment_id
        self.reported = reported
        self.expected = expected
        super().__init__(f"Amount {reported} for {payment_id} does not match total {expected}")


def round_amount(value: float | int | Decimal) -> int:
    """Round a rupiah amount to a whole number, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def clip_item_name(name: str, limit: int = MAX_ITEM_NAME_LENGTH) -> str:
    """Clip a display name to the gateway's field length."""
    return name[:limit]


def generate_batch_id() -> str:
    """Create a batch transaction ID; the prefix keeps it apart from order IDs."""
    return f"{BATCH_PREFIX}{int(time.time() * 1000)}-{secrets.token_hex(4).upper()}"


def is_batch_id(payment_id: str) -> bool:
    return payment_id.startswith(BATCH_PREFIX)


def build_transaction_payload(
    order_id: str,
    gross_amount: float | int,
    customer_name: str,
    customer_email: str,
    items: Iterable[dict[str, Any]],
) -> dict[str, Any]:
    """Build a Snap transaction request body.

    New dictionaries are built for every item, so the caller's order data is
    never modified by the name clipping or rounding.

    Args:
        order_id: Gateway order_id (an order ID or a batch ID).
        gross_amount: Total in rupiah; rounded to a whole number.
        customer_name: Customer first name.
        customer_email: Customer email.
        items: Dicts with id, name, price and quantity.

    Returns:
        dict: Snap request body.

    Raises:
        PaymentRequestError: If the rounded amount is not positive.
    """
    amount = round_amount(gross_amount)
    if amount < 1:
        raise PaymentRequestError("gross_amount must be a positive amount")

    return {
        "transaction_details": {
            "order_id": order_id,
            "gross_amount": amount,
        },
        "customer_details": {
            "first_name": customer_name,
            "email": customer_email,
        },
        "item_details": [
            {
                "id": str(item["id"]),
                "name": clip_item_name(str(item["name"])),
                "price": round_amount(item["price"]),
                "quantity": int(item["quantity"]),
            }
            for item in items
        ],
    }


def aggregate_order_items(orders: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Merge the line items of several orders into gateway item details.

    Lines for the same menu item at the same snapshotted price are merged;
    the same item at different prices stays on separate lines so that the
    item sum still equals the orders' summed total.
    """
    merged: dict[tuple[str, int], dict[str, Any]] = {}
    for order in orders:
        for item in order.get("items", []):
            key = (str(item["menu_item_id"]), int(item["price"]))
            if key in merged:
                merged[key]["quantity"] += int(item["quantity"])
            else:
                merged[key] = {
                    "id": str(item["menu_item_id"]),
                    "name": item["menu_item_name"],
                    "price": int(item["price"]),
                    "quantity": int(item["quantity"]),
                }
    return list(merged.values())


class PaymentService:
    """Service for creating Snap transactions and applying payment results."""

    def __init__(self, snap_client: SnapClient | None = None) -> None:
        """Initialize payment service.

        Args:
            snap_client: Snap client to use; built from settings on first
                use when omitted.
        """
        self.client = get_supabase_client()
        self.settings = get_settings()
        self.order_service = OrderService()
        self._snap_client = snap_client

    @property
    def snap(self) -> SnapClient:
        """Snap client, created lazily so a missing key only fails payment calls."""
        if self._snap_client is None:
            self._snap_client = get_snap_client()
        return self._snap_client

    async def _load_order(self, order_id: str) -> Order | None:
        try:
            return await self.order_service.get_order(order_id)
        except Exception as e:
            logger.error("Failed to load order %s: %s", order_id, str(e))
            raise OrderPersistenceError(f"Failed to load order {order_id}: {e}") from e

    async def create_payment(self, data: PaymentCreate, user_id: UUID | None = None) -> dict[str, Any]:
        """Request a Snap token for one order.

        Args:
            data: Payment request (order, amount, customer, items).
            user_id: When given, the order must exist, belong to this user
                and still be pending. The amount and line items sent to the
                gateway are then taken from the stored order, and a posted
                ``gross_amount`` that differs from its total is refused.

        Returns:
            dict: ``token`` and ``redirect_url``.

        Raises:
            PaymentRequestError: If the order cannot be paid or the amount is invalid.
            MidtransConfigurationError: If the server key is missing.
            MidtransAPIError: If the gateway rejects the request. Not retried.
        """
        gross_amount: float | int = data.gross_amount
        items = [item.model_dump() for item in data.items]

        if user_id is not None:
            try:
                order = await self._load_order(data.order_id)
            except OrderPersistenceError as e:
                raise PaymentRequestError(str(e)) from e
            if not order or order.get("user_id") != str(user_id):
                raise PaymentRequestError(f"Order not found: {data.order_id}")
            if order.get("status") != OrderStatus.PENDING.value:
                raise PaymentRequestError(f"Order {data.order_id} is not awaiting payment")

            total = int(order["total_price"])
            if round_amount(data.gross_amount) != total:
                logger.warning(
                    "Payment for %s posted gross_amount %s, order total is %d",
                    data.order_id,
                    data.gross_amount,
                    total,
                )
                raise PaymentRequestError(f"gross_amount does not match the order total of {total}")
            gross_amount = total
            items = aggregate_order_items([order])

        payload = build_transaction_payload(
            order_id=data.order_id,
            gross_amount=gross_amount,
            customer_name=data.customer_name,
            customer_email=data.customer_email,
            items=items,
        )

        logger.info("Creating Midtrans transaction for order: %s", data.order_id)
        result = self.snap.create_transaction(payload)
        logger.info("Midtrans transaction created for order %s", data.order_id)

        return {"token": result["token"], "redirect_url": result.get("redirect_url")}

    async def create_batch_payment(self, user: UserContext, order_ids: list[str]) -> dict[str, Any]:
        """Request one Snap token covering several pending orders.

        A batch row records which orders the synthetic transaction ID covers.
        It is written only once the gateway has issued a token, and the token
        is handed out only once the row exists, so every payable batch can be
        resolved by the webhook. Orders stay pending here; they become paid
        only when the gateway confirms the batch transaction.

        Args:
            user: The paying user; every order must belong to them.
            order_ids: Orders to pay together.

        Returns:
            dict: token, redirect_url, payment_id, order_ids, gross_amount.

        Raises:
            PaymentRequestError: If an order is unknown, foreign or not pending,
                or the orders or batch could not be read or recorded.
            MidtransConfigurationError: If the server key is missing.
            MidtransAPIError: If the gateway rejects the request.
        """
        unique_ids = list(dict.fromkeys(order_ids))
        try:
            orders = await self.order_service.get_orders_by_ids(unique_ids)
        except Exception as e:
            logger.error("Failed to load orders %s: %s", unique_ids, str(e))
            raise PaymentRequestError(f"Failed to load orders: {e}") from e
        by_id = {order["id"]: order for order in orders}

        for order_id in unique_ids:
            order = by_id.get(order_id)
            if not order or order.get("user_id") != str(user.user_id):
                raise PaymentRequestError(f"Order not found: {order_id}")
            if order.get("status") != OrderStatus.PENDING.value:
                raise PaymentRequestError(f"Order {order_id} is not awaiting payment")

        selected = [by_id[order_id] for order_id in unique_ids]
        gross_amount = sum(int(order["total_price"]) for order in selected)
        payment_id = generate_batch_id()

        payload = build_transaction_payload(
            order_id=payment_id,
            gross_amount=gross_amount,
            customer_name=user.name or user.email or "",
            customer_email=user.email or "",
            items=aggregate_order_items(selected),
        )

        logger.info("Creating Midtrans batch transaction %s for orders %s", payment_id, unique_ids)
        result = self.snap.create_transaction(payload)

        batch = {
            "id": payment_id,
            "user_id": str(user.user_id),
            "order_ids": unique_ids,
            "gross_amount": gross_amount,
        }
        try:
            self.client.table("payment_batches").insert(batch).execute()
        except Exception as e:
            logger.error("Failed to record batch %s: %s", payment_id, str(e))
            raise PaymentRequestError(f"Failed to record batch {payment_id}: {e}") from e

        return {
            "token": result["token"],
            "redirect_url": result.get("redirect_url"),
            "payment_id": payment_id,
            "order_ids": unique_ids,
            "gross_amount": gross_amount,
        }

    async def get_batch(self, batch_id: str) -> PaymentBatch | None:
        """Get a batch row by its transaction ID.

        Raises:
            OrderPersistenceError: If the store read fails.
        """
        try:
            response = (
                self.client.table("payment_batches")
                .select("*")
                .eq("id", batch_id)
                .maybe_single()
                .execute()
            )
        except Exception as e:
            logger.error("Failed to load batch %s: %s", batch_id, str(e))
            raise OrderPersistenceError(f"Failed to load batch {batch_id}: {e}") from e

        return response.data if response and response.data else None

    async def resolve_order_ids(self, payment_id: str) -> list[str]:
        """Orders covered by a gateway order_id.

        Raises:
            OrderNotFoundError: If ``payment_id`` is an unknown batch ID.
            OrderPersistenceError: If the batch could not be read.
        """
        if not is_batch_id(payment_id):
            return [payment_id]

        batch = await self.get_batch(payment_id)
        if not batch:
            raise OrderNotFoundError(payment_id)
        return list(batch["order_ids"])

    async def get_payment_owner(self, payment_id: str) -> str | None:
        """User ID that owns an order or batch, or None if unknown."""
        if is_batch_id(payment_id):
            row = await self.get_batch(payment_id)
        else:
            row = await self._load_order(payment_id)
        return row.get("user_id") if row else None

    async def expected_amount(self, payment_id: str) -> int:
        """Amount the gateway must report for a payment: order or batch total.

        Raises:
            OrderNotFoundError: If the order or batch does not exist.
            OrderPersistenceError: If the store read fails.
        """
        if is_batch_id(payment_id):
            batch = await self.get_batch(payment_id)
            if not batch:
                raise OrderNotFoundError(payment_id)
            return int(batch["gross_amount"])

        order = await self._load_order(payment_id)
        if not order:
            raise OrderNotFoundError(payment_id)
        return int(order["total_price"])

    async def verify_amount(self, payment_id: str, gross_amount: str) -> None:
        """Check a gateway-reported amount against the stored total.

        Raises:
            PaymentAmountError: If the amounts differ or the reported one is not a number.
            OrderNotFoundError: If the order or batch does not exist.
            OrderPersistenceError: If the store read fails.
        """
        expected = await self.expected_amount(payment_id)
        try:
            reported = round_amount(Decimal(gross_amount))
        except InvalidOperation as e:
            raise PaymentAmountError(payment_id, gross_amount, expected) from e

        if reported != expected:
            logger.error("Amount mismatch for %s: gateway %s, stored %d", payment_id, gross_amount, expected)
            raise PaymentAmountError(payment_id, gross_amount, expected)

    async def confirm_status(self, payment_id: str) -> OrderStatus | None:
        """Ask the gateway for a payment's current status.

        The gateway's answer goes through the same mapping as notifications.
        A paid answer is only accepted when its amount matches the stored total.

        Returns:
            OrderStatus | None: Mapped status, or None if the gateway has no
            transaction for ``payment_id`` yet.

        Raises:
            MidtransError: If the gateway is unreachable, rejects the query or
                the server key is missing.
            PaymentAmountError: If a paid transaction's amount does not match.
        """
        result = self.snap.get_transaction_status(payment_id)
        if result is None:
            return None

        status = map_transaction_status(result["transaction_status"], result.get("fraud_status"))
        if status == OrderStatus.PAID:
            await self.verify_amount(payment_id, str(result.get("gross_amount", "")))
        return status

    async def apply_status(self, payment_id: str, status: OrderStatus) -> list[str]:
        """Persist a resolved status for every order a payment covers.

        Batches are updated all-or-nothing (see OrderService.update_orders_status).
        Orders that already reached a different final status keep it.

        Returns:
            list[str]: IDs of the orders the payment covers.

        Raises:
            OrderNotFoundError: If the order or batch does not exist.
            BatchUpdateError: If a batch references orders that do not exist.
            OrderPersistenceError: If the store read or write fails.
        """
        if is_batch_id(payment_id):
            order_ids = await self.resolve_order_ids(payment_id)
            await self.order_service.update_orders_status(order_ids, status)
            return order_ids

        await self.order_service.update_order_status(payment_id, status)
        return [payment_id]

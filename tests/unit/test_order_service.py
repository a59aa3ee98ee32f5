"""Unit tests for OrderService."""

from datetime import date, datetime, timedelta
from unittest.mock import MagicMock, patch
from uuid import UUID
from zoneinfo import ZoneInfo

import pytest

from src.api.middleware.error_handler import NotFoundError, ValidationError
from src.services.order_service import (
    BatchUpdateError,
    OrderNotFoundError,
    OrderPersistenceError,
    OrderService,
    delivery_window,
    generate_order_id,
    order_total,
)
from src.services.payment_status import OrderStatus

USER_ID = UUID("550e8400-e29b-41d4-a716-446655440000")
RECIPIENT_ID = UUID("770e8400-e29b-41d4-a716-446655440000")
JAKARTA = ZoneInfo("Asia/Jakarta")


@pytest.fixture
def order_service(mock_supabase_client: MagicMock) -> OrderService:
    """Create OrderService with the mocked Supabase client."""
    return OrderService()


@pytest.fixture
def sample_order() -> dict:
    return {
        "id": "ORD-1718000000000-A1B2C3",
        "user_id": str(USER_ID),
        "recipient_id": str(RECIPIENT_ID),
        "recipient_name": "Budi",
        "recipient_class": "Kelas 3A",
        "items": [
            {"menu_item_id": "m1", "menu_item_name": "Nasi Goreng", "price": 15000, "quantity": 2},
        ],
        "total_price": 30000,
        "delivery_date": "2026-10-20",
        "status": "pending",
        "created_at": "2026-10-19T01:00:00+00:00",
    }


def set_stored_order(tables: dict[str, MagicMock], order: dict | None) -> None:
    tables["orders"].select.return_value.eq.return_value.maybe_single.return_value.execute.return_value = (
        MagicMock(data=order) if order else None
    )


class TestHelpers:
    def test_generate_order_id_format(self) -> None:
        order_id = generate_order_id()

        prefix, millis, suffix = order_id.split("-")
        assert prefix == "ORD"
        assert millis.isdigit()
        assert len(suffix) == 6

    def test_order_total(self) -> None:
        items = [{"price": 15000, "quantity": 2}, {"price": 5000, "quantity": 1}]

        assert order_total(items) == 35000

    def test_delivery_window_before_cutoff_allows_today(self) -> None:
        now = datetime(2026, 10, 19, 4, 59, tzinfo=JAKARTA)

        assert delivery_window(now, 5, 7) == (date(2026, 10, 19), date(2026, 10, 26))

    def test_delivery_window_after_cutoff_starts_tomorrow(self) -> None:
        now = datetime(2026, 10, 19, 5, 0, tzinfo=JAKARTA)

        assert delivery_window(now, 5, 7) == (date(2026, 10, 20), date(2026, 10, 27))


class TestUpdateOrderStatus:
    """Tests for the single-order status write."""

    @pytest.mark.asyncio
    async def test_updates_status_and_timestamp(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
        sample_order: dict,
    ) -> None:
        set_stored_order(tables, sample_order)
        orders = tables["orders"]
        orders.update.return_value.eq.return_value.in_.return_value.execute.return_value = MagicMock(
            data=[{**sample_order, "status": "paid"}]
        )

        result = await order_service.update_order_status(sample_order["id"], OrderStatus.PAID)

        assert result["status"] == "paid"
        update_data = orders.update.call_args[0][0]
        assert update_data["status"] == "paid"
        assert "updated_at" in update_data
        orders.update.return_value.eq.assert_called_with("id", sample_order["id"])
        orders.update.return_value.eq.return_value.in_.assert_called_with("status", ["pending", "paid"])

    @pytest.mark.asyncio
    async def test_repeating_same_status_is_idempotent(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
        sample_order: dict,
    ) -> None:
        set_stored_order(tables, {**sample_order, "status": "paid"})
        tables["orders"].update.return_value.eq.return_value.in_.return_value.execute.return_value = MagicMock(
            data=[{**sample_order, "status": "paid"}]
        )

        first = await order_service.update_order_status(sample_order["id"], OrderStatus.PAID)
        second = await order_service.update_order_status(sample_order["id"], OrderStatus.PAID)

        assert first["status"] == second["status"] == "paid"
        assert tables["orders"].update.call_count == 2

    @pytest.mark.asyncio
    async def test_late_expire_does_not_overwrite_paid_order(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
        sample_order: dict,
    ) -> None:
        set_stored_order(tables, {**sample_order, "status": "paid"})

        result = await order_service.update_order_status(sample_order["id"], OrderStatus.EXPIRED)

        assert result["status"] == "paid"
        tables["orders"].update.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_order_is_not_marked_paid(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
        sample_order: dict,
    ) -> None:
        set_stored_order(tables, {**sample_order, "status": "failed"})

        result = await order_service.update_order_status(sample_order["id"], OrderStatus.PAID)

        assert result["status"] == "failed"
        tables["orders"].update.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_final_write_wins(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
        sample_order: dict,
    ) -> None:
        orders = tables["orders"]
        orders.select.return_value.eq.return_value.maybe_single.return_value.execute.side_effect = [
            MagicMock(data=sample_order),
            MagicMock(data={**sample_order, "status": "paid"}),
        ]
        orders.update.return_value.eq.return_value.in_.return_value.execute.return_value = MagicMock(data=[])

        result = await order_service.update_order_status(sample_order["id"], OrderStatus.EXPIRED)

        assert result["status"] == "paid"
        orders.update.return_value.eq.return_value.in_.assert_called_with("status", ["pending", "expired"])

    @pytest.mark.asyncio
    async def test_pending_write_only_matches_pending_orders(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
        sample_order: dict,
    ) -> None:
        set_stored_order(tables, sample_order)
        orders = tables["orders"]
        orders.update.return_value.eq.return_value.in_.return_value.execute.return_value = MagicMock(
            data=[sample_order]
        )

        await order_service.update_order_status(sample_order["id"], OrderStatus.PENDING)

        orders.update.return_value.eq.return_value.in_.assert_called_with("status", ["pending"])

    @pytest.mark.asyncio
    async def test_unknown_order_raises_and_never_inserts(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
    ) -> None:
        set_stored_order(tables, None)

        with pytest.raises(OrderNotFoundError) as exc_info:
            await order_service.update_order_status("ORD-missing", OrderStatus.PAID)

        assert exc_info.value.order_id == "ORD-missing"
        tables["orders"].update.assert_not_called()
        tables["orders"].insert.assert_not_called()
        tables["orders"].upsert.assert_not_called()

    @pytest.mark.asyncio
    async def test_store_failure_raises_persistence_error(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
        sample_order: dict,
    ) -> None:
        set_stored_order(tables, sample_order)
        tables["orders"].update.return_value.eq.return_value.in_.return_value.execute.side_effect = RuntimeError(
            "connection reset"
        )

        with pytest.raises(OrderPersistenceError, match="connection reset"):
            await order_service.update_order_status(sample_order["id"], OrderStatus.FAILED)

    @pytest.mark.asyncio
    async def test_read_failure_raises_persistence_error(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
    ) -> None:
        tables["orders"].select.return_value.eq.return_value.maybe_single.return_value.execute.side_effect = RuntimeError(
            "db down"
        )

        with pytest.raises(OrderPersistenceError, match="db down"):
            await order_service.update_order_status("ORD-1", OrderStatus.PAID)

        tables["orders"].update.assert_not_called()


class TestUpdateOrdersStatus:
    """Tests for the all-or-nothing multi-order write."""

    @pytest.mark.asyncio
    async def test_updates_all_orders_in_one_statement(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
    ) -> None:
        orders = tables["orders"]
        orders.select.return_value.in_.return_value.execute.return_value = MagicMock(
            data=[{"id": "ORD-1", "status": "pending"}, {"id": "ORD-2", "status": "pending"}]
        )
        orders.update.return_value.in_.return_value.in_.return_value.execute.return_value = MagicMock(
            data=[{"id": "ORD-1", "status": "paid"}, {"id": "ORD-2", "status": "paid"}]
        )

        result = await order_service.update_orders_status(["ORD-1", "ORD-2"], OrderStatus.PAID)

        assert [row["id"] for row in result] == ["ORD-1", "ORD-2"]
        orders.update.assert_called_once()
        orders.update.return_value.in_.assert_called_once_with("id", ["ORD-1", "ORD-2"])
        orders.update.return_value.in_.return_value.in_.assert_called_once_with("status", ["pending", "paid"])

    @pytest.mark.asyncio
    async def test_missing_order_aborts_before_any_write(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
    ) -> None:
        orders = tables["orders"]
        orders.select.return_value.in_.return_value.execute.return_value = MagicMock(
            data=[{"id": "ORD-1", "status": "pending"}]
        )

        with pytest.raises(BatchUpdateError) as exc_info:
            await order_service.update_orders_status(["ORD-1", "ORD-2"], OrderStatus.PAID)

        assert exc_info.value.missing_ids == ["ORD-2"]
        orders.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_orders_already_final_are_left_alone(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
    ) -> None:
        orders = tables["orders"]
        orders.select.return_value.in_.return_value.execute.return_value = MagicMock(
            data=[{"id": "ORD-1", "status": "pending"}, {"id": "ORD-2", "status": "paid"}]
        )
        orders.update.return_value.in_.return_value.in_.return_value.execute.return_value = MagicMock(
            data=[{"id": "ORD-1", "status": "expired"}]
        )

        result = await order_service.update_orders_status(["ORD-1", "ORD-2"], OrderStatus.EXPIRED)

        orders.update.return_value.in_.assert_called_once_with("id", ["ORD-1"])
        assert {row["id"]: row["status"] for row in result} == {"ORD-1": "expired", "ORD-2": "paid"}

    @pytest.mark.asyncio
    async def test_all_orders_final_writes_nothing(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
    ) -> None:
        orders = tables["orders"]
        orders.select.return_value.in_.return_value.execute.return_value = MagicMock(
            data=[{"id": "ORD-1", "status": "paid"}, {"id": "ORD-2", "status": "paid"}]
        )

        result = await order_service.update_orders_status(["ORD-1", "ORD-2"], OrderStatus.EXPIRED)

        orders.update.assert_not_called()
        assert [row["status"] for row in result] == ["paid", "paid"]

    @pytest.mark.asyncio
    async def test_rows_missing_from_write_are_reported(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
    ) -> None:
        orders = tables["orders"]
        orders.select.return_value.in_.return_value.execute.return_value = MagicMock(
            data=[{"id": "ORD-1", "status": "pending"}, {"id": "ORD-2", "status": "pending"}]
        )
        orders.update.return_value.in_.return_value.in_.return_value.execute.return_value = MagicMock(
            data=[{"id": "ORD-1"}]
        )

        with pytest.raises(BatchUpdateError, match="ORD-2"):
            await order_service.update_orders_status(["ORD-1", "ORD-2"], OrderStatus.PAID)

    @pytest.mark.asyncio
    async def test_write_failure_raises_persistence_error(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
    ) -> None:
        orders = tables["orders"]
        orders.select.return_value.in_.return_value.execute.return_value = MagicMock(
            data=[{"id": "ORD-1", "status": "pending"}]
        )
        orders.update.return_value.in_.return_value.in_.return_value.execute.side_effect = RuntimeError("timeout")

        with pytest.raises(OrderPersistenceError):
            await order_service.update_orders_status(["ORD-1"], OrderStatus.EXPIRED)


class TestCreateOrderFromCart:
    """Tests for checking out the cart into an order."""

    @pytest.fixture
    def cart_lines(self) -> list[dict]:
        return [
            {
                "menu_item": {
                    "id": "m1",
                    "name": "Nasi Goreng",
                    "price": 15000,
                    "is_available": True,
                    "stock": None,
                },
                "quantity": 2,
            },
            {
                "menu_item": {"id": "m2", "name": "Es Teh", "price": 5000, "is_available": True, "stock": 10},
                "quantity": 1,
            },
        ]

    @pytest.mark.asyncio
    async def test_snapshots_items_and_clears_cart(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
        cart_lines: list[dict],
    ) -> None:
        tables["recipients"].select.return_value.eq.return_value.eq.return_value.maybe_single.return_value.execute.return_value = MagicMock(
            data={"id": str(RECIPIENT_ID), "name": "Budi", "class_name": "Kelas 3A"}
        )
        tables["orders"].insert.return_value.execute.side_effect = lambda: MagicMock(
            data=[tables["orders"].insert.call_args[0][0]]
        )
        delivery = date(2026, 10, 21)

        with patch.object(order_service, "_now_local", return_value=datetime(2026, 10, 19, 8, 0, tzinfo=JAKARTA)), \
             patch.object(order_service.cart_service, "get_cart_lines", return_value=cart_lines), \
             patch.object(order_service.cart_service, "clear_cart") as mock_clear:
            order = await order_service.create_order_from_cart(USER_ID, RECIPIENT_ID, delivery)

        assert order["id"].startswith("ORD-")
        assert order["status"] == "pending"
        assert order["total_price"] == 35000
        assert order["recipient_name"] == "Budi"
        assert order["recipient_class"] == "Kelas 3A"
        assert order["items"][0] == {
            "menu_item_id": "m1",
            "menu_item_name": "Nasi Goreng",
            "price": 15000,
            "quantity": 2,
        }
        mock_clear.assert_awaited_once_with(USER_ID)

    @pytest.mark.asyncio
    async def test_rejects_date_outside_window(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
    ) -> None:
        tables["recipients"].select.return_value.eq.return_value.eq.return_value.maybe_single.return_value.execute.return_value = MagicMock(
            data={"id": str(RECIPIENT_ID), "name": "Budi", "class_name": "Kelas 3A"}
        )
        now = datetime(2026, 10, 19, 8, 0, tzinfo=JAKARTA)

        with patch.object(order_service, "_now_local", return_value=now):
            with pytest.raises(ValidationError, match="Delivery date"):
                await order_service.create_order_from_cart(USER_ID, RECIPIENT_ID, date(2026, 10, 19))
            with pytest.raises(ValidationError, match="Delivery date"):
                await order_service.create_order_from_cart(
                    USER_ID, RECIPIENT_ID, date(2026, 10, 20) + timedelta(days=8)
                )

        tables["orders"].insert.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_empty_cart(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
    ) -> None:
        tables["recipients"].select.return_value.eq.return_value.eq.return_value.maybe_single.return_value.execute.return_value = MagicMock(
            data={"id": str(RECIPIENT_ID), "name": "Budi", "class_name": "Kelas 3A"}
        )

        with patch.object(order_service, "_now_local", return_value=datetime(2026, 10, 19, 8, 0, tzinfo=JAKARTA)), \
             patch.object(order_service.cart_service, "get_cart_lines", return_value=[]):
            with pytest.raises(ValidationError, match="Cart is empty"):
                await order_service.create_order_from_cart(USER_ID, RECIPIENT_ID, date(2026, 10, 21))

    @pytest.mark.asyncio
    async def test_rejects_unavailable_item(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
        cart_lines: list[dict],
    ) -> None:
        tables["recipients"].select.return_value.eq.return_value.eq.return_value.maybe_single.return_value.execute.return_value = MagicMock(
            data={"id": str(RECIPIENT_ID), "name": "Budi", "class_name": "Kelas 3A"}
        )
        cart_lines[1]["menu_item"]["is_available"] = False

        with patch.object(order_service, "_now_local", return_value=datetime(2026, 10, 19, 8, 0, tzinfo=JAKARTA)), \
             patch.object(order_service.cart_service, "get_cart_lines", return_value=cart_lines):
            with pytest.raises(ValidationError, match="Es Teh is not available"):
                await order_service.create_order_from_cart(USER_ID, RECIPIENT_ID, date(2026, 10, 21))

    @pytest.mark.asyncio
    async def test_foreign_recipient_is_not_found(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
    ) -> None:
        tables["recipients"].select.return_value.eq.return_value.eq.return_value.maybe_single.return_value.execute.return_value = None

        with pytest.raises(NotFoundError):
            await order_service.create_order_from_cart(USER_ID, RECIPIENT_ID, date(2026, 10, 21))


class TestReadsAndInvoices:
    @pytest.mark.asyncio
    async def test_get_order_for_user_hides_other_users_orders(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
        sample_order: dict,
    ) -> None:
        tables["orders"].select.return_value.eq.return_value.maybe_single.return_value.execute.return_value = MagicMock(
            data={**sample_order, "user_id": "someone-else"}
        )

        with pytest.raises(NotFoundError):
            await order_service.get_order_for_user(sample_order["id"], USER_ID)

    @pytest.mark.asyncio
    async def test_combined_invoice_sums_paid_orders(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
        sample_order: dict,
    ) -> None:
        tables["orders"].select.return_value.in_.return_value.execute.return_value = MagicMock(
            data=[
                {**sample_order, "id": "ORD-1", "status": "paid", "total_price": 30000},
                {**sample_order, "id": "ORD-2", "status": "paid", "total_price": 12000},
            ]
        )

        invoice = await order_service.build_combined_invoice(USER_ID, ["ORD-1", "ORD-2", "ORD-1"])

        assert invoice["id"].startswith("INV-COMB-")
        assert invoice["total_amount"] == 42000
        assert [order["id"] for order in invoice["orders"]] == ["ORD-1", "ORD-2"]

    @pytest.mark.asyncio
    async def test_combined_invoice_rejects_unpaid_order(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
        sample_order: dict,
    ) -> None:
        tables["orders"].select.return_value.in_.return_value.execute.return_value = MagicMock(
            data=[{**sample_order, "id": "ORD-1", "status": "pending"}]
        )

        with pytest.raises(ValidationError, match="not paid"):
            await order_service.build_combined_invoice(USER_ID, ["ORD-1"])

    @pytest.mark.asyncio
    async def test_reorder_skips_unavailable_items(
        self,
        order_service: OrderService,
        tables: dict[str, MagicMock],
        sample_order: dict,
    ) -> None:
        sample_order["items"] = [
            {"menu_item_id": "11111111-1111-1111-1111-111111111111", "menu_item_name": "A", "price": 1, "quantity": 1},
            {"menu_item_id": "22222222-2222-2222-2222-222222222222", "menu_item_name": "B", "price": 1, "quantity": 3},
        ]
        tables["orders"].select.return_value.eq.return_value.maybe_single.return_value.execute.return_value = MagicMock(
            data=sample_order
        )

        with patch.object(
            order_service.cart_service,
            "add_item",
            side_effect=[None, ValidationError("Menu item is not available")],
        ) as mock_add:
            added = await order_service.reorder(sample_order["id"], USER_ID)

        assert added == 1
        assert mock_add.await_count == 2

"""Order model type definitions for database operations."""

from datetime import date, datetime
from typing import Literal, TypedDict
from uuid import UUID


# Order status values matching the database enum
OrderStatusValue = Literal["pending", "paid", "failed", "expired"]


class OrderItem(TypedDict):
    """Structure for a single line item in an order.

    Stored as part of the items JSONB array. Name and price are copied
    from the menu when the order is created.
    """

    menu_item_id: str
    menu_item_name: str
    price: int
    quantity: int


class Order(TypedDict):
    """Order table row representation.

    Orders are financial records and are never deleted.
    """

    id: str
    user_id: UUID
    recipient_id: UUID
    recipient_name: str
    recipient_class: str
    items: list[OrderItem]
    total_price: int
    delivery_date: date
    status: OrderStatusValue
    created_at: datetime
    updated_at: datetime


class OrderCreate(TypedDict, total=False):
    """Data required to create a new order at checkout."""

    id: str
    user_id: str
    recipient_id: str
    recipient_name: str
    recipient_class: str
    items: list[OrderItem]
    total_price: int
    delivery_date: str
    status: OrderStatusValue
    created_at: str
    updated_at: str


class OrderStatusUpdate(TypedDict):
    """The only mutation applied to an existing order."""

    status: OrderStatusValue
    updated_at: str


class PaymentBatch(TypedDict):
    """payment_batches table row.

    One gateway transaction covering several pending orders.
    """

    id: str
    user_id: UUID
    order_ids: list[str]
    gross_amount: int
    created_at: datetime

"""Order Pydantic schemas for API request/response models."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field

from src.services.payment_status import OrderStatus, status_display


class OrderItemSchema(BaseModel):
    """Schema for a single snapshotted line item in an order."""

    model_config = ConfigDict(from_attributes=True)

    menu_item_id: str = Field(description="Menu item ID")
    menu_item_name: str = Field(description="Menu item name at order time")
    price: int = Field(ge=0, description="Unit price at order time")
    quantity: int = Field(ge=1, description="Quantity ordered")


class OrderCreate(BaseModel):
    """Schema for checking out the cart via POST /orders."""

    recipient_id: UUID = Field(description="Recipient the order is delivered to")
    delivery_date: date = Field(description="Delivery date")


class StatusDisplaySchema(BaseModel):
    """Display metadata for an order status."""

    label: str
    variant: str


class OrderResponse(BaseModel):
    """Schema for order API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Order identifier")
    user_id: UUID = Field(description="Owning user")
    recipient_id: UUID = Field(description="Recipient")
    recipient_name: str = Field(default="", description="Recipient name at order time")
    recipient_class: str = Field(default="", description="Recipient class at order time")
    items: list[OrderItemSchema] = Field(description="Order line items")
    total_price: int = Field(description="Total amount in rupiah")
    delivery_date: date = Field(description="Delivery date")
    status: OrderStatus = Field(description="Order status")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp")

    @computed_field
    @property
    def status_display(self) -> StatusDisplaySchema:
        display = status_display(self.status)
        return StatusDisplaySchema(label=display.label, variant=display.variant)


class OrderListResponse(BaseModel):
    """Schema for order list API responses."""

    items: list[OrderResponse] = Field(description="List of orders")


class StatusOption(BaseModel):
    """One selectable order status with its display metadata."""

    value: OrderStatus
    label: str
    variant: str


class InvoiceResponse(BaseModel):
    """Invoice for a single paid order."""

    id: str = Field(description="Invoice number")
    order_id: str = Field(description="Invoiced order")
    order: OrderResponse
    generated_at: datetime


class InvoiceListResponse(BaseModel):
    items: list[InvoiceResponse]


class CombinedInvoiceCreate(BaseModel):
    """Request body for a combined invoice over several paid orders."""

    order_ids: list[str] = Field(min_length=1)


class CombinedInvoiceResponse(BaseModel):
    """One invoice covering several paid orders."""

    id: str = Field(description="Invoice number")
    orders: list[OrderResponse]
    total_amount: int = Field(description="Sum of the orders' totals")
    generated_at: datetime

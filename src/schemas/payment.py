"""Payment Pydantic schemas for the Snap initiation, notification and outcome endpoints."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PaymentItem(BaseModel):
    """A line item sent to the payment gateway."""

    id: str = Field(description="Menu item ID")
    name: str = Field(description="Display name (clipped to the gateway limit before sending)")
    price: float = Field(ge=0, description="Unit price in rupiah")
    quantity: int = Field(ge=1, description="Quantity ordered")


class PaymentCreate(BaseModel):
    """Request body for POST /payments."""

    order_id: str = Field(min_length=1, description="Order (or batch) ID used as the gateway order_id")
    gross_amount: float = Field(gt=0, description="Total amount in rupiah")
    customer_name: str = Field(description="Customer first name")
    customer_email: str = Field(description="Customer email")
    items: list[PaymentItem] = Field(default_factory=list, description="Line items")


class PaymentTokenResponse(BaseModel):
    """Response for POST /payments."""

    token: str = Field(description="Snap token for the payment overlay")
    redirect_url: str | None = Field(default=None, description="Hosted payment page URL")


class BatchPaymentCreate(BaseModel):
    """Request body for POST /payments/batch."""

    order_ids: list[str] = Field(min_length=1, description="Pending orders to pay in one transaction")


class BatchPaymentResponse(BaseModel):
    """Response for POST /payments/batch."""

    token: str = Field(description="Snap token for the payment overlay")
    redirect_url: str | None = Field(default=None, description="Hosted payment page URL")
    payment_id: str = Field(description="Synthetic transaction ID covering all orders")
    order_ids: list[str] = Field(description="Orders covered by this transaction")
    gross_amount: int = Field(description="Summed total sent to the gateway")


class MidtransNotification(BaseModel):
    """HTTP notification body posted by Midtrans."""

    model_config = ConfigDict(extra="allow")

    transaction_status: str = Field(min_length=1)
    order_id: str = Field(min_length=1)
    gross_amount: str
    payment_type: str
    transaction_time: str
    signature_key: str
    fraud_status: str | None = None
    status_code: str | None = None
    transaction_id: str | None = None


class PaymentOutcome(str, Enum):
    """The four mutually exclusive results of a Snap overlay session."""

    SUCCESS = "success"
    PENDING = "pending"
    ERROR = "error"
    CLOSED = "closed"


class PaymentOutcomeReport(BaseModel):
    """Outcome the browser observed, with the raw Snap result fields."""

    outcome: PaymentOutcome = Field(description="Which Snap callback fired")
    transaction_status: str | None = Field(default=None, description="transaction_status from the Snap result")
    fraud_status: str | None = Field(default=None, description="fraud_status from the Snap result")


class PaymentOutcomeResponse(BaseModel):
    """Result of applying a browser-reported outcome."""

    payment_id: str = Field(description="Order or batch ID the outcome belongs to")
    outcome: PaymentOutcome = Field(description="Reported outcome")
    status: str | None = Field(default=None, description="Status written, or null when nothing changed")
    order_ids: list[str] = Field(default_factory=list, description="Orders that were updated")


class PaymentConfigResponse(BaseModel):
    """Public Snap configuration for the browser."""

    client_key: str = Field(description="Midtrans client key")
    is_production: bool = Field(description="Whether production endpoints are used")
    snap_js_url: str = Field(description="Snap.js URL to load")

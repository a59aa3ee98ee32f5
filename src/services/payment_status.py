"""Order status vocabulary and the gateway status mapping.

Both the webhook path and the browser callback path go through
``map_transaction_status`` so they converge on the same stored status for
the same gateway outcome.
"""

from dataclasses import dataclass
from enum import Enum


class OrderStatus(str, Enum):
    """Application-level order status."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    EXPIRED = "expired"


TERMINAL_STATUSES = frozenset({OrderStatus.PAID, OrderStatus.FAILED, OrderStatus.EXPIRED})

# Midtrans transaction_status values
SUCCESS_TRANSACTION_STATUSES = frozenset({"capture", "settlement"})
FAILED_TRANSACTION_STATUSES = frozenset({"deny", "cancel", "failure"})

FRAUD_ACCEPT = "accept"


def map_transaction_status(transaction_status: str, fraud_status: str | None = None) -> OrderStatus:
    """Translate a gateway transaction status into an OrderStatus.

    Args:
        transaction_status: Gateway status (capture, settlement, pending, deny,
            cancel, failure, expire or anything else).
        fraud_status: Optional fraud verdict; only ``accept`` or absent counts
            as clean for captured/settled payments.

    Returns:
        OrderStatus: The status to persist. Unknown statuses fall back to pending.
    """
    if transaction_status in SUCCESS_TRANSACTION_STATUSES:
        if not fraud_status or fraud_status == FRAUD_ACCEPT:
            return OrderStatus.PAID
        return OrderStatus.FAILED

    if transaction_status == "pending":
        return OrderStatus.PENDING

    if transaction_status in FAILED_TRANSACTION_STATUSES:
        return OrderStatus.FAILED

    if transaction_status == "expire":
        return OrderStatus.EXPIRED

    return OrderStatus.PENDING


def is_terminal(status: OrderStatus | str) -> bool:
    """Check whether a status is final (paid, failed or expired)."""
    return OrderStatus(status) in TERMINAL_STATUSES


@dataclass(frozen=True)
class StatusDisplay:
    """Label and badge variant shown for an order status."""

    label: str
    variant: str


_STATUS_DISPLAY: dict[OrderStatus, StatusDisplay] = {
    OrderStatus.PAID: StatusDisplay(label="Lunas", variant="paid"),
    OrderStatus.PENDING: StatusDisplay(label="Pending", variant="pending"),
    OrderStatus.FAILED: StatusDisplay(label="Gagal", variant="failed"),
    OrderStatus.EXPIRED: StatusDisplay(label="Expired", variant="expired"),
}


def status_display(status: OrderStatus | str) -> StatusDisplay:
    """Get the display metadata for an order status.

    Raises:
        ValueError: If ``status`` is not a known OrderStatus value.
    """
    return _STATUS_DISPLAY[OrderStatus(status)]

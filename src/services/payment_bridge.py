"""Snap overlay bridge: one outcome per payment attempt.

The Snap handle is passed in explicitly rather than read from a global, so a
bridge can be built, driven and thrown away in tests.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from src.schemas.payment import PaymentOutcome
from src.services.payment_status import OrderStatus, map_transaction_status

logger = logging.getLogger(__name__)

OutcomeHandler = Callable[[PaymentOutcome, dict[str, Any] | None], None]


@dataclass
class SnapCallbacks:
    """The four callbacks Snap's ``pay`` accepts."""

    on_success: Callable[[dict[str, Any]], None]
    on_pending: Callable[[dict[str, Any]], None]
    on_error: Callable[[dict[str, Any]], None]
    on_close: Callable[[], None]


class SnapHandle(Protocol):
    """Anything that can open the Snap overlay for a token."""

    def pay(self, token: str, callbacks: SnapCallbacks) -> None: ...


class PaymentBridgeNotReady(Exception):
    """Raised when paying before a Snap handle is available."""


@dataclass
class PaymentAttempt:
    """One opening of the overlay. Only the first callback counts."""

    token: str
    handler: OutcomeHandler
    outcome: PaymentOutcome | None = None
    result: dict[str, Any] | None = field(default=None, repr=False)

    @property
    def is_settled(self) -> bool:
        return self.outcome is not None

    def dispatch(self, outcome: PaymentOutcome, result: dict[str, Any] | None = None) -> bool:
        """Record and forward an outcome.

        Returns:
            bool: False if this attempt already had an outcome (ignored).
        """
        if self.outcome is not None:
            logger.warning(
                "Ignoring %s after %s for the same payment attempt",
                outcome.value,
                self.outcome.value,
            )
            return False

        self.outcome = outcome
        self.result = result
        self.handler(outcome, result)
        return True

    def callbacks(self) -> SnapCallbacks:
        return SnapCallbacks(
            on_success=lambda result: self.dispatch(PaymentOutcome.SUCCESS, result),
            on_pending=lambda result: self.dispatch(PaymentOutcome.PENDING, result),
            on_error=lambda result: self.dispatch(PaymentOutcome.ERROR, result),
            on_close=lambda: self.dispatch(PaymentOutcome.CLOSED, None),
        )


class PaymentBridge:
    """Opens the Snap overlay and reports exactly one outcome per attempt."""

    def __init__(self, snap: SnapHandle | None = None) -> None:
        self.snap = snap

    @property
    def is_ready(self) -> bool:
        return self.snap is not None

    def pay(self, token: str, on_outcome: OutcomeHandler) -> PaymentAttempt:
        """Open the overlay for ``token``.

        Args:
            token: Snap token from payment initiation.
            on_outcome: Called once with the outcome and the Snap result.

        Returns:
            PaymentAttempt: The attempt, settled once a callback has fired.

        Raises:
            PaymentBridgeNotReady: If no Snap handle was provided.
        """
        if self.snap is None:
            raise PaymentBridgeNotReady("Midtrans Snap is not ready")

        attempt = PaymentAttempt(token=token, handler=on_outcome)
        self.snap.pay(token, attempt.callbacks())
        return attempt


_FALLBACK_STATUS: dict[PaymentOutcome, OrderStatus] = {
    PaymentOutcome.SUCCESS: OrderStatus.PAID,
    PaymentOutcome.PENDING: OrderStatus.PENDING,
    PaymentOutcome.ERROR: OrderStatus.FAILED,
}


def outcome_to_status(
    outcome: PaymentOutcome,
    transaction_status: str | None = None,
    fraud_status: str | None = None,
) -> OrderStatus | None:
    """Status an overlay outcome points to, as seen by the browser.

    When Snap's result carries a transaction_status it goes through the same
    mapping as the webhook, so both paths agree. Closing the overlay changes
    nothing. The outcome endpoint only uses this to decide whether to ask
    Midtrans; the status it stores is the one Midtrans confirms.

    Returns:
        OrderStatus | None: Status to persist, or None for no change.
    """
    if outcome == PaymentOutcome.CLOSED:
        return None
    if transaction_status:
        return map_transaction_status(transaction_status, fraud_status)
    return _FALLBACK_STATUS[outcome]

"""Reconciles Midtrans HTTP notifications into order status."""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from src.core.config import get_settings
from src.core.midtrans import MidtransConfigurationError, verify_signature
from src.schemas.payment import MidtransNotification
from src.services.payment_service import PaymentService
from src.services.payment_status import OrderStatus, map_transaction_status

logger = logging.getLogger(__name__)


class MalformedNotificationError(Exception):
    """Notification body is not JSON or lacks required fields."""


class InvalidSignatureError(Exception):
    """Notification signature_key does not match the expected hash."""


class NotificationService:
    """Service for the payment notification webhook.

    Nothing here retries; failures propagate so the endpoint answers with a
    non-2xx status and Midtrans redelivers.
    """

    def __init__(self, payment_service: PaymentService | None = None) -> None:
        """Initialize notification service."""
        self.settings = get_settings()
        self.payment_service = payment_service or PaymentService()

    def parse_notification(self, payload: Any) -> MidtransNotification:
        """Validate the raw JSON body.

        Raises:
            MalformedNotificationError: If fields are missing or mistyped.
        """
        if not isinstance(payload, dict):
            raise MalformedNotificationError("Notification body must be a JSON object")
        try:
            return MidtransNotification.model_validate(payload)
        except PydanticValidationError as e:
            missing = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise MalformedNotificationError(f"Invalid notification payload: {missing}") from e

    def verify(self, notification: MidtransNotification) -> None:
        """Check signature_key before any status change.

        Raises:
            MidtransConfigurationError: If verification is on but no server key is set.
            InvalidSignatureError: If the signature does not match.
        """
        if not self.settings.midtrans_verify_signature:
            logger.warning("Signature verification disabled, trusting notification for %s", notification.order_id)
            return

        if not self.settings.midtrans_server_key:
            raise MidtransConfigurationError("MIDTRANS_SERVER_KEY is not configured")

        if not verify_signature(
            signature_key=notification.signature_key,
            order_id=notification.order_id,
            status_code=notification.status_code or "",
            gross_amount=notification.gross_amount,
            server_key=self.settings.midtrans_server_key,
        ):
            logger.warning("Invalid signature on notification for %s", notification.order_id)
            raise InvalidSignatureError("Invalid signature_key")

    async def handle_notification(self, payload: Any) -> OrderStatus:
        """Parse, verify, map and persist one notification.

        Args:
            payload: Decoded JSON body.

        Returns:
            OrderStatus: The status that was applied. Orders already in a
            different final status keep it.

        Raises:
            MalformedNotificationError: Rejected before any write.
            InvalidSignatureError: Rejected before any write.
            PaymentAmountError: Paid amount differs from the stored total; nothing is written.
            OrderNotFoundError: Unknown order or batch; nothing is created.
            BatchUpdateError: Batch references unknown orders; nothing is written.
            OrderPersistenceError: Store read or write failed.
        """
        notification = self.parse_notification(payload)
        logger.info(
            "Received Midtrans notification for %s: %s (fraud=%s, type=%s)",
            notification.order_id,
            notification.transaction_status,
            notification.fraud_status,
            notification.payment_type,
        )

        self.verify(notification)

        status = map_transaction_status(notification.transaction_status, notification.fraud_status)
        if status == OrderStatus.PAID:
            await self.payment_service.verify_amount(notification.order_id, notification.gross_amount)
        logger.info("Updating %s status to: %s", notification.order_id, status.value)

        order_ids = await self.payment_service.apply_status(notification.order_id, status)
        logger.info("Reconciled %s -> %s for orders %s", notification.order_id, status.value, order_ids)
        return status

"""Webhook API routes for payment gateway notifications."""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from src.api.routes.payments import gateway_error
from src.core.midtrans import MidtransError
from src.schemas.common import GatewayErrorResponse, SuccessResponse
from src.services.notification_service import (
    InvalidSignatureError,
    MalformedNotificationError,
    NotificationService,
)
from src.services.order_service import BatchUpdateError, OrderNotFoundError, OrderPersistenceError
from src.services.payment_service import PaymentAmountError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post(
    "/midtrans",
    response_model=SuccessResponse,
    responses={500: {"model": GatewayErrorResponse}},
    summary="Handle Midtrans notifications",
    description="Receives Midtrans HTTP notifications and reconciles order status. Requires a valid signature_key.",
)
async def midtrans_webhook(request: Request) -> JSONResponse:
    """Handle a Midtrans payment notification.

    Any failure is answered with a 500 so Midtrans redelivers the
    notification; nothing is retried here.

    Args:
        request: FastAPI request object for reading the JSON body.

    Returns:
        JSONResponse: ``{"success": true}`` or ``{"error": ...}``.
    """
    try:
        payload = await request.json()
    except ValueError:
        logger.error("Midtrans notification body is not JSON")
        return gateway_error("Invalid JSON body")

    service = NotificationService()

    try:
        await service.handle_notification(payload)
    except (MalformedNotificationError, InvalidSignatureError, PaymentAmountError) as e:
        logger.error("Rejected Midtrans notification: %s", str(e))
        return gateway_error(str(e))
    except (OrderNotFoundError, BatchUpdateError, OrderPersistenceError, MidtransError) as e:
        logger.error("Error in midtrans webhook: %s", str(e))
        return gateway_error(str(e))

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=SuccessResponse().model_dump(),
    )

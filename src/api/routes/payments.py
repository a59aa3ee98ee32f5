"""Payment API routes: Snap token creation, browser outcomes and Snap config."""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from src.api.deps import CurrentUser
from src.api.middleware.error_handler import APIError, NotFoundError
from src.core.config import get_settings
from src.core.midtrans import MidtransError
from src.schemas.common import GatewayErrorResponse
from src.schemas.payment import (
    BatchPaymentCreate,
    BatchPaymentResponse,
    PaymentConfigResponse,
    PaymentCreate,
    PaymentOutcomeReport,
    PaymentOutcomeResponse,
    PaymentTokenResponse,
)
from src.services.order_service import BatchUpdateError, OrderNotFoundError, OrderPersistenceError
from src.services.payment_bridge import outcome_to_status
from src.services.payment_service import PaymentAmountError, PaymentRequestError, PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


def gateway_error(message: str) -> JSONResponse:
    """``500 {"error": message}`` as expected by the payment frontend."""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=GatewayErrorResponse(error=message).model_dump(),
    )


def _validation_message(e: PydanticValidationError) -> str:
    fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
    return f"Invalid payment request: {fields}"


@router.post(
    "",
    response_model=PaymentTokenResponse,
    responses={500: {"model": GatewayErrorResponse}},
    summary="Create Snap transaction",
    description="Requests a Snap token for a pending order. Gateway rejections are not retried.",
)
async def create_payment(request: Request, user: CurrentUser) -> PaymentTokenResponse | JSONResponse:
    """Create a Snap transaction for one order.

    Every failure (bad body, missing configuration, gateway rejection) is
    answered with ``500 {"error": ...}``; the user has to start the payment
    again.

    Args:
        request: Raw request, validated here so body errors use the same format.
        user: Authenticated user who must own the order.

    Returns:
        PaymentTokenResponse: Snap token and redirect URL.
    """
    try:
        data = PaymentCreate.model_validate(await request.json())
    except ValueError as e:
        if isinstance(e, PydanticValidationError):
            return gateway_error(_validation_message(e))
        return gateway_error("Request body must be JSON")

    service = PaymentService()
    try:
        result = await service.create_payment(data, user_id=user.user_id)
    except (PaymentRequestError, MidtransError) as e:
        logger.error("Error creating payment for %s: %s", data.order_id, e.message)
        return gateway_error(e.message)

    return PaymentTokenResponse(**result)


@router.post(
    "/batch",
    response_model=BatchPaymentResponse,
    responses={500: {"model": GatewayErrorResponse}},
    summary="Pay several orders at once",
    description="Creates one Snap transaction covering several pending orders.",
)
async def create_batch_payment(request: Request, user: CurrentUser) -> BatchPaymentResponse | JSONResponse:
    """Create one Snap transaction for several pending orders.

    The orders become paid together once the gateway confirms the batch.
    """
    try:
        data = BatchPaymentCreate.model_validate(await request.json())
    except ValueError as e:
        if isinstance(e, PydanticValidationError):
            return gateway_error(_validation_message(e))
        return gateway_error("Request body must be JSON")

    service = PaymentService()
    try:
        result = await service.create_batch_payment(user, data.order_ids)
    except (PaymentRequestError, MidtransError) as e:
        logger.error("Error creating batch payment for %s: %s", data.order_ids, e.message)
        return gateway_error(e.message)

    return BatchPaymentResponse(**result)


@router.get(
    "/config",
    response_model=PaymentConfigResponse,
    summary="Snap configuration",
    description="Client key and Snap.js URL the browser needs to open the payment overlay.",
)
async def get_payment_config() -> PaymentConfigResponse:
    settings = get_settings()
    if not settings.midtrans_client_key:
        raise APIError("MIDTRANS_CLIENT_KEY is not configured", error_type="configuration_error")

    return PaymentConfigResponse(
        client_key=settings.midtrans_client_key,
        is_production=settings.midtrans_is_production,
        snap_js_url=settings.midtrans_snap_js_url,
    )


@router.post(
    "/{payment_id}/outcome",
    response_model=PaymentOutcomeResponse,
    summary="Report overlay outcome",
    description=(
        "Reconciles the order(s) after the Snap overlay finishes. The status written "
        "is the one Midtrans reports for the transaction, not the one the browser saw."
    ),
)
async def report_payment_outcome(
    payment_id: str,
    data: PaymentOutcomeReport,
    user: CurrentUser,
) -> PaymentOutcomeResponse:
    """Reconcile a payment after the browser's Snap overlay finished.

    The browser's report only decides whether to look: a closed overlay
    changes nothing. Otherwise the transaction status is fetched from
    Midtrans with the server key and mapped like a notification, so a forged
    success report cannot mark an order paid.

    Raises:
        NotFoundError: If the order or batch is unknown or not the caller's.
        APIError: 502 if the gateway cannot confirm the status, 500 if the
            status could not be read or persisted.
    """
    service = PaymentService()

    try:
        owner = await service.get_payment_owner(payment_id)
    except OrderPersistenceError as e:
        raise APIError(str(e), error_type="persistence_error") from e
    if owner != str(user.user_id):
        raise NotFoundError("Payment not found")

    reported = outcome_to_status(data.outcome, data.transaction_status, data.fraud_status)
    if reported is None:
        logger.info("Payment overlay closed for %s, no status change", payment_id)
        return PaymentOutcomeResponse(payment_id=payment_id, outcome=data.outcome)

    try:
        confirmed = await service.confirm_status(payment_id)
    except MidtransError as e:
        logger.error("Could not confirm payment %s with Midtrans: %s", payment_id, e.message)
        raise APIError(e.message, status_code=status.HTTP_502_BAD_GATEWAY, error_type="gateway_error") from e
    except PaymentAmountError as e:
        raise APIError(str(e), status_code=status.HTTP_409_CONFLICT, error_type="amount_mismatch") from e
    except OrderNotFoundError as e:
        raise NotFoundError("Payment not found") from e
    except OrderPersistenceError as e:
        raise APIError(str(e), error_type="persistence_error") from e

    if confirmed is None:
        logger.info("Midtrans has no transaction for %s yet, browser reported %s", payment_id, data.outcome.value)
        return PaymentOutcomeResponse(payment_id=payment_id, outcome=data.outcome)

    if confirmed != reported:
        logger.warning(
            "Browser reported %s for %s but Midtrans reports %s",
            reported.value,
            payment_id,
            confirmed.value,
        )

    try:
        order_ids = await service.apply_status(payment_id, confirmed)
    except OrderNotFoundError as e:
        raise NotFoundError("Payment not found") from e
    except (BatchUpdateError, OrderPersistenceError) as e:
        raise APIError(str(e), error_type="persistence_error") from e

    return PaymentOutcomeResponse(
        payment_id=payment_id,
        outcome=data.outcome,
        status=confirmed.value,
        order_ids=order_ids,
    )

"""Order API routes: checkout, history, reorder and invoices."""

from fastapi import APIRouter, status

from src.api.deps import CurrentUser
from src.schemas.order import (
    CombinedInvoiceCreate,
    CombinedInvoiceResponse,
    InvoiceListResponse,
    InvoiceResponse,
    OrderCreate,
    OrderListResponse,
    OrderResponse,
    StatusOption,
)
from src.services.order_service import OrderService
from src.services.payment_status import OrderStatus, status_display

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post(
    "",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Check out cart",
    description="Creates a pending order from the cart for a recipient and delivery date.",
)
async def create_order(data: OrderCreate, user: CurrentUser) -> OrderResponse:
    """Create a pending order from the user's cart.

    Prices are copied from the menu now and the cart is emptied.
    """
    service = OrderService()
    order = await service.create_order_from_cart(user.user_id, data.recipient_id, data.delivery_date)
    return OrderResponse(**order)


@router.get(
    "",
    response_model=OrderListResponse,
    summary="List my orders",
)
async def list_orders(user: CurrentUser, status: OrderStatus | None = None) -> OrderListResponse:
    service = OrderService()
    orders = await service.list_orders_for_user(user.user_id, status)
    return OrderListResponse(items=[OrderResponse(**order) for order in orders])


@router.get(
    "/statuses",
    response_model=list[StatusOption],
    summary="Order status labels",
    description="Every order status with its display label and badge variant.",
)
async def list_statuses() -> list[StatusOption]:
    options = []
    for order_status in OrderStatus:
        display = status_display(order_status)
        options.append(StatusOption(value=order_status, label=display.label, variant=display.variant))
    return options


@router.get(
    "/invoices",
    response_model=InvoiceListResponse,
    summary="List my invoices",
    description="One invoice per paid order.",
)
async def list_invoices(user: CurrentUser) -> InvoiceListResponse:
    service = OrderService()
    invoices = await service.list_invoices(user.user_id)
    return InvoiceListResponse(
        items=[
            InvoiceResponse(
                id=invoice["id"],
                order_id=invoice["order_id"],
                order=OrderResponse(**invoice["order"]),
                generated_at=invoice["generated_at"],
            )
            for invoice in invoices
        ]
    )


@router.post(
    "/invoices/combined",
    response_model=CombinedInvoiceResponse,
    summary="Combined invoice",
    description="One invoice covering several paid orders.",
)
async def create_combined_invoice(data: CombinedInvoiceCreate, user: CurrentUser) -> CombinedInvoiceResponse:
    service = OrderService()
    invoice = await service.build_combined_invoice(user.user_id, data.order_ids)
    return CombinedInvoiceResponse(
        id=invoice["id"],
        orders=[OrderResponse(**order) for order in invoice["orders"]],
        total_amount=invoice["total_amount"],
        generated_at=invoice["generated_at"],
    )


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get order by ID",
    description="Returns a single order. Only accessible by the order owner.",
)
async def get_order(order_id: str, user: CurrentUser) -> OrderResponse:
    service = OrderService()
    order = await service.get_order_for_user(order_id, user.user_id)
    return OrderResponse(**order)


@router.post(
    "/{order_id}/reorder",
    summary="Reorder",
    description="Adds the still-available items of a past order to the cart.",
)
async def reorder(order_id: str, user: CurrentUser) -> dict[str, int]:
    service = OrderService()
    added = await service.reorder(order_id, user.user_id)
    return {"added": added}

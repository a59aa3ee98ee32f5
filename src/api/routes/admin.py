"""Admin API routes: orders, users, menu management and reports."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Response, status

from src.api.deps import AdminUser
from src.schemas.auth import ProfileListResponse, ProfileResponse
from src.schemas.menu import MenuItemCreate, MenuItemResponse, MenuItemUpdate, MenuListResponse
from src.schemas.order import OrderListResponse, OrderResponse
from src.schemas.report import DashboardSummary, FinanceSummary, SalesReport
from src.services.menu_service import MenuService
from src.services.order_service import OrderService
from src.services.payment_status import OrderStatus
from src.services.profile_service import ProfileService
from src.services.report_service import ReportService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/orders", response_model=OrderListResponse, summary="List all orders")
async def list_all_orders(
    admin: AdminUser,
    status: OrderStatus | None = None,
    delivery_date: date | None = None,
) -> OrderListResponse:
    """List every order, optionally filtered by status and delivery date.

    Order status is read-only here; it only changes through payments.
    """
    service = OrderService()
    orders = await service.list_all_orders(status=status, delivery_date=delivery_date)
    return OrderListResponse(items=[OrderResponse(**order) for order in orders])


@router.get("/users", response_model=ProfileListResponse, summary="List users")
async def list_users(admin: AdminUser, role: str | None = None) -> ProfileListResponse:
    service = ProfileService()
    profiles = await service.list_profiles(role=role)
    return ProfileListResponse(items=[ProfileResponse(**p) for p in profiles])


@router.get("/menu", response_model=MenuListResponse, summary="List all menu items")
async def list_menu_items(admin: AdminUser) -> MenuListResponse:
    service = MenuService()
    items = await service.list_items(include_unavailable=True)
    return MenuListResponse(items=[MenuItemResponse(**item) for item in items])


@router.post(
    "/menu",
    response_model=MenuItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create menu item",
)
async def create_menu_item(data: MenuItemCreate, admin: AdminUser) -> MenuItemResponse:
    service = MenuService()
    item = await service.create_item(data)
    return MenuItemResponse(**item)


@router.patch("/menu/{item_id}", response_model=MenuItemResponse, summary="Update menu item")
async def update_menu_item(item_id: UUID, data: MenuItemUpdate, admin: AdminUser) -> MenuItemResponse:
    service = MenuService()
    item = await service.update_item(item_id, data)
    return MenuItemResponse(**item)


@router.delete("/menu/{item_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete menu item")
async def delete_menu_item(item_id: UUID, admin: AdminUser) -> Response:
    service = MenuService()
    await service.delete_item(item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/finance", response_model=FinanceSummary, summary="Finance summary")
async def get_finance_summary(admin: AdminUser, since: date | None = None) -> FinanceSummary:
    service = ReportService()
    return FinanceSummary(**await service.get_finance_summary(since))


@router.get("/reports", response_model=SalesReport, summary="Sales report")
async def get_sales_report(admin: AdminUser, since: date | None = None) -> SalesReport:
    service = ReportService()
    return SalesReport(**await service.get_sales_report(since))


@router.get("/dashboard", response_model=DashboardSummary, summary="Dashboard counters")
async def get_dashboard(admin: AdminUser) -> DashboardSummary:
    service = ReportService()
    return DashboardSummary(**await service.get_dashboard())

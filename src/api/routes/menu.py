"""Public menu API routes."""

from uuid import UUID

from fastapi import APIRouter

from src.api.middleware.error_handler import NotFoundError
from src.schemas.menu import MenuItemResponse, MenuListResponse
from src.services.menu_service import MenuService

router = APIRouter(prefix="/menu", tags=["menu"])


@router.get(
    "",
    response_model=MenuListResponse,
    summary="Browse menu",
    description="Available menu items, optionally filtered by category.",
)
async def list_menu(category: str | None = None) -> MenuListResponse:
    service = MenuService()
    items = await service.list_items(category=category)
    return MenuListResponse(items=[MenuItemResponse(**item) for item in items])


@router.get("/{item_id}", response_model=MenuItemResponse, summary="Get menu item")
async def get_menu_item(item_id: UUID) -> MenuItemResponse:
    service = MenuService()
    item = await service.get_item(item_id)
    if not item:
        raise NotFoundError("Menu item not found")
    return MenuItemResponse(**item)

"""Cart API routes."""

from uuid import UUID

from fastapi import APIRouter

from src.api.deps import CurrentUser
from src.schemas.menu import CartItemAdd, CartItemUpdate, CartLineResponse, CartResponse, MenuItemResponse
from src.services.cart_service import CartService, cart_total

router = APIRouter(prefix="/cart", tags=["cart"])


async def _cart_response(service: CartService, user_id: UUID) -> CartResponse:
    lines = await service.get_cart_lines(user_id)
    return CartResponse(
        items=[
            CartLineResponse(
                menu_item=MenuItemResponse(**line["menu_item"]),
                quantity=line["quantity"],
                subtotal=int(line["menu_item"]["price"]) * int(line["quantity"]),
            )
            for line in lines
        ],
        total=cart_total(lines),
    )


@router.get("", response_model=CartResponse, summary="Get my cart")
async def get_cart(user: CurrentUser) -> CartResponse:
    return await _cart_response(CartService(), user.user_id)


@router.post("/items", response_model=CartResponse, summary="Add item to cart")
async def add_cart_item(data: CartItemAdd, user: CurrentUser) -> CartResponse:
    service = CartService()
    await service.add_item(user.user_id, data.menu_item_id, data.quantity)
    return await _cart_response(service, user.user_id)


@router.patch("/items/{menu_item_id}", response_model=CartResponse, summary="Change quantity")
async def update_cart_item(menu_item_id: UUID, data: CartItemUpdate, user: CurrentUser) -> CartResponse:
    service = CartService()
    await service.update_quantity(user.user_id, menu_item_id, data.quantity)
    return await _cart_response(service, user.user_id)


@router.delete("/items/{menu_item_id}", response_model=CartResponse, summary="Remove item")
async def remove_cart_item(menu_item_id: UUID, user: CurrentUser) -> CartResponse:
    service = CartService()
    await service.remove_item(user.user_id, menu_item_id)
    return await _cart_response(service, user.user_id)


@router.delete("", response_model=CartResponse, summary="Clear cart")
async def clear_cart(user: CurrentUser) -> CartResponse:
    service = CartService()
    await service.clear_cart(user.user_id)
    return CartResponse(items=[], total=0)

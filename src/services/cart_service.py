"""Cart service backed by the cart_items table."""

import logging
from typing import Any
from uuid import UUID

from src.api.middleware.error_handler import NotFoundError, ValidationError
from src.core.supabase import get_supabase_client

logger = logging.getLogger(__name__)


class CartService:
    """Service for a user's cart.

    Cart lines are priced at the current menu price; prices are only frozen
    when the cart is checked out into an order.
    """

    def __init__(self) -> None:
        """Initialize cart service with Supabase client."""
        self.client = get_supabase_client()

    async def get_cart_lines(self, user_id: UUID) -> list[dict[str, Any]]:
        """Get cart rows with their menu item embedded.

        Returns:
            list[dict]: ``{"menu_item": {...}, "quantity": n}`` per line.
        """
        response = (
            self.client.table("cart_items")
            .select("quantity, menu_item:menu_items(*)")
            .eq("user_id", str(user_id))
            .order("created_at")
            .execute()
        )

        return [
            {"menu_item": row["menu_item"], "quantity": row["quantity"]}
            for row in response.data or []
            if row.get("menu_item")
        ]

    async def get_cart_total(self, user_id: UUID) -> int:
        lines = await self.get_cart_lines(user_id)
        return cart_total(lines)

    async def add_item(self, user_id: UUID, menu_item_id: UUID, quantity: int = 1) -> None:
        """Add a menu item, merging with an existing line for the same item.

        Raises:
            NotFoundError: If the menu item does not exist.
            ValidationError: If the item is not available or quantity < 1.
        """
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        item = (
            self.client.table("menu_items")
            .select("id, is_available")
            .eq("id", str(menu_item_id))
            .maybe_single()
            .execute()
        )
        if not item or not item.data:
            raise NotFoundError("Menu item not found")
        if not item.data.get("is_available", True):
            raise ValidationError("Menu item is not available")

        existing = await self._get_line(user_id, menu_item_id)
        if existing:
            self.client.table("cart_items").update(
                {"quantity": existing["quantity"] + quantity}
            ).eq("id", existing["id"]).execute()
            return

        self.client.table("cart_items").insert(
            {
                "user_id": str(user_id),
                "menu_item_id": str(menu_item_id),
                "quantity": quantity,
            }
        ).execute()

    async def update_quantity(self, user_id: UUID, menu_item_id: UUID, quantity: int) -> None:
        """Set a line's quantity; zero or less removes the line.

        Raises:
            NotFoundError: If the item is not in the cart.
        """
        if quantity <= 0:
            await self.remove_item(user_id, menu_item_id)
            return

        existing = await self._get_line(user_id, menu_item_id)
        if not existing:
            raise NotFoundError("Item is not in the cart")

        self.client.table("cart_items").update({"quantity": quantity}).eq("id", existing["id"]).execute()

    async def remove_item(self, user_id: UUID, menu_item_id: UUID) -> None:
        self.client.table("cart_items").delete().eq("user_id", str(user_id)).eq(
            "menu_item_id", str(menu_item_id)
        ).execute()

    async def clear_cart(self, user_id: UUID) -> None:
        self.client.table("cart_items").delete().eq("user_id", str(user_id)).execute()
        logger.debug("Cart cleared for user %s", user_id)

    async def _get_line(self, user_id: UUID, menu_item_id: UUID) -> dict[str, Any] | None:
        response = (
            self.client.table("cart_items")
            .select("id, quantity")
            .eq("user_id", str(user_id))
            .eq("menu_item_id", str(menu_item_id))
            .maybe_single()
            .execute()
        )

        return response.data if response and response.data else None


def cart_total(lines: list[dict[str, Any]]) -> int:
    """Sum of current price x quantity over cart lines."""
    return sum(int(line["menu_item"]["price"]) * int(line["quantity"]) for line in lines)

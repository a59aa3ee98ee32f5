"""Menu catalog service."""

import logging
from datetime import datetime, timezone
from uuid import UUID

from src.api.middleware.error_handler import NotFoundError
from src.core.supabase import get_supabase_client
from src.models.menu_item import MenuItem
from src.schemas.menu import MenuItemCreate, MenuItemUpdate

logger = logging.getLogger(__name__)


class MenuService:
    """Service for browsing and administering menu items."""

    def __init__(self) -> None:
        """Initialize menu service with Supabase client."""
        self.client = get_supabase_client()

    async def list_items(
        self,
        category: str | None = None,
        include_unavailable: bool = False,
    ) -> list[MenuItem]:
        """List menu items ordered by category then name.

        Args:
            category: Optional category filter.
            include_unavailable: Also return items switched off by an admin.

        Returns:
            list[MenuItem]: Menu item rows.
        """
        query = self.client.table("menu_items").select("*")
        if category:
            query = query.eq("category", category)
        if not include_unavailable:
            query = query.eq("is_available", True)
        response = query.order("category").order("name").execute()

        return response.data or []

    async def get_item(self, item_id: UUID) -> MenuItem | None:
        response = (
            self.client.table("menu_items")
            .select("*")
            .eq("id", str(item_id))
            .maybe_single()
            .execute()
        )

        return response.data if response and response.data else None

    async def create_item(self, data: MenuItemCreate) -> MenuItem:
        response = self.client.table("menu_items").insert(data.model_dump()).execute()
        item = response.data[0]
        logger.info("Menu item %s created: %s", item["id"], item["name"])
        return item

    async def update_item(self, item_id: UUID, data: MenuItemUpdate) -> MenuItem:
        """Update a menu item. Existing orders keep their snapshotted prices.

        Raises:
            NotFoundError: If the item does not exist.
        """
        update_data = data.model_dump(exclude_unset=True)
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

        response = (
            self.client.table("menu_items")
            .update(update_data)
            .eq("id", str(item_id))
            .execute()
        )
        if not response.data:
            raise NotFoundError("Menu item not found")

        return response.data[0]

    async def delete_item(self, item_id: UUID) -> None:
        """Delete a menu item.

        Raises:
            NotFoundError: If the item does not exist.
        """
        response = self.client.table("menu_items").delete().eq("id", str(item_id)).execute()
        if not response.data:
            raise NotFoundError("Menu item not found")
        logger.info("Menu item %s deleted", item_id)

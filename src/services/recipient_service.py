"""Recipient business logic service."""

import logging
from uuid import UUID

from src.api.middleware.error_handler import ConflictError, NotFoundError
from src.core.supabase import get_supabase_client
from src.models.recipient import Recipient
from src.schemas.recipient import RecipientCreate, RecipientUpdate

logger = logging.getLogger(__name__)


class RecipientService:
    """Service for managing the children/classes a parent orders for."""

    def __init__(self) -> None:
        """Initialize recipient service with Supabase client."""
        self.client = get_supabase_client()

    async def list_recipients(self, user_id: UUID) -> list[Recipient]:
        response = (
            self.client.table("recipients")
            .select("*")
            .eq("user_id", str(user_id))
            .order("created_at")
            .execute()
        )

        return response.data or []

    async def get_recipient(self, recipient_id: UUID, user_id: UUID) -> Recipient | None:
        """Get a recipient owned by ``user_id``.

        Returns:
            Recipient | None: The recipient or None if missing or owned by another user.
        """
        response = (
            self.client.table("recipients")
            .select("*")
            .eq("id", str(recipient_id))
            .eq("user_id", str(user_id))
            .maybe_single()
            .execute()
        )

        return response.data if response and response.data else None

    async def create_recipient(self, user_id: UUID, data: RecipientCreate) -> Recipient:
        response = (
            self.client.table("recipients")
            .insert(
                {
                    "user_id": str(user_id),
                    "name": data.name,
                    "class_name": data.class_name,
                }
            )
            .execute()
        )

        return response.data[0]

    async def update_recipient(
        self,
        recipient_id: UUID,
        user_id: UUID,
        data: RecipientUpdate,
    ) -> Recipient:
        """Update a recipient's name and/or class.

        Raises:
            NotFoundError: If the recipient does not belong to the user.
        """
        existing = await self.get_recipient(recipient_id, user_id)
        if not existing:
            raise NotFoundError("Recipient not found")

        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        if not update_data:
            return existing

        response = (
            self.client.table("recipients")
            .update(update_data)
            .eq("id", str(recipient_id))
            .eq("user_id", str(user_id))
            .execute()
        )

        return response.data[0] if response.data else existing

    async def delete_recipient(self, recipient_id: UUID, user_id: UUID) -> None:
        """Delete a recipient that no order refers to.

        Raises:
            NotFoundError: If the recipient does not belong to the user.
            ConflictError: If any order was placed for this recipient.
        """
        existing = await self.get_recipient(recipient_id, user_id)
        if not existing:
            raise NotFoundError("Recipient not found")

        orders = (
            self.client.table("orders")
            .select("id")
            .eq("recipient_id", str(recipient_id))
            .limit(1)
            .execute()
        )
        if orders.data:
            raise ConflictError("Recipient has orders and cannot be deleted")

        self.client.table("recipients").delete().eq("id", str(recipient_id)).eq(
            "user_id", str(user_id)
        ).execute()
        logger.info("Recipient %s deleted by user %s", recipient_id, user_id)

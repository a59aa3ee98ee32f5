"""Profile business logic service."""

from uuid import UUID

from src.core.supabase import get_supabase_client
from src.models.profile import Profile, ProfileCreate

ADMIN_ROLE = "admin"
PARENT_ROLE = "parent"


class ProfileService:
    """Service for user profiles and roles."""

    def __init__(self) -> None:
        """Initialize profile service with Supabase client."""
        self.client = get_supabase_client()

    async def get_or_create_profile(
        self,
        user_id: UUID,
        email: str | None = None,
        name: str | None = None,
    ) -> Profile:
        """Get existing profile or create a parent profile.

        Args:
            user_id: The auth user ID.
            email: User's email address.
            name: User's display name.

        Returns:
            Profile: The profile data.
        """
        profile = await self.get_profile(user_id)
        if profile:
            return profile

        profile_data: ProfileCreate = {
            "user_id": str(user_id),
            "email": email,
            "name": name or email,
            "role": PARENT_ROLE,
        }

        response = (
            self.client.table("profiles")
            .insert(profile_data)
            .execute()
        )

        return response.data[0]

    async def get_profile(self, user_id: UUID) -> Profile | None:
        """Get a profile by auth user ID.

        Args:
            user_id: The auth user ID.

        Returns:
            Profile | None: The profile data or None if not found.
        """
        response = (
            self.client.table("profiles")
            .select("*")
            .eq("user_id", str(user_id))
            .execute()
        )

        return response.data[0] if response.data else None

    async def is_admin(self, user_id: UUID) -> bool:
        profile = await self.get_profile(user_id)
        return bool(profile) and profile.get("role") == ADMIN_ROLE

    async def list_profiles(self, role: str | None = None) -> list[Profile]:
        """List profiles (admin), newest first, optionally by role."""
        query = self.client.table("profiles").select("*")
        if role:
            query = query.eq("role", role)
        response = query.order("created_at", desc=True).execute()

        return response.data or []

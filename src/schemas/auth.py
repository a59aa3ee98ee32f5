"""Authentication schemas for JWT tokens, user context and profiles."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserContext(BaseModel):
    """Authenticated user context extracted from JWT token.

    Populated by the auth dependency from the validated Supabase JWT.
    """

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID = Field(description="Unique identifier for the user (from JWT sub claim)")
    email: str | None = Field(default=None, description="User's email address if available")
    name: str | None = Field(default=None, description="Display name from user metadata")


class TokenPayload(BaseModel):
    """JWT token payload structure for Supabase tokens."""

    model_config = ConfigDict(from_attributes=True)

    sub: str = Field(description="Subject - the user's UUID")
    email: str | None = Field(default=None, description="User's email address")
    role: str | None = Field(default=None, description="Postgres role claim (authenticated/anon)")
    exp: int = Field(description="Expiration timestamp (Unix epoch)")
    iat: int = Field(description="Issued at timestamp (Unix epoch)")
    aud: str | None = Field(default=None, description="Audience - intended recipient")
    user_metadata: dict = Field(default_factory=dict, description="Supabase user metadata")

    def to_user_context(self) -> UserContext:
        """Convert token payload to UserContext.

        Returns:
            UserContext: User context derived from token claims.
        """
        return UserContext(
            user_id=UUID(self.sub),
            email=self.email,
            name=self.user_metadata.get("name"),
        )


class ProfileResponse(BaseModel):
    """Profile as returned by the users/admin endpoints."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Profile ID")
    user_id: UUID = Field(description="Auth user ID")
    name: str | None = Field(default=None, description="Display name")
    email: str | None = Field(default=None, description="Email address")
    phone: str | None = Field(default=None, description="Phone number")
    role: str = Field(default="parent", description="parent or admin")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")


class ProfileListResponse(BaseModel):
    """Schema for profile list responses."""

    items: list[ProfileResponse] = Field(description="List of profiles")

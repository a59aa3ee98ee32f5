"""Profile model type definitions for database operations."""

from datetime import datetime
from typing import Literal, TypedDict
from uuid import UUID


ProfileRole = Literal["parent", "admin"]


class Profile(TypedDict):
    """Profile table row representation.

    One row per auth user. The role decides access to the admin routes.
    """

    id: UUID
    user_id: UUID
    name: str | None
    email: str | None
    phone: str | None
    role: ProfileRole
    created_at: datetime
    updated_at: datetime


class ProfileCreate(TypedDict, total=False):
    """Data required to create a new profile.

    Only user_id is required; other fields are optional.
    """

    user_id: str
    name: str | None
    email: str | None
    phone: str | None
    role: ProfileRole

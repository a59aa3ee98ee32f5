"""Recipient Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RecipientCreate(BaseModel):
    """Schema for POST /recipients."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=255, description="Child's name")
    class_name: str = Field(alias="class", min_length=1, max_length=100, description="Class, e.g. Kelas 3A")


class RecipientUpdate(BaseModel):
    """Schema for PATCH /recipients/{id}. All fields optional."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = Field(default=None, min_length=1, max_length=255)
    class_name: str | None = Field(default=None, alias="class", min_length=1, max_length=100)


class RecipientResponse(BaseModel):
    """Schema for recipient responses."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    user_id: UUID
    name: str
    class_name: str = Field(alias="class")
    created_at: datetime | None = None


class RecipientListResponse(BaseModel):
    items: list[RecipientResponse]

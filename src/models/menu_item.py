"""Menu item and cart model type definitions for database operations."""

from datetime import datetime
from typing import TypedDict
from uuid import UUID


class MenuItem(TypedDict):
    """menu_items table row representation.

    Prices are whole rupiah.
    """

    id: UUID
    name: str
    description: str
    price: int
    image: str | None
    category: str
    is_available: bool
    stock: int | None
    created_at: datetime
    updated_at: datetime


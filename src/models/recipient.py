"""Recipient model type definitions for database operations."""

from datetime import datetime
from typing import TypedDict
from uuid import UUID


class Recipient(TypedDict):
    """Recipient table row representation.

    The child (and class) an order is delivered to.
    """

    id: UUID
    user_id: UUID
    name: str
    # "class" is a keyword, the column is class_name
    class_name: str
    created_at: datetime

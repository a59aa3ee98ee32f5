"""Database model type definitions."""

from src.models.menu_item import MenuItem
from src.models.order import Order, OrderCreate, OrderItem, OrderStatusUpdate, OrderStatusValue, PaymentBatch
from src.models.profile import Profile, ProfileCreate, ProfileRole
from src.models.recipient import Recipient

__all__ = [
    "MenuItem",
    "Order",
    "OrderCreate",
    "OrderItem",
    "OrderStatusUpdate",
    "OrderStatusValue",
    "PaymentBatch",
    "Profile",
    "ProfileCreate",
    "ProfileRole",
    "Recipient",
]
